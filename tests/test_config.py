import pytest
import yaml

from bazelblog.config import (
    COLOR_SCHEMES,
    CONFIG_FILENAME,
    FONTS,
    ConfigStore,
    SiteConfig,
)
from bazelblog.errors import ConfigError
from bazelblog.styles import FONT_STACKS, PALETTES


def test_missing_or_empty_config_gives_defaults(tmp_path):
    store = ConfigStore(tmp_path)
    assert not store.exists()
    assert store.load() == SiteConfig()

    store.path.write_text("", encoding="utf-8")
    assert store.exists()
    config = store.load()
    assert config.title == "My Bazel Site"
    assert config.description == "A static site generated with Bazel"
    assert config.base_url == "https://example.com"
    assert config.color_scheme == "pika-beach"
    assert config.font == "pika-serif"
    assert config.editor == "auto"
    assert config.socials == {}


def test_round_trip_preserves_nested_layout(tmp_path):
    store = ConfigStore(tmp_path)
    config = SiteConfig(site_name="blog", title="Hello: World", base_url="https://me.dev")
    config.set_color_scheme("nord")
    config.set_font("georgia")
    config.set_editor("nvim")
    config.set_social("github", "https://github.com/me")
    store.save(config)

    data = yaml.safe_load(store.path.read_text(encoding="utf-8"))
    assert list(data) == [
        "site_name",
        "title",
        "description",
        "base_url",
        "theme",
        "socials",
        "editor",
    ]
    assert data["theme"] == {"color_scheme": "nord", "font": "georgia"}
    assert store.load() == config


def test_empty_socials_round_trip(tmp_path):
    store = ConfigStore(tmp_path)
    store.save(SiteConfig())
    text = store.path.read_text(encoding="utf-8")
    assert "socials: {}" in text
    assert store.load().socials == {}


def test_partial_config_keeps_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text(
        "title: Only Title\ntheme:\n  font: serif\nsocials: null\nunknown: 1\n",
        encoding="utf-8",
    )
    config = ConfigStore(tmp_path).load()
    assert config.title == "Only Title"
    assert config.font == "serif"
    assert config.color_scheme == "pika-beach"
    assert config.socials == {}


@pytest.mark.parametrize("text", ["title: [broken\n", "- just\n- a list\n", "plain string\n"])
def test_corrupt_config_raises(tmp_path, text):
    (tmp_path / CONFIG_FILENAME).write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as excinfo:
        ConfigStore(tmp_path).load()
    assert excinfo.value.path == tmp_path / CONFIG_FILENAME


def test_social_removal_and_editor_resolution(monkeypatch):
    config = SiteConfig()
    config.set_social("twitter", "https://twitter.com/me")
    config.remove_social("twitter")
    config.remove_social("never-set")
    assert config.socials == {}

    monkeypatch.setenv("EDITOR", "nano")
    assert config.resolved_editor() == "nano"
    monkeypatch.delenv("EDITOR")
    assert config.resolved_editor() == "vi"
    config.set_editor("hx")
    assert config.resolved_editor() == "hx"


def test_every_scheme_and_font_has_styles():
    assert set(COLOR_SCHEMES) <= set(PALETTES)
    assert set(FONTS) - {"system"} <= set(FONT_STACKS)
