import json
from datetime import datetime

import pytest
import yaml

from bazelblog import __version__
from bazelblog.errors import BuildError, MigrationError, UpgradeError, VersionFileError
from bazelblog.migrations import (
    MIGRATIONS,
    Migration,
    convert_json_config,
    migrate_directory_structure,
    reset_unknown_color_scheme,
)
from bazelblog.upgrade import (
    VERSION_FILE,
    SiteVersion,
    UpgradeEngine,
    check_site_version,
    compare_versions,
    load_site_version,
    parse_version,
    plan_upgrade,
    save_site_version,
)

from conftest import make_site


def recording_steps(calls, fail_at=None):
    def step(to_version):
        def apply(site_root):
            calls.append(to_version)
            if to_version == fail_at:
                raise RuntimeError("disk full")

        return apply

    return [
        Migration("0.0.0", "1.1.0", "one", step("1.1.0")),
        Migration("1.1.0", "1.2.0", "two", step("1.2.0")),
        Migration("1.2.0", "1.10.0", "three", step("1.10.0")),
    ]


def test_parse_and_compare_versions():
    assert parse_version("1.4.2") == (1, 4, 2)
    assert parse_version("v2.0") == (2, 0, 0)
    assert parse_version("1.x.3") == (1, 0, 3)
    assert compare_versions("1.10.0", "1.9.0") == 1
    assert compare_versions("1.9.0", "1.10.0") == -1
    assert compare_versions("1.4", "1.4.0") == 0


def test_plan_from_scratch_takes_every_step():
    plan = plan_upgrade("0.0.0", "1.4.2", MIGRATIONS)
    assert [m.to_version for m in plan] == [
        "1.1.0",
        "1.1.5",
        "1.1.7",
        "1.1.8",
        "1.4.0",
        "1.4.1",
        "1.4.2",
    ]


def test_plan_is_deterministic_and_skips_applied_steps():
    plan = plan_upgrade("1.1.6", "1.4.2", MIGRATIONS)
    assert [m.to_version for m in plan] == ["1.1.7", "1.1.8", "1.4.0", "1.4.1", "1.4.2"]
    assert plan == plan_upgrade("1.1.6", "1.4.2", MIGRATIONS)
    assert plan_upgrade("1.4.2", "1.4.2", MIGRATIONS) == []
    assert plan_upgrade("2.0.0", "1.4.2", MIGRATIONS) == []


def test_site_version_round_trip(tmp_path):
    assert load_site_version(tmp_path) is None
    assert check_site_version(tmp_path) == "0.0.0"

    record = SiteVersion(version="1.1.5", last_upgrade=datetime(2025, 1, 2, 3, 4, 5))
    save_site_version(tmp_path, record)
    data = json.loads((tmp_path / VERSION_FILE).read_text(encoding="utf-8"))
    assert data == {"version": "1.1.5", "last_upgrade": "2025-01-02T03:04:05", "features": {}}
    assert load_site_version(tmp_path) == record
    assert check_site_version(tmp_path) == "1.1.5"


def test_corrupt_version_file_is_reported(tmp_path):
    (tmp_path / VERSION_FILE).write_text("{not json", encoding="utf-8")
    with pytest.raises(VersionFileError):
        load_site_version(tmp_path)
    (tmp_path / VERSION_FILE).write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(VersionFileError):
        check_site_version(tmp_path)


def test_engine_applies_chain_and_rebuilds_once(site):
    calls, builds = [], []
    engine = UpgradeEngine(recording_steps(calls), tool_version="1.10.0", build=builds.append)

    result = engine.run(site)
    assert calls == ["1.1.0", "1.2.0", "1.10.0"]
    assert builds == [site]
    assert result.start_version == "0.0.0"
    assert result.final_version == "1.10.0"
    assert result.upgraded
    record = load_site_version(site)
    assert record.version == "1.10.0"
    assert record.last_upgrade is not None

    # a second run is a no-op
    calls.clear()
    again = engine.run(site)
    assert not again.upgraded
    assert calls == [] and builds == [site]


def test_engine_failure_persists_nothing(site):
    save_site_version(site, SiteVersion(version="1.1.0"))
    calls, builds = [], []
    engine = UpgradeEngine(
        recording_steps(calls, fail_at="1.10.0"), tool_version="1.10.0", build=builds.append
    )

    with pytest.raises(MigrationError) as excinfo:
        engine.run(site)
    assert calls == ["1.2.0", "1.10.0"]
    assert builds == []
    assert excinfo.value.migration.to_version == "1.10.0"
    assert "failed to apply upgrade 1.10.0 (three): disk full" == str(excinfo.value)
    assert check_site_version(site) == "1.1.0"


def test_engine_requires_a_site(tmp_path):
    with pytest.raises(UpgradeError):
        UpgradeEngine(build=lambda root: None).run(tmp_path)


def test_engine_default_tool_version(site):
    engine = UpgradeEngine(build=lambda root: None)
    assert engine.tool_version == __version__
    result = engine.run(site)
    assert result.final_version == __version__


def test_directory_structure_migration(site):
    (site / "posts" / "hello.md").write_text("x", encoding="utf-8")
    (site / "pages" / "about.md").write_text("x", encoding="utf-8")
    (site / "pages" / "legacy.html").write_text("x", encoding="utf-8")
    public = site / "public"
    public.mkdir()
    for name in ("index.html", "style.css", "feed.xml", "hello.html", "about.html",
                 "legacy.html", "orphan.html", "notes.txt"):
        (public / name).write_text(name, encoding="utf-8")

    moved = migrate_directory_structure(site)

    assert sorted(p.relative_to(public).as_posix() for p in moved) == [
        "pages/about.html",
        "pages/legacy.html",
        "posts/hello.html",
    ]
    assert (public / "posts" / "hello.html").read_text(encoding="utf-8") == "hello.html"
    for name in ("index.html", "style.css", "feed.xml", "orphan.html", "notes.txt"):
        assert (public / name).exists()
    assert not (public / "hello.html").exists()


def test_directory_structure_migration_without_public(site):
    assert migrate_directory_structure(site) == []
    assert not (site / "public").exists()


def test_json_config_migration(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    legacy = {
        "site_name": "old",
        "title": "Old Blog",
        "theme": {"color_scheme": "nord", "font": "serif"},
        "socials": None,
    }
    (root / "bazel.yaml").write_text(json.dumps(legacy, indent=2), encoding="utf-8")

    backup = convert_json_config(root, now=datetime(2025, 3, 4, 5, 6, 7))

    assert backup.name == "bazel.yaml.json-backup.20250304-050607"
    assert json.loads(backup.read_text(encoding="utf-8")) == legacy
    converted = (root / "bazel.yaml").read_text(encoding="utf-8")
    assert not converted.lstrip().startswith("{")
    data = yaml.safe_load(converted)
    assert data["title"] == "Old Blog"
    assert data["theme"] == {"color_scheme": "nord", "font": "serif"}
    assert data["socials"] == {}


def test_json_config_migration_is_noop_for_yaml_and_missing(tmp_path):
    assert convert_json_config(tmp_path) is None
    make_site(tmp_path / "site")
    assert convert_json_config(tmp_path / "site") is None
    assert list((tmp_path / "site").glob("*.json-backup.*")) == []


def test_reset_unknown_color_scheme(tmp_path):
    root = make_site(tmp_path / "site", "theme:\n  color_scheme: neon\n")
    assert reset_unknown_color_scheme(root) is True
    assert yaml.safe_load((root / "bazel.yaml").read_text())["theme"]["color_scheme"] == (
        "pika-beach"
    )
    assert reset_unknown_color_scheme(root) is False

    legacy = tmp_path / "legacy"
    legacy.mkdir()
    (legacy / "bazel.yaml").write_text('{"theme": {"color_scheme": "neon"}}', encoding="utf-8")
    assert reset_unknown_color_scheme(legacy) is True
    text = (legacy / "bazel.yaml").read_text(encoding="utf-8")
    assert text.startswith("{")
    assert json.loads(text)["theme"]["color_scheme"] == "pika-beach"


def test_full_upgrade_of_legacy_site(tmp_path):
    root = tmp_path / "old-site"
    (root / "posts").mkdir(parents=True)
    (root / "pages").mkdir()
    (root / "bazel.yaml").write_text(
        json.dumps({"title": "Legacy", "theme": {"color_scheme": "neon"}}), encoding="utf-8"
    )
    (root / "posts" / "hello.md").write_text("---\ndate: 2024-05-06\n---\nHi", encoding="utf-8")
    (root / "public").mkdir()
    (root / "public" / "hello.html").write_text("old", encoding="utf-8")

    result = UpgradeEngine().run(root)

    assert result.start_version == "0.0.0"
    assert result.final_version == "1.4.2"
    assert len(result.applied) == len(MIGRATIONS)
    config = yaml.safe_load((root / "bazel.yaml").read_text(encoding="utf-8"))
    assert config["title"] == "Legacy"
    assert config["theme"]["color_scheme"] == "pika-beach"
    assert len(list(root.glob("bazel.yaml.json-backup.*"))) == 1
    # the rebuild replaced the migrated output with a fresh build
    assert (root / "public" / "posts" / "hello.html").exists()
    assert (root / "public" / "index.html").exists()
    assert check_site_version(root) == "1.4.2"


def test_engine_reports_failed_rebuild(site):
    def failing_build(root):
        raise BuildError("render-css", "disk full")

    engine = UpgradeEngine(recording_steps([]), tool_version="1.10.0", build=failing_build)
    with pytest.raises(UpgradeError, match="rebuild after upgrade failed"):
        engine.run(site)
    # the version was already recorded before the rebuild
    assert check_site_version(site) == "1.10.0"
