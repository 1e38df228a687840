from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the site registry and editor away from the real user environment."""
    monkeypatch.setenv("BAZEL_REGISTRY", str(tmp_path / "registry" / "sites.json"))
    monkeypatch.setenv("BAZEL_SKIP_EDITOR", "1")
    monkeypatch.delenv("BAZEL_LOG_LEVEL", raising=False)


def make_site(root: Path, config: str = "title: Test Site\n") -> Path:
    (root / "posts").mkdir(parents=True)
    (root / "pages").mkdir()
    (root / "bazel.yaml").write_text(config, encoding="utf-8")
    return root


@pytest.fixture
def site(tmp_path):
    return make_site(tmp_path / "site")
