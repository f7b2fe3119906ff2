"""
Unit tests for settings
"""

from pathlib import Path

from core.config import Settings, ensure_directory


def test_defaults():
    settings = Settings()

    assert settings.EXTRA_RELATION_IDS == [2186646, 1703814]
    assert "{relation_id}" in settings.RELATION_API_URL
    assert settings.relations_dir == settings.BUILD_DIR / "relations"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("EXTRA_RELATION_IDS", "[1, 2, 3]")
    monkeypatch.setenv("MAX_CONCURRENT_REQUESTS", "2")
    monkeypatch.setenv("BUILD_DIR", "/tmp/osm-build")

    settings = Settings()

    assert settings.EXTRA_RELATION_IDS == [1, 2, 3]
    assert settings.MAX_CONCURRENT_REQUESTS == 2
    assert settings.relations_dir == Path("/tmp/osm-build/relations")


def test_ensure_directory(tmp_path):
    path = ensure_directory(tmp_path / "a" / "b")

    assert path.is_dir()


def test_unknown_environment_variables_ignored(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")

    settings = Settings()

    assert not hasattr(settings, "ENVIRONMENT")
