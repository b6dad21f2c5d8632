"""Tests for settings."""

from py_isle.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PY_ISLE_MAX_RADIUS", raising=False)
        settings = Settings()
        assert settings.default_radius == 20
        assert settings.default_radius <= settings.max_radius
        assert settings.generation_cache_size > 0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PY_ISLE_MAX_RADIUS", "30")
        monkeypatch.setenv("PY_ISLE_LOG_FORMAT", "plain")
        settings = Settings()
        assert settings.max_radius == 30
        assert settings.log_format == "plain"

    def test_cors_origins(self):
        settings = Settings(allowed_origins="http://a.test, http://b.test")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
