"""
Tests for environment configuration.
"""

import pytest

from core.config import AppConfig, DatabaseConfig, IngestConfig, ServerConfig
from core.exceptions import InvalidConfigError


class TestDatabaseConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = DatabaseConfig.from_env()
        assert config.url == "sqlite:///./data.db"
        assert config.is_sqlite is True

    def test_safe_url_hides_password(self):
        config = DatabaseConfig(url="postgresql://user:secret@db:5432/events")
        assert "secret" not in config.safe_url()
        assert config.is_sqlite is False


class TestIngestConfig:

    def test_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("INGEST_FAULT_INJECTION_ENABLED", "false")
        monkeypatch.setenv("INGEST_FORCE_FAILURE", "1")

        config = IngestConfig.from_env()
        assert config.fault_injection_enabled is False
        assert config.force_failure is True

    def test_invalid_bool(self, monkeypatch):
        monkeypatch.setenv("INGEST_FORCE_FAILURE", "maybe")
        with pytest.raises(InvalidConfigError):
            IngestConfig.from_env()

    def test_stale_minutes_minimum(self, monkeypatch):
        monkeypatch.setenv("INGEST_STALE_RECEIVED_MINUTES", "0")
        with pytest.raises(InvalidConfigError):
            IngestConfig.from_env()


class TestServerConfig:

    def test_port_from_env(self, monkeypatch):
        monkeypatch.delenv("API_PORT", raising=False)
        monkeypatch.setenv("PORT", "8080")
        assert ServerConfig.from_env().port == 8080

    def test_default_port(self, monkeypatch):
        monkeypatch.delenv("API_PORT", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        assert ServerConfig.from_env().port == 3000

    def test_invalid_port(self, monkeypatch):
        monkeypatch.setenv("API_PORT", "abc")
        with pytest.raises(InvalidConfigError):
            ServerConfig.from_env()

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(InvalidConfigError):
            ServerConfig.from_env()

    def test_cors_origins(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        assert ServerConfig.from_env().cors_origins == ["http://a.test", "http://b.test"]


def test_app_config_sections():
    config = AppConfig()
    assert config.server.port == 3000
    assert config.ingest.fault_injection_enabled is True
