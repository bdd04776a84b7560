"""
Unit tests for configuration loading.
"""

from shared.config import get_config


class TestConfig:
    """Test cases for ServiceConfig."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TASKFLOW_POSTGRES_DSN", raising=False)

        config = get_config("auth", 8010)

        assert config.service_name == "auth"
        assert config.port == 8010
        assert config.host == "0.0.0.0"
        assert config.postgres_dsn == "postgres://localhost:5432/taskflow"
        assert config.identity_audience is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TASKFLOW_POSTGRES_DSN", "postgres://db:5432/other")
        monkeypatch.setenv("TASKFLOW_IDENTITY_AUDIENCE", "taskflow-api")
        monkeypatch.setenv("TASKFLOW_JWKS_CACHE_TTL", "60")

        config = get_config("auth", 8010)

        assert config.postgres_dsn == "postgres://db:5432/other"
        assert config.identity_audience == "taskflow-api"
        assert config.jwks_cache_ttl == 60

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("TASKFLOW_LOG_LEVEL", "debug")

        config = get_config("auth", 8010, log_level="warning")

        assert config.log_level == "warning"
