"""Unit tests for configuration and application assembly."""

from fastapi.testclient import TestClient

from portal.core.config import (
    AppConfig,
    ErrorHandlingConfig,
    ErrorPagesConfig,
    LoggingConfig,
    Settings,
    get_settings,
)
from portal.shared.errors import ErrorMiddlewareConfig
from portal.web import ErrorPageHandlers


class TestSettings:
    """Tests for environment driven settings."""

    def test_defaults(self, monkeypatch):
        """Test development defaults."""
        for name in ("APP_ENVIRONMENT", "ERRORS_HIDE_INTERNAL_ERRORS", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.app.environment == "development"
        assert settings.app.is_production is False
        assert settings.errors.hide_internal_errors is True
        assert settings.errors.log_all_errors is True
        assert settings.error_pages.enabled is True
        assert settings.logging.format == "json"

    def test_env_prefixes(self, monkeypatch):
        """Test each section reads its own prefix."""
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        monkeypatch.setenv("ERRORS_INCLUDE_STACK_TRACE", "true")
        monkeypatch.setenv("ERROR_PAGES_SHOW_DETAILED_ERRORS", "1")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert AppConfig().is_production is True
        assert ErrorHandlingConfig().include_stack_trace is True
        assert ErrorPagesConfig().show_detailed_errors is True
        assert LoggingConfig().level == "DEBUG"

    def test_cors_origins_list(self):
        """Test comma separated origins are split and trimmed."""
        config = AppConfig(cors_origins="https://a.example, https://b.example,")

        assert config.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_settings_cached(self):
        """Test get_settings returns one instance."""
        assert get_settings() is get_settings()


class TestComponentSettings:
    """Tests for building components from settings."""

    def test_error_middleware_config(self, monkeypatch):
        """Test middleware switches come from the errors section."""
        monkeypatch.setenv("ERRORS_HIDE_INTERNAL_ERRORS", "false")
        monkeypatch.setenv("ERRORS_LOG_ALL_ERRORS", "false")

        config = ErrorMiddlewareConfig.from_settings(Settings())

        assert config.hide_internal_errors is False
        assert config.log_all_errors is False
        assert config.custom_error_handler is None

    def test_error_middleware_config_overrides(self):
        """Test explicit overrides win over settings."""
        config = ErrorMiddlewareConfig.from_settings(Settings(), include_stack_trace=True)

        assert config.include_stack_trace is True

    def test_error_pages(self, monkeypatch):
        """Test page handlers follow the error_pages section."""
        monkeypatch.setenv("ERROR_PAGES_LOG_ERRORS", "false")

        pages = ErrorPageHandlers.from_settings(Settings())

        assert pages.log_errors is False
        assert pages.show_detailed_errors is False


class TestCreateApp:
    """Smoke tests for the assembled application."""

    def test_health(self):
        """Test the health endpoint answers with the request ID header."""
        from portal.main import create_app

        client = TestClient(create_app(Settings()))

        response = client.get("/observability/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Request-ID"]

    def test_unknown_route(self):
        """Test unknown routes get the error envelope."""
        from portal.main import create_app

        client = TestClient(create_app(Settings()))

        response = client.get("/api/missing", headers={"X-Request-ID": "req-smoke"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
        assert response.json()["request_id"] == "req-smoke"
        assert response.headers["X-Error-Code"] == "NOT_FOUND"
