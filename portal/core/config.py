"""
Application configuration.
All values come from environment variables (or .env); defaults suit development.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """General application settings."""

    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore")

    name: str = "portal"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    # Comma-separated list of allowed origins
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = "INFO"
    # json | console
    format: str = "json"
    # stdout | stderr | path to a file
    output: str = "stdout"
    include_stack_trace: bool = False
    include_caller: bool = True


class ErrorHandlingConfig(BaseSettings):
    """HTTP error middleware settings."""

    model_config = SettingsConfigDict(env_prefix="ERRORS_", env_file=".env", extra="ignore")

    include_stack_trace: bool = False
    log_all_errors: bool = True
    log_request_details: bool = True
    hide_internal_errors: bool = True


class ErrorPagesConfig(BaseSettings):
    """HTML error page settings."""

    model_config = SettingsConfigDict(env_prefix="ERROR_PAGES_", env_file=".env", extra="ignore")

    enabled: bool = True
    show_detailed_errors: bool = False
    log_errors: bool = True


class Settings:
    """Aggregate of all configuration sections."""

    def __init__(self) -> None:
        self.app = AppConfig()
        self.logging = LoggingConfig()
        self.errors = ErrorHandlingConfig()
        self.error_pages = ErrorPagesConfig()


@lru_cache
def get_settings() -> Settings:
    """Get the settings singleton (cached)."""
    return Settings()


settings = get_settings()
