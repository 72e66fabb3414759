"""
Configuration Management for the Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Each concern gets its own settings class with its own env prefix, so a
deployment only has to set what it actually changes.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Ledger store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="sql",
        pattern="^(sql|memory)$",
        description="Store backend: 'sql' (SQLAlchemy) or 'memory'"
    )
    url: str = Field(
        default="sqlite:///finance_tracker.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging only)"
    )

    @field_validator('url')
    @classmethod
    def normalize_postgres_scheme(cls, v: str) -> str:
        """Hosted Postgres providers hand out postgres:// URLs; SQLAlchemy wants postgresql://."""
        if v.startswith("postgres://"):
            return "postgresql://" + v[len("postgres://"):]
        return v


class AuthSettings(BaseSettings):
    """Identity resolution and default owner seed."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_owner_email: str = Field(
        default="owner@example.com",
        description="Email of the user seeded on first start"
    )
    default_owner_name: str = Field(
        default="Default Owner",
        description="Display name of the seeded user"
    )
    default_owner_password: str = Field(
        default="change-me",
        min_length=1,
        description="Credential of the seeded user"
    )
    api_tokens: dict[str, int] = Field(
        default_factory=dict,
        description="Bearer token to user id map, as a JSON object"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for emitted log records"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (otherwise human-readable console output)"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    ``<name>_error`` entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("database", "auth", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
