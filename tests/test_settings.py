"""
Tests for configuration loading
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from finance_tracker.config import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DATABASE_BACKEND",
        "DATABASE_URL",
        "DATABASE_ECHO",
        "AUTH_API_TOKENS",
        "AUTH_DEFAULT_OWNER_EMAIL",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDatabaseSettings:
    """Tests for DATABASE_* variables."""

    def test_defaults(self):
        """Test the local SQLite default."""
        settings = DatabaseSettings(_env_file=None)
        assert settings.backend == "sql"
        assert settings.url == "sqlite:///finance_tracker.db"
        assert settings.echo is False

    def test_postgres_scheme_normalized(self, monkeypatch):
        """Test that postgres:// URLs are rewritten for SQLAlchemy."""
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/finance")
        assert DatabaseSettings().url == "postgresql://u:p@db:5432/finance"

    def test_unknown_backend_rejected(self, monkeypatch):
        """Test that only sql and memory are accepted."""
        monkeypatch.setenv("DATABASE_BACKEND", "mongo")
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


class TestAuthSettings:
    """Tests for AUTH_* variables."""

    def test_api_tokens_parsed_from_json(self, monkeypatch):
        """Test that the token map is read as a JSON object."""
        monkeypatch.setenv("AUTH_API_TOKENS", '{"abc": 3}')
        assert AuthSettings().api_tokens == {"abc": 3}

    def test_owner_override(self, monkeypatch):
        """Test overriding the seeded owner."""
        monkeypatch.setenv("AUTH_DEFAULT_OWNER_EMAIL", "me@example.org")
        assert AuthSettings().default_owner_email == "me@example.org"


class TestAppSettings:
    """Tests for application-wide settings."""

    def test_log_level_case_insensitive(self, monkeypatch):
        """Test that the level is upper-cased before validation."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_bad_log_level_rejected(self, monkeypatch):
        """Test that unknown levels are refused."""
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(PydanticValidationError):
            AppSettings()


class TestSettingsRoot:
    """Tests for the cached root and the validation report."""

    def test_cached(self):
        """Test that get_settings returns the same object until cleared."""
        assert get_settings() is get_settings()

    def test_validate_all_settings(self, monkeypatch):
        """Test that a broken section is reported without hiding the others."""
        monkeypatch.setenv("DATABASE_BACKEND", "mongo")
        results = validate_all_settings()
        assert results["database"] is False
        assert "database_error" in results
        assert results["auth"] is True
        assert results["app"] is True
