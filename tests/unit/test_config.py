"""Unit tests for configuration management."""

import os
from collections.abc import Generator

import pytest

from order_intake.shared.config import Settings, get_settings


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before and after test."""
    original_env = dict(os.environ)
    env_vars = [k for k in os.environ if k.upper().startswith("APP_")]
    for var in env_vars:
        del os.environ[var]
    yield
    os.environ.clear()
    os.environ.update(original_env)


def test_settings_defaults(clean_env: None) -> None:
    """Test that settings have correct default values."""
    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.service_name == "order-intake"
    assert settings.extraction_provider == "openai"
    assert settings.openai_model == "gpt-4o"
    assert settings.extraction_temperature == 0.1
    assert settings.extraction_max_tokens == 2000
    assert settings.max_text_chars == 15000
    assert settings.storage_bucket == "invoices"
    assert settings.cors_allow_origin == "*"


def test_settings_from_env_vars(clean_env: None) -> None:
    """Test that settings can be overridden via environment variables."""
    os.environ["APP_ENVIRONMENT"] = "production"
    os.environ["APP_LOG_LEVEL"] = "ERROR"
    os.environ["APP_MAX_TEXT_CHARS"] = "5000"
    os.environ["APP_EXTRACTION_PROVIDER"] = "ollama"

    settings = Settings(_env_file=None)

    assert settings.environment == "production"
    assert settings.log_level == "ERROR"
    assert settings.max_text_chars == 5000
    assert settings.extraction_provider == "ollama"


def test_settings_case_insensitive(clean_env: None) -> None:
    """Test that environment variables are case insensitive."""
    os.environ["app_log_level"] = "DEBUG"

    settings = Settings(_env_file=None)

    assert settings.log_level == "DEBUG"


def test_missing_required_lists_unset_values(clean_env: None) -> None:
    """Missing credentials are reported for fail-fast startup checks."""
    settings = Settings(_env_file=None)

    assert settings.missing_required() == [
        "APP_OPENAI_API_KEY",
        "APP_STORAGE_ACCESS_KEY",
        "APP_STORAGE_SECRET_KEY",
    ]


def test_missing_required_ollama_needs_no_api_key(clean_env: None) -> None:
    settings = Settings(
        _env_file=None,
        extraction_provider="ollama",
        storage_access_key="access",
        storage_secret_key="secret",
    )

    assert settings.missing_required() == []


def test_missing_required_fully_configured(clean_env: None) -> None:
    settings = Settings(
        _env_file=None,
        openai_api_key="sk-test",
        storage_access_key="access",
        storage_secret_key="secret",
    )

    assert settings.missing_required() == []


def test_invalid_budget_rejected(clean_env: None) -> None:
    """Non-positive text budget is a configuration error."""
    with pytest.raises(ValueError):
        Settings(_env_file=None, max_text_chars=0)


def test_get_settings_factory() -> None:
    """Test that factory function returns Settings instance."""
    settings = get_settings()

    assert isinstance(settings, Settings)
