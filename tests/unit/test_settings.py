"""Tests for runtime settings."""

import pytest

from feed_translator.config.settings import ENV_VARS, Settings
from feed_translator.core.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Fixture removing settings variables from the environment."""
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


def test_defaults():
    """Test the default settings."""
    settings = Settings.from_env()

    assert settings.fresh_ttl == 7200
    assert settings.hard_ttl == 7260
    assert settings.config_ttl == 86400
    assert settings.cache_backend == "memory"
    assert settings.target_language == "Chinese"
    assert settings.port == 8787
    assert settings.window.cache_control == "public, max-age=7200, stale-while-revalidate=60"


def test_from_env(monkeypatch):
    """Test reading settings from the environment."""
    monkeypatch.setenv("PROVIDER", "cohere")
    monkeypatch.setenv("MODEL", "command-r")
    monkeypatch.setenv("API_KEY", "secret")
    monkeypatch.setenv("FRESH_TTL", "600")
    monkeypatch.setenv("HARD_TTL", "900")
    monkeypatch.setenv("CACHE_BACKEND", "sqlite")
    monkeypatch.setenv("TRANSLATE_TIMEOUT", "12.5")
    monkeypatch.setenv("ENVIRONMENT", "dev")

    settings = Settings.from_env()

    assert settings.window.fresh_ttl == 600
    assert settings.window.hard_ttl == 900
    assert settings.cache_backend == "sqlite"
    assert settings.is_dev
    translation = settings.translation
    assert (translation.provider, translation.model, translation.api_key) == (
        "cohere",
        "command-r",
        "secret",
    )
    assert translation.timeout == 12.5


def test_overrides_take_precedence(monkeypatch):
    """Test that explicit values beat the environment and None is ignored."""
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("FEEDS_CONFIG", "/env/feeds.json")

    settings = Settings.from_env({"log_level": "DEBUG", "feeds_config": None})

    assert settings.log_level == "DEBUG"
    assert settings.feeds_config == "/env/feeds.json"


@pytest.mark.parametrize(
    "env",
    [
        {"FRESH_TTL": "7200", "HARD_TTL": "60"},
        {"FRESH_TTL": "60", "HARD_TTL": "60"},
        {"CONFIG_TTL": "-1"},
        {"CACHE_BACKEND": "redis"},
        {"PORT": "not-a-port"},
    ],
)
def test_invalid_settings(monkeypatch, env):
    """Test that invalid values raise ConfigurationError."""
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError):
        Settings.from_env()
