"""Runtime settings for the feed translator."""

import os
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ValidationError, model_validator

from feed_translator.cache.freshness import FreshnessWindow
from feed_translator.config.feeds import DEFAULT_FEEDS_PATH
from feed_translator.core.errors import ConfigurationError
from feed_translator.translator.client import TranslationSettings

# Environment variable for every settings field
ENV_VARS: Dict[str, str] = {
    "provider": "PROVIDER",
    "model": "MODEL",
    "api_key": "API_KEY",
    "target_language": "TARGET_LANGUAGE",
    "feeds_config": "FEEDS_CONFIG",
    "fresh_ttl": "FRESH_TTL",
    "hard_ttl": "HARD_TTL",
    "config_ttl": "CONFIG_TTL",
    "cache_backend": "CACHE_BACKEND",
    "cache_db_path": "CACHE_DB_PATH",
    "fetch_timeout": "FETCH_TIMEOUT",
    "translate_timeout": "TRANSLATE_TIMEOUT",
    "environment": "ENVIRONMENT",
    "log_level": "LOG_LEVEL",
    "host": "HOST",
    "port": "PORT",
}


class Settings(BaseModel):
    """Settings of one feed translator process.

    Attributes:
        provider: Translation provider identifier
        model: Translation model identifier
        api_key: Translation provider credential
        target_language: Language titles are translated to
        feeds_config: Path of the feeds configuration JSON document
        fresh_ttl: Seconds a generated feed is served without revalidation
        hard_ttl: Seconds after which the store evicts a generated feed
        config_ttl: Seconds the feeds configuration stays cached
        cache_backend: Store implementation, memory or sqlite
        cache_db_path: Database file of the sqlite store
        fetch_timeout: Timeout in seconds for fetching a feed
        translate_timeout: Timeout in seconds for one translation call
        environment: Deployment environment name, "dev" enables debug logs
        log_level: Log level name
        host: HTTP bind address
        port: HTTP port
    """

    provider: str = ""
    model: str = ""
    api_key: str = ""
    target_language: str = "Chinese"
    feeds_config: str = str(DEFAULT_FEEDS_PATH)
    fresh_ttl: int = 7200
    hard_ttl: int = 7260
    config_ttl: int = 86400
    cache_backend: Literal["memory", "sqlite"] = "memory"
    cache_db_path: str = "./data/cache.db"
    fetch_timeout: float = 30.0
    translate_timeout: float = 60.0
    environment: str = "production"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8787

    @model_validator(mode="after")
    def check_window(self) -> "Settings":
        if self.fresh_ttl >= self.hard_ttl:
            raise ValueError(
                f"FRESH_TTL ({self.fresh_ttl}) must be lower than HARD_TTL ({self.hard_ttl})"
            )
        if self.config_ttl <= 0:
            raise ValueError("CONFIG_TTL must be positive")
        return self

    @classmethod
    def from_env(cls, overrides: Optional[Dict[str, Any]] = None) -> "Settings":
        """Create Settings from environment variables.

        Args:
            overrides: Values taking precedence over the environment

        Raises:
            ConfigurationError: If a value is invalid
        """
        values: Dict[str, Any] = {
            field: os.environ[env_var] for field, env_var in ENV_VARS.items() if os.getenv(env_var)
        }
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    @property
    def window(self) -> FreshnessWindow:
        return FreshnessWindow(fresh_ttl=self.fresh_ttl, hard_ttl=self.hard_ttl)

    @property
    def translation(self) -> TranslationSettings:
        return TranslationSettings(
            provider=self.provider,
            model=self.model,
            api_key=self.api_key,
            target_language=self.target_language,
            timeout=self.translate_timeout,
        )

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"
