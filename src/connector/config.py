"""Connector configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Connector settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Twenty connection
    TWENTY_DOMAIN: str = "http://localhost:3000"
    TWENTY_API_KEY: str = ""

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Schema discovery
    SCHEMA_CACHE_TTL_SECONDS: int = 600
    SCHEMA_PAGE_SIZE: int = 200
    SCHEMA_FETCH_MAX_ATTEMPTS: int = 3

    # Transport
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Record operations
    DEFAULT_LIST_LIMIT: int = 50


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
