"""Configuration management using Pydantic Settings.

Settings are grouped by concern:
- DatabaseConfig: connection URL, pooling and SQLite lock handling
- LoggingConfig: console/file levels and log file location
- CredentialsConfig: external catalog credentials
- CatalogConfig: external catalog retries and token lifetime
- ConsistencyConfig: conflict retries and query defaults
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database connection and pooling configuration."""

    url: str = "sqlite+aiosqlite:///data/tunelink.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    busy_timeout_ms: int = 30000


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("data/tunelink.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """External catalog credentials."""

    spotify_client_id: str = ""
    spotify_client_secret: str = ""


class CatalogConfig(BaseModel):
    """External catalog client behaviour."""

    market: str = "US"
    retry_count: int = 3
    retry_max_time: float = 30.0
    request_timeout: float = 10.0
    token_ttl_seconds: int = 3600
    token_refresh_margin_seconds: int = 60


class ConsistencyConfig(BaseModel):
    """Relational consistency tuning."""

    write_conflict_retries: int = 3
    recommendation_limit: int = 10


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can use flat names (DATABASE_URL, SPOTIFY_CLIENT_ID)
    or nested names (DATABASE__URL, CATALOG__RETRY_COUNT).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    catalog: CatalogConfig = CatalogConfig()
    consistency: ConsistencyConfig = ConsistencyConfig()

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Map flat environment variables (DATABASE_URL) onto nested groups."""
        if not isinstance(data, dict):
            return data

        mappings = {
            "database": {
                "database_url": "url",
                "database_echo": "echo",
                "database_pool_size": "pool_size",
                "database_busy_timeout_ms": "busy_timeout_ms",
            },
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
            },
            "credentials": {
                "spotify_client_id": "spotify_client_id",
                "spotify_client_secret": "spotify_client_secret",
            },
        }

        # Flat names are not declared fields, so read them from the environment too
        for group, mapping in mappings.items():
            for env_key, field_key in mapping.items():
                value = data.pop(env_key, None) or os.environ.get(env_key.upper())
                if value is None:
                    continue
                section = data.setdefault(group, {})
                if isinstance(section, dict):
                    section.setdefault(field_key, value)

        return data


# Singleton instance for application use
settings = Settings()
