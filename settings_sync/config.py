"""
Configuration module for the settings synchronization layer.

This module uses Pydantic Settings to load and validate environment variables
from a .env file. Each concern (remote database, local store, remote backend,
sync behaviour) has its own config class, and a global `settings` instance
provides singleton access throughout the package.

Usage:
    ```python
    from settings_sync.config import settings

    db_url = settings.database.url
    backend = settings.remote.backend
    delay = settings.sync.reload_delay_seconds
    ```

Environment Variables:
    DATABASE_URL, DATABASE_ECHO, LOCAL_STORE_URL, REMOTE_BACKEND, SUPABASE_URL,
    SUPABASE_KEY, SUPABASE_ACCESS_TOKEN, REMOTE_TABLE, REMOTE_TIMEOUT,
    SYNC_RELOAD_DELAY_SECONDS, SYNC_SERIALIZE_PER_USER, LOG_LEVEL
"""

from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


project_root: Path = Path(__file__).parent.parent
env_path: Path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)


class DatabaseConfig(BaseSettings):
    """
    Remote settings database configuration.

    Attributes:
        url: SQLAlchemy connection string (PostgreSQL in production,
            SQLite for local development and tests)
        echo: Enable SQLAlchemy query logging
        pool_size: Connections kept in the pool (ignored for SQLite)
        max_overflow: Extra connections beyond pool_size (ignored for SQLite)
        pool_recycle: Seconds before a pooled connection is recycled
        pool_timeout: Seconds to wait for a pooled connection
    """

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="", case_sensitive=True, populate_by_name=True
    )

    url: str = Field(
        default="sqlite:///settings_sync.db",
        alias="DATABASE_URL",
        description="Remote settings database connection string",
    )
    echo: bool = Field(default=False, alias="DATABASE_ECHO", description="SQLAlchemy echo mode")
    pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(default=10, alias="DATABASE_MAX_OVERFLOW")
    pool_recycle: int = Field(default=3600, alias="DATABASE_POOL_RECYCLE")
    pool_timeout: int = Field(default=30, alias="DATABASE_POOL_TIMEOUT")


class LocalStoreConfig(BaseSettings):
    """
    Device-local key-value store configuration.

    Attributes:
        url: SQLAlchemy connection string of the local store database
    """

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="LOCAL_STORE_", case_sensitive=False
    )

    url: str = Field(
        default="sqlite:///local_storage.db",
        description="Local key-value store connection string",
    )


class RemoteConfig(BaseSettings):
    """
    Remote settings repository configuration.

    The `sql` backend talks to the settings table directly through
    SQLAlchemy; the `rest` backend goes through a PostgREST (Supabase) API.

    Attributes:
        backend: 'sql' or 'rest'
        rest_url: Base URL of the PostgREST/Supabase project
        api_key: Anonymous/public API key sent as the `apikey` header
        access_token: JWT of the signed-in user (row-level security)
        table: Name of the settings table
        timeout: HTTP timeout in seconds
    """

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="", case_sensitive=True, populate_by_name=True
    )

    backend: Literal["sql", "rest"] = Field(default="sql", alias="REMOTE_BACKEND")
    rest_url: str | None = Field(default=None, alias="SUPABASE_URL")
    api_key: str | None = Field(default=None, alias="SUPABASE_KEY")
    access_token: str | None = Field(default=None, alias="SUPABASE_ACCESS_TOKEN")
    table: str = Field(default="user_settings", alias="REMOTE_TABLE")
    timeout: float = Field(default=30.0, alias="REMOTE_TIMEOUT")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class SyncConfig(BaseSettings):
    """
    Sync engine behaviour.

    Attributes:
        reload_delay_seconds: Pause between the "will reload" notification
            and the reload trigger after remote settings are applied
        serialize_per_user: Run at most one reconcile/export per user id at a time
    """

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="SYNC_", case_sensitive=False
    )

    reload_delay_seconds: float = Field(default=0.25)
    serialize_per_user: bool = Field(default=True)

    @field_validator("reload_delay_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """
        Validate that the reload delay is not negative.

        Raises:
            ValueError: If the delay is negative
        """
        if v < 0:
            raise ValueError("Reload delay must not be negative")
        return v


class AppConfig(BaseSettings):
    """
    Main application configuration.

    Aggregates the nested configs. Each nested config reads its own
    environment variables; passing one as a keyword argument overrides it,
    which is how tests inject configuration.
    """

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=str(env_path) if env_path.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    database: DatabaseConfig
    local_store: LocalStoreConfig
    remote: RemoteConfig
    sync: SyncConfig
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def __init__(self, **kwargs: Any) -> None:
        if env_path.exists():
            load_dotenv(env_path)
        else:
            load_dotenv()

        if "database" not in kwargs:
            kwargs["database"] = DatabaseConfig()
        if "local_store" not in kwargs:
            kwargs["local_store"] = LocalStoreConfig()
        if "remote" not in kwargs:
            kwargs["remote"] = RemoteConfig()
        if "sync" not in kwargs:
            kwargs["sync"] = SyncConfig()

        super().__init__(**kwargs)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


settings: AppConfig = AppConfig()
