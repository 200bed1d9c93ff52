"""
Tests for configuration loading and repository selection.
"""

import pytest
from pydantic import ValidationError

from settings_sync.config import AppConfig, DatabaseConfig, RemoteConfig, SyncConfig
from settings_sync.remote import build_repository
from settings_sync.remote.rest import RestSettingsRepository
from settings_sync.remote.sql import SqlSettingsRepository


class TestConfig:
    """Test cases for the pydantic-settings configuration classes."""

    @pytest.mark.unit
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "REMOTE_BACKEND", "SYNC_RELOAD_DELAY_SECONDS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig()

        assert config.database.url == "sqlite:///settings_sync.db"
        assert config.remote.backend == "sql"
        assert config.remote.table == "user_settings"
        assert config.sync.reload_delay_seconds == 0.25
        assert config.sync.serialize_per_user is True
        assert config.log_level == "INFO"

    @pytest.mark.unit
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/settings")
        monkeypatch.setenv("LOCAL_STORE_URL", "sqlite:///device.db")
        monkeypatch.setenv("REMOTE_BACKEND", "rest")
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon-key")
        monkeypatch.setenv("SYNC_RELOAD_DELAY_SECONDS", "0")
        monkeypatch.setenv("SYNC_SERIALIZE_PER_USER", "false")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = AppConfig()

        assert config.database.url == "postgresql://app@db/settings"
        assert config.local_store.url == "sqlite:///device.db"
        assert config.remote.backend == "rest"
        assert config.remote.rest_url == "https://project.supabase.co"
        assert config.remote.api_key == "anon-key"
        assert config.sync.reload_delay_seconds == 0
        assert config.sync.serialize_per_user is False
        assert config.log_level == "DEBUG"

    @pytest.mark.unit
    def test_negative_reload_delay_rejected(self):
        with pytest.raises(ValidationError):
            SyncConfig(reload_delay_seconds=-1)

    @pytest.mark.unit
    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            RemoteConfig(timeout=0)

    @pytest.mark.unit
    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            RemoteConfig(backend="graphql")

    @pytest.mark.unit
    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        with pytest.raises(ValidationError):
            AppConfig()


class TestBuildRepository:
    """Test cases for remote backend selection."""

    @pytest.mark.unit
    def test_sql_backend(self, tmp_path):
        config = AppConfig(
            database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'remote.db'}"),
            remote=RemoteConfig(backend="sql"),
        )

        assert isinstance(build_repository(config), SqlSettingsRepository)

    @pytest.mark.unit
    def test_rest_backend(self):
        config = AppConfig(
            remote=RemoteConfig(backend="rest", rest_url="https://x.supabase.co", api_key="k")
        )

        repository = build_repository(config)

        assert isinstance(repository, RestSettingsRepository)
        assert repository.endpoint == "https://x.supabase.co/rest/v1/user_settings"

    @pytest.mark.unit
    def test_rest_backend_without_credentials_fails(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)

        with pytest.raises(ValueError):
            build_repository(AppConfig(remote=RemoteConfig(backend="rest")))
