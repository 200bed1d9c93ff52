"""
Remote settings repositories.

- RemoteSettingsRepository: async interface used by the sync engine
- SqlSettingsRepository: direct SQLAlchemy access to the settings table
- RestSettingsRepository: PostgREST/Supabase HTTP API
"""

from settings_sync.config import AppConfig
from settings_sync.database.session import create_session_factory, init_engine

from .base import RemoteSettingsRepository
from .rest import RestSettingsRepository
from .sql import SqlSettingsRepository


def build_repository(config: AppConfig) -> RemoteSettingsRepository:
    """Create the repository selected by `config.remote.backend`."""
    if config.remote.backend == "rest":
        return RestSettingsRepository(config.remote)
    return SqlSettingsRepository(create_session_factory(init_engine(config.database)))


__all__ = [
    "RemoteSettingsRepository",
    "RestSettingsRepository",
    "SqlSettingsRepository",
    "build_repository",
]
