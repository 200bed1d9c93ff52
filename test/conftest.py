"""
Pytest configuration and shared fixtures for the settings-sync tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from settings_sync.auth import InMemoryAuthProvider
from settings_sync.config import SyncConfig
from settings_sync.database.models import Base, LocalBase
from settings_sync.database.session import (
    close_engine,
    create_engine_for_url,
    create_session_factory,
)
from settings_sync.local_store import InMemoryKeyValueStore, LocalStoreAdapter
from settings_sync.remote.base import RemoteSettingsRepository
from settings_sync.remote.sql import SqlSettingsRepository
from settings_sync.schemas import Identity
from settings_sync.sync.engine import SyncEngine
from settings_sync.sync.notifications import Notifier


@pytest.fixture(autouse=True)
def reset_global_engine():
    """Make sure no test leaks the global remote engine into another."""
    close_engine()
    yield
    close_engine()


@pytest.fixture
def identity():
    return Identity(id="u1", email="u1@example.com")


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def local_store(kv_store):
    return LocalStoreAdapter(kv_store)


@pytest.fixture
def remote_engine(tmp_path):
    """SQLite file database with the user_settings table."""
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'remote.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def remote_session_factory(remote_engine):
    return create_session_factory(remote_engine)


@pytest.fixture
def local_session_factory(tmp_path):
    """SQLite file database with the local_storage table."""
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'local.db'}")
    LocalBase.metadata.create_all(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_repository(remote_session_factory):
    return SqlSettingsRepository(remote_session_factory)


@pytest.fixture
def fake_repository():
    """Repository double: no remote record unless a test says otherwise."""
    repo = AsyncMock(spec=RemoteSettingsRepository)
    repo.fetch_by_user.return_value = None
    repo.upsert_by_user.return_value = None
    return repo


@pytest.fixture
def notifier():
    return Mock(spec=Notifier)


@pytest.fixture
def reload():
    return Mock()


@pytest.fixture
def auth():
    return InMemoryAuthProvider()


@pytest.fixture
def sync_config():
    return SyncConfig(reload_delay_seconds=0)


@pytest.fixture
def engine(local_store, fake_repository, auth, reload, notifier, sync_config):
    return SyncEngine(
        local_store=local_store,
        repository=fake_repository,
        auth=auth,
        reload=reload,
        notifier=notifier,
        config=sync_config,
    )
