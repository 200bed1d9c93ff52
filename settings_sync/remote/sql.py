"""
SQLAlchemy-backed remote settings repository.

Blocking session work runs in a worker thread via asyncio.to_thread so the
event loop is never blocked by a database round-trip.
"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from settings_sync.database.repositories import UserSettingsRepository
from settings_sync.database.session import get_session, get_session_factory
from settings_sync.exceptions import RepositoryError
from settings_sync.remote.base import RemoteSettingsRepository
from settings_sync.schemas import RemoteRecord, SettingsBundle


class SqlSettingsRepository(RemoteSettingsRepository):
    """
    Remote repository over the `user_settings` table.

    Args:
        session_factory: Factory for sessions on the remote database;
            defaults to the global factory from settings.database
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or get_session_factory()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _fetch(self, user_id: str) -> Optional[RemoteRecord]:
        try:
            with get_session(self.session_factory) as session:
                row = UserSettingsRepository(session).get_by_user_id(user_id)
                if row is None:
                    return None
                return RemoteRecord.from_db_model(row)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to fetch settings: {e}") from e
        except (ValueError, ValidationError) as e:
            raise RepositoryError(f"Malformed settings row: {e}") from e

    def _upsert(self, user_id: str, bundle: SettingsBundle) -> RemoteRecord:
        try:
            with get_session(self.session_factory) as session:
                row = UserSettingsRepository(session).upsert(user_id, bundle.slots())
                return RemoteRecord.from_db_model(row)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Failed to save settings: {e}") from e
        except (ValueError, ValidationError) as e:
            raise RepositoryError(f"Malformed settings row: {e}") from e

    async def fetch_by_user(self, user_id: str) -> Optional[RemoteRecord]:
        self.logger.debug(f"Fetching settings | user_id={user_id}")
        return await asyncio.to_thread(self._fetch, user_id)

    async def upsert_by_user(self, user_id: str, bundle: SettingsBundle) -> RemoteRecord:
        self.logger.debug(f"Upserting settings | user_id={user_id}")
        return await asyncio.to_thread(self._upsert, user_id, bundle)
