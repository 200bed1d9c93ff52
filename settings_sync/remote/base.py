"""
Remote settings repository interface.

The sync engine depends only on this interface. Implementations must keep at
most one record per user id and must report "no record yet" as ``None``,
never as an exception.
"""

from abc import ABC, abstractmethod
from typing import Optional

from settings_sync.schemas import RemoteRecord, SettingsBundle


class RemoteSettingsRepository(ABC):
    """Async access to the single remote settings record of each user."""

    @abstractmethod
    async def fetch_by_user(self, user_id: str) -> Optional[RemoteRecord]:
        """
        Fetch the record of `user_id`.

        Returns:
            The record, or None if the user has no record yet

        Raises:
            RepositoryError: On any other failure (network, permission, bad data)
        """

    @abstractmethod
    async def upsert_by_user(self, user_id: str, bundle: SettingsBundle) -> Optional[RemoteRecord]:
        """
        Insert or fully replace the record of `user_id` with `bundle`.

        The record's updated_at is set to the time of the call.

        Returns:
            The stored record when the backend returns it, else None

        Raises:
            RepositoryError: If the write fails
        """
