"""
Local store adapter for the device-scoped settings bundle.

The host application keeps each settings slot as a JSON string under a fixed
key of a string key-value store. This module provides:
- KeyValueStore: the minimal store interface (get/set/remove/keys)
- InMemoryKeyValueStore: dict-backed store for tests and embedding
- SqlKeyValueStore: SQLAlchemy-backed store persisted in a local database
- LocalStoreAdapter: reads and writes whole SettingsBundle slots
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from settings_sync.database.repositories import LocalSlotRepository
from settings_sync.database.session import get_session
from settings_sync.exceptions import LocalStoreError
from settings_sync.schemas import SLOT_NAMES, SettingsBundle

logger = logging.getLogger(__name__)

# Slot name -> literal storage key used by the client application.
STORAGE_KEYS: Dict[str, str] = {
    "folders": "poker-ranges-folders",
    "action_buttons": "poker-ranges-actions",
    "trainings": "training-sessions",
    "statistics": "training-statistics",
    "charts": "userCharts",
}


class KeyValueStore(ABC):
    """String-to-string store with localStorage-like semantics."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove `key` if present."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return all stored keys."""


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._items)


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store persisted in the `local_storage` table.

    Every call runs in its own short transaction. SQLAlchemy failures are
    re-raised as LocalStoreError.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        try:
            with get_session(self.session_factory) as session:
                return LocalSlotRepository(session).get_value(key)
        except SQLAlchemyError as e:
            raise LocalStoreError(f"Failed to read local key '{key}': {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with get_session(self.session_factory) as session:
                LocalSlotRepository(session).set_value(key, value)
        except SQLAlchemyError as e:
            raise LocalStoreError(f"Failed to write local key '{key}': {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with get_session(self.session_factory) as session:
                LocalSlotRepository(session).delete(key)
        except SQLAlchemyError as e:
            raise LocalStoreError(f"Failed to remove local key '{key}': {e}") from e

    def keys(self) -> List[str]:
        try:
            with get_session(self.session_factory) as session:
                return LocalSlotRepository(session).keys()
        except SQLAlchemyError as e:
            raise LocalStoreError(f"Failed to list local keys: {e}") from e


class LocalStoreAdapter:
    """
    Reads and writes the settings bundle slots of a KeyValueStore.

    Reading never fails on bad data: a missing, malformed or non-list slot
    value reads as an empty list. Writing replaces each given slot in full
    and leaves the other slots untouched.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_keys: Mapping[str, str] | None = None,
    ) -> None:
        self.store = store
        self.storage_keys: Dict[str, str] = dict(storage_keys or STORAGE_KEYS)
        self.logger = logging.getLogger(self.__class__.__name__)

    def _read_slot(self, name: str) -> List[Any]:
        key = self.storage_keys[name]
        raw = self.store.get_item(key)
        if raw is None:
            return []

        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            self.logger.warning(f"Discarding unparseable local slot | slot={name}, key={key}, error={e}")
            return []

        if not isinstance(value, list):
            self.logger.warning(
                f"Discarding local slot with unexpected shape | slot={name}, key={key}, "
                f"type={type(value).__name__}"
            )
            return []
        return value

    def read_bundle(self) -> SettingsBundle:
        """
        Read all five slots.

        Raises:
            LocalStoreError: If the backing store itself fails
        """
        return SettingsBundle(**{name: self._read_slot(name) for name in SLOT_NAMES})

    def write_bundle(self, partial: Mapping[str, Any] | SettingsBundle) -> List[str]:
        """
        Overwrite the slots present in `partial`.

        Args:
            partial: Slot name -> list of records, or a full SettingsBundle.
                Slots that are absent or None are left untouched.

        Returns:
            Names of the slots that were written

        Raises:
            LocalStoreError: If the backing store fails
            KeyError: If `partial` names an unknown slot
        """
        slots = partial.slots() if isinstance(partial, SettingsBundle) else dict(partial)

        unknown = set(slots) - set(SLOT_NAMES)
        if unknown:
            raise KeyError(f"Unknown settings slots: {sorted(unknown)}")

        written: List[str] = []
        for name in SLOT_NAMES:
            value = slots.get(name)
            if value is None:
                continue
            self.store.set_item(self.storage_keys[name], json.dumps(list(value), ensure_ascii=False))
            written.append(name)

        self.logger.debug(f"Local slots written | slots={written}")
        return written
