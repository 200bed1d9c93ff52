"""
Repository pattern implementation for database operations.

Repositories wrap a SQLAlchemy session and never commit; the caller owns the
transaction (normally through `get_session`).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from settings_sync.database.models import LocalSlot, UserSettings
from settings_sync.schemas import SLOT_NAMES

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository class providing common operations.

    Type Parameters:
        T: The SQLAlchemy model type this repository works with

    Attributes:
        session: SQLAlchemy session for database operations
        model: The model class this repository manages
    """

    def __init__(self, session: Session, model: type[T]) -> None:
        self.session = session
        self.model = model

    def get_by_id(self, id: Any) -> Optional[T]:
        """
        Get a record by its primary key.

        Returns:
            Model instance if found, None otherwise
        """
        return self.session.get(self.model, id)

    def delete(self, id: Any) -> bool:
        """
        Delete a record by its primary key.

        Returns:
            True if deleted, False if not found

        Note:
            Does not commit - caller must commit the session
        """
        instance = self.get_by_id(id)
        if instance:
            self.session.delete(instance)
            self.session.flush()
            return True
        return False

    def count(self) -> int:
        return self.session.query(self.model).count()

    def query(self) -> Any:
        """Get base query object for custom queries."""
        return self.session.query(self.model)


class UserSettingsRepository(BaseRepository[UserSettings]):
    """
    Repository for the per-user settings table.

    At most one row exists per user id; `upsert` inserts a new row or
    replaces every slot of the existing one.
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, UserSettings)

    def get_by_user_id(self, user_id: str) -> Optional[UserSettings]:
        """
        Get a user's settings row, bypassing stale identity-map state.

        Returns:
            UserSettings instance if found, None otherwise
        """
        return (
            self.query()
            .populate_existing()
            .filter(UserSettings.user_id == user_id)
            .one_or_none()
        )

    def upsert(self, user_id: str, slots: Mapping[str, List[Any]]) -> UserSettings:
        """
        Insert or fully replace the settings row for `user_id`.

        Args:
            user_id: Owning user id (conflict target)
            slots: Value for each of the five slots; missing slots are
                written as empty lists

        Returns:
            The stored row

        Note:
            Does not commit - caller must commit the session
        """
        values: Dict[str, Any] = {name: list(slots.get(name) or []) for name in SLOT_NAMES}
        values["updated_at"] = datetime.now(timezone.utc)

        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return self._merge(user_id, values)

        statement = insert(UserSettings).values(user_id=user_id, **values)
        statement = statement.on_conflict_do_update(
            index_elements=[UserSettings.user_id],
            set_=values,
        )
        self.session.execute(statement)
        self.session.flush()

        row = self.get_by_user_id(user_id)
        if row is None:
            raise SQLAlchemyError(f"Upserted settings row vanished for user_id={user_id}")
        return row

    def _merge(self, user_id: str, values: Dict[str, Any]) -> UserSettings:
        """Get-then-write fallback for dialects without ON CONFLICT."""
        row = self.get_by_user_id(user_id)
        if row is None:
            row = UserSettings(user_id=user_id, **values)
            self.session.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        self.session.flush()
        return row


class LocalSlotRepository(BaseRepository[LocalSlot]):
    """Repository for the device-local key-value table."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, LocalSlot)

    def get_value(self, key: str) -> Optional[str]:
        slot = self.get_by_id(key)
        return slot.value if slot is not None else None

    def set_value(self, key: str, value: str) -> LocalSlot:
        slot = self.get_by_id(key)
        if slot is None:
            slot = LocalSlot(key=key, value=value)
            self.session.add(slot)
        else:
            slot.value = value
        self.session.flush()
        return slot

    def keys(self) -> List[str]:
        return [key for (key,) in self.session.query(LocalSlot.key).order_by(LocalSlot.key)]
