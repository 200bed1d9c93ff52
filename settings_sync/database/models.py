"""
Database models for the settings synchronization layer.

Two independent declarative bases are defined because the tables live in
different databases:
- Base: the remote `user_settings` table, one row per user
- LocalBase: the device-local `local_storage` key-value table
"""

from datetime import datetime
from typing import Any, List

from sqlalchemy import DDL, JSON, DateTime, String, Text, event, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite stores it as text).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for remote database models."""

    pass


class LocalBase(DeclarativeBase):
    """Base class for device-local database models."""

    pass


def _slot_column(doc: str) -> Mapped[List[Any] | None]:
    return mapped_column(
        JSONDocument,
        nullable=True,
        server_default=text("'[]'"),
        doc=doc,
    )


class UserSettings(Base):
    """
    Model for a user's synchronized settings.

    Each slot column holds a JSON array of opaque records. The row is always
    written as a whole; `updated_at` is refreshed on every write.

    Attributes:
        user_id: Identity of the owning user (unique, primary key)
        folders: Folder structure and ranges
        action_buttons: Custom action buttons
        trainings: Training session configurations
        statistics: Training statistics
        charts: User-created charts
        updated_at: Timestamp of the last write
    """

    __tablename__ = "user_settings"

    user_id: Mapped[str] = mapped_column(
        String(64), primary_key=True, doc="Owning user id"
    )
    folders: Mapped[List[Any] | None] = _slot_column("Folders and ranges")
    action_buttons: Mapped[List[Any] | None] = _slot_column("Custom action buttons")
    trainings: Mapped[List[Any] | None] = _slot_column("Training sessions")
    statistics: Mapped[List[Any] | None] = _slot_column("Training statistics")
    charts: Mapped[List[Any] | None] = _slot_column("User charts")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Timestamp when the row was last written",
    )

    def __repr__(self) -> str:
        return f"<UserSettings(user_id='{self.user_id}', updated_at={self.updated_at})>"


class LocalSlot(LocalBase):
    """
    One entry of the device-local key-value store.

    Values are stored verbatim as strings; the local store adapter is
    responsible for JSON encoding and decoding.
    """

    __tablename__ = "local_storage"

    key: Mapped[str] = mapped_column(String(255), primary_key=True, doc="Storage key")
    value: Mapped[str] = mapped_column(Text, nullable=False, doc="Stored string value")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LocalSlot(key='{self.key}', length={len(self.value or '')})>"


# Server-side updated_at refresh on PostgreSQL, for writers that bypass the ORM.
_updated_at_function = DDL(
    """
    CREATE OR REPLACE FUNCTION handle_updated_at()
    RETURNS TRIGGER AS $$
    BEGIN
      NEW.updated_at = now();
      RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """
)
_updated_at_trigger = DDL(
    """
    CREATE TRIGGER on_user_settings_update
      BEFORE UPDATE ON user_settings
      FOR EACH ROW
      EXECUTE PROCEDURE handle_updated_at()
    """
)
event.listen(
    UserSettings.__table__,
    "after_create",
    _updated_at_function.execute_if(dialect="postgresql"),
)
event.listen(
    UserSettings.__table__,
    "after_create",
    _updated_at_trigger.execute_if(dialect="postgresql"),
)
