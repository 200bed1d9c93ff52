"""SQLAlchemy models, session management and repositories."""

from .models import Base, LocalBase, LocalSlot, UserSettings
from .repositories import LocalSlotRepository, UserSettingsRepository
from .session import create_session_factory, get_session, init_engine

__all__ = [
    "Base",
    "LocalBase",
    "LocalSlot",
    "UserSettings",
    "LocalSlotRepository",
    "UserSettingsRepository",
    "create_session_factory",
    "get_session",
    "init_engine",
]
