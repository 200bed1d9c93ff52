"""
Data models shared by the local store, the remote repositories and the
sync engine.

This module defines:
- SettingsBundle: the five-slot payload synchronized as a unit
- RemoteRecord: one user's row in the remote settings table
- Identity: the signed-in user as seen by the sync layer
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Slot names in bundle order. Record contents are opaque to the engine.
SLOT_NAMES: tuple[str, ...] = (
    "folders",
    "action_buttons",
    "trainings",
    "statistics",
    "charts",
)


@dataclass(frozen=True)
class Identity:
    """
    Authenticated user.

    Attributes:
        id: Stable user id (the remote record key)
        email: Optional e-mail, used only for log context
    """

    id: str
    email: str | None = None


class SettingsBundle(BaseModel):
    """
    Five independent slots, each an ordered list of opaque records.

    A missing or null slot becomes an empty list, so downstream code never
    sees ``None``. ``action_buttons`` also accepts the ``actionButtons`` key
    used by the client application.
    """

    model_config = ConfigDict(populate_by_name=True)

    folders: List[Any] = Field(default_factory=list)
    action_buttons: List[Any] = Field(default_factory=list, alias="actionButtons")
    trainings: List[Any] = Field(default_factory=list)
    statistics: List[Any] = Field(default_factory=list)
    charts: List[Any] = Field(default_factory=list)

    @field_validator(*SLOT_NAMES, mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def has_data(self) -> bool:
        """Return True if at least one slot holds a record."""
        return any(len(getattr(self, name)) > 0 for name in SLOT_NAMES)

    def slots(self) -> Dict[str, List[Any]]:
        """Return the five slots keyed by slot name."""
        return {name: list(getattr(self, name)) for name in SLOT_NAMES}


class RemoteRecord(BaseModel):
    """
    A user's settings row as returned by a remote repository.

    Slots are optional here: a row that does not carry a slot (NULL column
    or missing key) must leave the matching local slot untouched when it is
    applied.
    """

    user_id: str
    folders: Optional[List[Any]] = None
    action_buttons: Optional[List[Any]] = None
    trainings: Optional[List[Any]] = None
    statistics: Optional[List[Any]] = None
    charts: Optional[List[Any]] = None
    updated_at: Optional[datetime] = None

    def slots(self) -> Dict[str, List[Any]]:
        """Return only the slots this record carries."""
        carried: Dict[str, List[Any]] = {}
        for name in SLOT_NAMES:
            value = getattr(self, name)
            if value is not None:
                carried[name] = list(value)
        return carried

    def to_bundle(self) -> SettingsBundle:
        return SettingsBundle(**self.slots())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RemoteRecord":
        """Build a record from a JSON row of the settings table."""
        return cls.model_validate(
            {key: row[key] for key in ("user_id", *SLOT_NAMES, "updated_at") if key in row}
        )

    @classmethod
    def from_db_model(cls, model: Any) -> "RemoteRecord":
        """Build a record from a `UserSettings` SQLAlchemy instance."""
        return cls(
            user_id=model.user_id,
            folders=model.folders,
            action_buttons=model.action_buttons,
            trainings=model.trainings,
            statistics=model.statistics,
            charts=model.charts,
            updated_at=model.updated_at,
        )
