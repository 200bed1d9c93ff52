"""
Authentication collaborator interface.

The sync layer never verifies credentials. It only needs to know who is
signed in and to be told whenever that changes (login, logout, restored
session).
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from settings_sync.schemas import Identity

IdentityCallback = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Source of the current identity and of identity-change notifications."""

    @abstractmethod
    def get_current_identity(self) -> Optional[Identity]:
        """Return the signed-in identity, or None when signed out."""

    @abstractmethod
    def on_identity_change(self, callback: IdentityCallback) -> Unsubscribe:
        """
        Register `callback` for every identity transition.

        Returns:
            A callable that removes the subscription
        """


class InMemoryAuthProvider(AuthProvider):
    """
    In-process auth state holder.

    `sign_in`, `sign_out` and `restore_session` update the current identity
    and notify subscribers synchronously, in subscription order. A failing
    subscriber is logged and does not prevent the others from running.
    """

    def __init__(self, identity: Optional[Identity] = None) -> None:
        self._identity = identity
        self._subscribers: List[IdentityCallback] = []

    def get_current_identity(self) -> Optional[Identity]:
        return self._identity

    def on_identity_change(self, callback: IdentityCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set_identity(self, identity: Optional[Identity], event: str) -> None:
        self._identity = identity
        logger.info(f"Auth state changed | event={event}, user_id={identity.id if identity else None}")
        for callback in list(self._subscribers):
            try:
                callback(identity)
            except Exception as e:
                logger.error(f"Identity subscriber failed | event={event}, error={e}", exc_info=True)

    def sign_in(self, identity: Identity) -> None:
        self._set_identity(identity, "SIGNED_IN")

    def sign_out(self) -> None:
        self._set_identity(None, "SIGNED_OUT")

    def restore_session(self) -> None:
        """Re-announce the current identity, as on application start."""
        self._set_identity(self._identity, "INITIAL_SESSION")
