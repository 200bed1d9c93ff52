"""
In-process reload signal.

After remote settings have been written to the local store, every consumer
of local state must pick up the new slots. Consumers subscribe here instead
of the whole application being restarted.
"""

import logging
from typing import Callable, List

from settings_sync.schemas import SettingsBundle

ReloadCallback = Callable[[SettingsBundle], None]

logger = logging.getLogger(__name__)


class ReloadDispatcher:
    """Fans a reload out to all subscribers."""

    def __init__(self) -> None:
        self._subscribers: List[ReloadCallback] = []
        self.reload_count = 0

    def subscribe(self, callback: ReloadCallback) -> Callable[[], None]:
        """
        Register `callback` to receive the freshly written bundle.

        Returns:
            A callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def trigger(self, bundle: SettingsBundle) -> None:
        """Invoke every subscriber with `bundle`; a failing subscriber is logged and skipped."""
        self.reload_count += 1
        logger.info(f"Reloading local state consumers | subscribers={len(self._subscribers)}")
        for callback in list(self._subscribers):
            try:
                callback(bundle)
            except Exception as e:
                logger.error(f"Reload subscriber failed: {e}", exc_info=True)
