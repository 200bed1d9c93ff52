"""
Session lifecycle hook: starts a reconcile on every sign-in.

The hook never waits for the sync. Each reconcile runs as an independent
asyncio task so that sign-in completion and UI readiness are never delayed;
whatever happens inside the task is handled and logged there.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

from settings_sync.auth import AuthProvider
from settings_sync.schemas import Identity
from settings_sync.sync.engine import SyncEngine, SyncResult


class SessionLifecycleHook:
    """
    Bridges identity-change notifications to SyncEngine.reconcile.

    Args:
        auth: Authentication collaborator to subscribe to
        engine: Sync engine to invoke
        loop: Event loop to schedule reconciles on; defaults to the running
            loop at attach time. Notifications delivered from other threads
            are handed over with call_soon_threadsafe.
    """

    def __init__(
        self,
        auth: AuthProvider,
        engine: SyncEngine,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.auth = auth
        self.engine = engine
        self.loop = loop
        self.logger = logging.getLogger(self.__class__.__name__)
        self._unsubscribe: Optional[Callable[[], None]] = None
        # Strong references only; the hook never awaits these.
        self._tasks: Set[asyncio.Task] = set()
        self.last_result: Optional[SyncResult] = None

    def attach(self) -> None:
        """Subscribe to identity changes. Must be called with a loop available."""
        if self._unsubscribe is not None:
            return
        if self.loop is None:
            self.loop = asyncio.get_running_loop()
        self._unsubscribe = self.auth.on_identity_change(self._on_identity_change)
        self.logger.debug("Session lifecycle hook attached")

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            self.logger.debug("Session lifecycle hook detached")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        if identity is None:
            return
        if self.loop is None:
            self.logger.error("Hook has no event loop, dropping sign-in sync")
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            self._schedule(identity)
        else:
            self.loop.call_soon_threadsafe(self._schedule, identity)

    def _schedule(self, identity: Identity) -> None:
        self.logger.info(f"Scheduling settings sync | user_id={identity.id}")
        task = self.loop.create_task(
            self.engine.reconcile(identity),
            name=f"settings-sync-{identity.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self.logger.warning(f"Settings sync task cancelled | task={task.get_name()}")
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                f"Settings sync task failed | task={task.get_name()}, error={exc}",
                exc_info=exc,
            )
            return
        result = task.result()
        self.last_result = result
        self.logger.info(
            f"Settings sync finished | user_id={result.user_id}, outcome={result.outcome.value}"
        )

    async def drain(self) -> None:
        """Wait until every in-flight reconcile has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
