"""
Sync engine: reconciles the local settings bundle with the user's remote record.

On every sign-in exactly one of three things happens:
- apply-remote: a remote record exists, so it overwrites the local slots and
  local-state consumers are reloaded
- upload-initial: no remote record exists but local data does, so the local
  bundle becomes the user's first remote record
- no-op: neither side has anything

The manual save path (`export_user_settings`) always pushes the local bundle,
replacing whatever the remote record holds (last write wins).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, Optional

from settings_sync.auth import AuthProvider
from settings_sync.config import SyncConfig
from settings_sync.exceptions import LocalStoreError, RepositoryError
from settings_sync.local_store import LocalStoreAdapter
from settings_sync.remote.base import RemoteSettingsRepository
from settings_sync.schemas import Identity, SettingsBundle
from settings_sync.sync import notifications
from settings_sync.sync.notifications import LoggingNotifier, Notifier


class SyncOutcome(str, Enum):
    """Terminal state of one engine run."""

    SKIPPED = "skipped"
    APPLIED_REMOTE = "applied_remote"
    UPLOADED_INITIAL = "uploaded_initial"
    NOTHING_TO_SYNC = "nothing_to_sync"
    EXPORTED = "exported"
    FAILED = "failed"


@dataclass
class SyncResult:
    """
    Result of a reconcile or export run.

    Attributes:
        outcome: Which branch the run ended in
        user_id: User the run was for (None when skipped for lack of identity)
        error: Underlying failure message when outcome is FAILED
    """

    outcome: SyncOutcome
    user_id: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is not SyncOutcome.FAILED


class SyncEngine:
    """
    Decision core of the settings synchronization layer.

    Args:
        local_store: Adapter over the device-local key-value store
        repository: Remote settings repository
        auth: Authentication collaborator (current identity lookup)
        reload: Called with the new local bundle after remote settings
            were applied; typically ReloadDispatcher.trigger
        notifier: User-facing notifier (defaults to logging)
        config: Sync behaviour (reload delay, per-user serialization)
    """

    def __init__(
        self,
        local_store: LocalStoreAdapter,
        repository: RemoteSettingsRepository,
        auth: AuthProvider,
        reload: Callable[[SettingsBundle], Any],
        notifier: Notifier | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self.local_store = local_store
        self.repository = repository
        self.auth = auth
        self.reload = reload
        self.notifier = notifier or LoggingNotifier()
        self.config = config or SyncConfig()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._locks: Dict[str, asyncio.Lock] = {}
        # Holders plus waiters per user; the lock is dropped when this reaches zero.
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Per-user lock so two runs for the same user never interleave."""
        if not self.config.serialize_per_user:
            yield
            return

        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if self._lock_users[user_id] == 0:
                del self._lock_users[user_id]
                del self._locks[user_id]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def reconcile(self, identity: Optional[Identity]) -> SyncResult:
        """
        Run the sign-in decision logic for `identity`.

        Safe to call with None (signed out): nothing is read or written.
        Repository and local-store failures are notified and returned as a
        FAILED result, never raised.
        """
        if identity is None:
            self.logger.info("User not logged in, cannot import settings")
            return SyncResult(SyncOutcome.SKIPPED)

        async with self._user_lock(identity.id):
            return await self._reconcile(identity)

    async def reconcile_current(self) -> SyncResult:
        """Reconcile for whoever is currently signed in."""
        return await self.reconcile(self.auth.get_current_identity())

    async def export_user_settings(self) -> SyncResult:
        """
        Push the whole local bundle to the remote record of the current user.

        Overwrites a differing remote record unconditionally. The outcome is
        returned to the awaiting caller and also notified to the user.
        """
        identity = self.auth.get_current_identity()
        if identity is None:
            self.notifier.error(notifications.NOT_SIGNED_IN)
            return SyncResult(SyncOutcome.SKIPPED)

        async with self._user_lock(identity.id):
            self.logger.info(f"Uploading settings | user_id={identity.id}")
            try:
                bundle = self.local_store.read_bundle()
                await self.repository.upsert_by_user(identity.id, bundle)
            except (RepositoryError, LocalStoreError) as e:
                message = getattr(e, "message", str(e))
                self.logger.error(f"Error uploading settings | user_id={identity.id}, error={e}")
                self.notifier.error(notifications.SAVE_ERROR.format(message=message))
                return SyncResult(SyncOutcome.FAILED, identity.id, message)

            self.logger.info(f"Settings uploaded successfully | user_id={identity.id}")
            self.notifier.info(notifications.SAVED_TO_CLOUD)
            return SyncResult(SyncOutcome.EXPORTED, identity.id)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _reconcile(self, identity: Identity) -> SyncResult:
        self.logger.info(f"Importing settings | user_id={identity.id}")

        try:
            record = await self.repository.fetch_by_user(identity.id)
        except RepositoryError as e:
            self.logger.error(f"Error importing settings | user_id={identity.id}, error={e}")
            self.notifier.error(notifications.LOAD_ERROR.format(message=e.message))
            return SyncResult(SyncOutcome.FAILED, identity.id, e.message)

        if record is not None:
            return await self._apply_remote(identity, record.slots())

        self.logger.info(
            f"No remote settings, checking local data for initial sync | user_id={identity.id}"
        )
        try:
            bundle = self.local_store.read_bundle()
        except LocalStoreError as e:
            self.logger.error(f"Error reading local settings | user_id={identity.id}, error={e}")
            self.notifier.error(notifications.INITIAL_SYNC_ERROR.format(message=str(e)))
            return SyncResult(SyncOutcome.FAILED, identity.id, str(e))

        if bundle.has_data():
            return await self._upload_initial(identity, bundle)

        self.logger.debug(f"No remote or local settings, fresh start | user_id={identity.id}")
        return SyncResult(SyncOutcome.NOTHING_TO_SYNC, identity.id)

    async def _apply_remote(self, identity: Identity, slots: Dict[str, Any]) -> SyncResult:
        self.logger.info(
            f"Remote settings found, applying to local store | user_id={identity.id}, "
            f"slots={sorted(slots)}"
        )
        try:
            self.local_store.write_bundle(slots)
            bundle = self.local_store.read_bundle()
        except LocalStoreError as e:
            self.logger.error(f"Error applying remote settings | user_id={identity.id}, error={e}")
            self.notifier.error(notifications.LOAD_ERROR.format(message=str(e)))
            return SyncResult(SyncOutcome.FAILED, identity.id, str(e))

        self.notifier.info(notifications.SYNCED_RELOADING)
        if self.config.reload_delay_seconds:
            await asyncio.sleep(self.config.reload_delay_seconds)
        self.reload(bundle)
        return SyncResult(SyncOutcome.APPLIED_REMOTE, identity.id)

    async def _upload_initial(self, identity: Identity, bundle: SettingsBundle) -> SyncResult:
        self.logger.info(f"Local data found, performing initial upload | user_id={identity.id}")
        try:
            await self.repository.upsert_by_user(identity.id, bundle)
        except RepositoryError as e:
            self.logger.error(f"Error on initial upload | user_id={identity.id}, error={e}")
            self.notifier.error(notifications.INITIAL_SYNC_ERROR.format(message=e.message))
            return SyncResult(SyncOutcome.FAILED, identity.id, e.message)

        self.notifier.info(notifications.INITIAL_UPLOAD_DONE)
        return SyncResult(SyncOutcome.UPLOADED_INITIAL, identity.id)
