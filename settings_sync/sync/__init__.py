"""
Synchronization core.

- SyncEngine: reconcile / export decision logic
- SessionLifecycleHook: fire-and-forget reconcile on sign-in
- ReloadDispatcher: in-process reload of local-state consumers
- Notifier / LoggingNotifier: user-facing messages
"""

from . import notifications
from .engine import SyncEngine, SyncOutcome, SyncResult
from .lifecycle import SessionLifecycleHook
from .notifications import LoggingNotifier, Notifier
from .reload import ReloadDispatcher

__all__ = [
    "notifications",
    "LoggingNotifier",
    "Notifier",
    "ReloadDispatcher",
    "SessionLifecycleHook",
    "SyncEngine",
    "SyncOutcome",
    "SyncResult",
]
