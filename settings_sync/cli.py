"""
Command-line entry point for the settings synchronization layer.

Usage:
    python -m settings_sync init-db
    python -m settings_sync check-db
    python -m settings_sync sync --user-id u1      # sign in and reconcile
    python -m settings_sync push --user-id u1      # manual "save to cloud"
    python -m settings_sync show                   # print the local bundle
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import List

from settings_sync.auth import InMemoryAuthProvider
from settings_sync.config import AppConfig, settings
from settings_sync.database.create_tables import create_all
from settings_sync.database.session import (
    check_connection,
    create_engine_for_url,
    create_session_factory,
)
from settings_sync.exceptions import LocalStoreError
from settings_sync.local_store import LocalStoreAdapter, SqlKeyValueStore
from settings_sync.remote import build_repository
from settings_sync.schemas import Identity
from settings_sync.sync import (
    ReloadDispatcher,
    SessionLifecycleHook,
    SyncEngine,
    SyncOutcome,
    SyncResult,
)

logger = logging.getLogger("settings_sync.cli")


@dataclass
class SyncApp:
    """Wired-up components for one process."""

    auth: InMemoryAuthProvider
    local_store: LocalStoreAdapter
    dispatcher: ReloadDispatcher
    engine: SyncEngine


def build_app(config: AppConfig | None = None) -> SyncApp:
    """Create the local store, remote repository and engine from configuration."""
    cfg = config or settings
    local_factory = create_session_factory(create_engine_for_url(cfg.local_store.url))
    local_store = LocalStoreAdapter(SqlKeyValueStore(local_factory))
    auth = InMemoryAuthProvider()
    dispatcher = ReloadDispatcher()
    engine = SyncEngine(
        local_store=local_store,
        repository=build_repository(cfg),
        auth=auth,
        reload=dispatcher.trigger,
        config=cfg.sync,
    )
    return SyncApp(auth=auth, local_store=local_store, dispatcher=dispatcher, engine=engine)


async def _run_sync(app: SyncApp, identity: Identity) -> SyncResult:
    hook = SessionLifecycleHook(app.auth, app.engine)
    hook.attach()
    try:
        app.auth.sign_in(identity)
        await hook.drain()
    finally:
        hook.detach()
    if hook.last_result is None:
        return SyncResult(SyncOutcome.FAILED, identity.id, "sync task did not complete")
    return hook.last_result


async def _run_push(app: SyncApp, identity: Identity) -> SyncResult:
    app.auth.sign_in(identity)
    return await app.engine.export_user_settings()


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="settings-sync", description=__doc__.split("\n\n")[0])
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the remote and local tables")
    subparsers.add_parser("check-db", help="Check that the remote database is reachable")
    for name, help_text in (
        ("sync", "Sign in and reconcile local settings with the remote record"),
        ("push", "Upload the local settings, replacing the remote record"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--user-id", required=True, help="Identity of the signed-in user")
        sub.add_argument("--email", default=None, help="Optional e-mail for log context")
    subparsers.add_parser("show", help="Print the local settings bundle as JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    if args.command == "init-db":
        create_all(settings)
        print("Tables created: user_settings, local_storage")
        return 0

    if args.command == "check-db":
        ok = check_connection(settings.database)
        print("Database connection OK" if ok else "Database connection failed")
        return 0 if ok else 1

    app = build_app(settings)

    if args.command == "show":
        try:
            bundle = app.local_store.read_bundle()
        except LocalStoreError as e:
            logger.error(f"Failed to read local settings: {e}")
            print("show: failed")
            print(f"    error: {e}")
            return 1
        print(json.dumps(bundle.slots(), ensure_ascii=False, indent=2))
        return 0

    identity = Identity(id=args.user_id, email=args.email)
    logger.info(f"Running command | command={args.command}, user_id={identity.id}")
    runner = _run_sync if args.command == "sync" else _run_push
    result = asyncio.run(runner(app, identity))

    print(f"{args.command}: {result.outcome.value}")
    if result.error:
        print(f"    error: {result.error}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
