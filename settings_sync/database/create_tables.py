"""
Script to create the settings tables.

Creates `user_settings` in the remote database (plus the updated_at trigger
on PostgreSQL) and `local_storage` in the local store database.

Usage:
    python -m settings_sync.database.create_tables
"""

import logging

from sqlalchemy import Engine

from settings_sync.config import AppConfig, settings
from settings_sync.database.models import Base, LocalBase
from settings_sync.database.session import create_engine_for_url, init_engine

logger = logging.getLogger(__name__)


def create_all(config: AppConfig | None = None) -> tuple[Engine, Engine]:
    """
    Create remote and local tables if they do not exist.

    Returns:
        Tuple of (remote_engine, local_engine)
    """
    cfg = config or settings

    remote_engine = init_engine(cfg.database)
    Base.metadata.create_all(remote_engine)
    logger.info(f"Remote tables ready: {', '.join(Base.metadata.tables)}")

    local_engine = create_engine_for_url(cfg.local_store.url)
    LocalBase.metadata.create_all(local_engine)
    logger.info(f"Local tables ready: {', '.join(LocalBase.metadata.tables)}")

    return remote_engine, local_engine


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    create_all()
    print("Tables created: user_settings, local_storage")
