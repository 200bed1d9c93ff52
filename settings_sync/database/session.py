"""
Database session management for the settings synchronization layer.

This module provides engine creation, session factory setup and a context
manager for safe session usage with proper cleanup. The global engine serves
the remote settings database; `create_session_factory` builds independent
factories for other databases such as the device-local store.

Usage:
    ```python
    from settings_sync.database.session import get_session

    with get_session() as session:
        repo = UserSettingsRepository(session)
        row = repo.get_by_user_id("u1")
    ```
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from settings_sync.config import DatabaseConfig, settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None

SessionLocal: sessionmaker[Session] | None = None


def _engine_options(url: str, config: DatabaseConfig | None = None) -> Dict[str, Any]:
    """
    Build create_engine keyword arguments for a connection URL.

    SQLite connections are shared with worker threads (repositories run
    blocking session work via asyncio.to_thread), so same-thread checks are
    disabled; in-memory SQLite databases additionally need a single static
    connection. Pool sizing only applies to server databases.
    """
    options: Dict[str, Any] = {"echo": config.echo if config else False}

    if make_url(url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    options.update(pool_pre_ping=True)
    if config is not None:
        options.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_timeout=config.pool_timeout,
        )
    return options


def create_engine_for_url(url: str, config: DatabaseConfig | None = None) -> Engine:
    """
    Create a standalone engine for `url`.

    Raises:
        SQLAlchemyError: If engine creation fails (e.g., invalid connection string)
        ValueError: If the URL is empty
    """
    if not url:
        raise ValueError("Database URL is required.")

    try:
        return create_engine(url, **_engine_options(url, config))
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database engine: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating database engine: {e}")
        raise SQLAlchemyError(f"Failed to initialize database engine: {e}") from e


def init_engine(config: DatabaseConfig | None = None) -> Engine:
    """
    Initialize the global remote-database engine.

    Args:
        config: Optional DatabaseConfig instance. If None, uses settings.database

    Returns:
        Initialized SQLAlchemy Engine instance

    Raises:
        SQLAlchemyError: If engine creation fails
        ValueError: If database URL is missing
    """
    global _engine

    if _engine is not None:
        return _engine

    db_config = config or settings.database

    if not db_config.url:
        raise ValueError("Database URL is required. Set DATABASE_URL environment variable.")

    _engine = create_engine_for_url(db_config.url, db_config)
    logger.info(f"Database engine initialized | backend={_engine.dialect.name}")
    return _engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory with explicit transaction control bound to `engine`."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker[Session]:
    """
    Get or create the global session factory.

    Raises:
        SQLAlchemyError: If engine initialization fails
    """
    global SessionLocal

    if SessionLocal is not None:
        return SessionLocal

    SessionLocal = create_session_factory(init_engine())
    logger.debug("Session factory created")
    return SessionLocal


@contextmanager
def get_session(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    The session is committed on success, rolled back on exception and closed
    in all cases.

    Args:
        session_factory: Factory to use; defaults to the global remote factory

    Yields:
        SQLAlchemy Session instance

    Raises:
        SQLAlchemyError: If session creation or operations fail
    """
    factory = session_factory or get_session_factory()
    session: Session = factory()

    try:
        yield session
        session.commit()
        logger.debug("Session committed successfully")
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error occurred, rolling back transaction: {e}")
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Unexpected error in session, rolling back transaction: {e}")
        raise
    finally:
        session.close()


def check_connection(config: DatabaseConfig | None = None) -> bool:
    """
    Verify that the remote database is reachable.

    Returns:
        True if a `SELECT 1` succeeds, False otherwise
    """
    db_config = config or settings.database

    if not db_config.url:
        logger.error("Cannot test connection: Database URL is not configured")
        return False

    try:
        probe_engine = create_engine_for_url(db_config.url)
        with probe_engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        probe_engine.dispose()

        logger.info("Database connection test successful")
        return True

    except SQLAlchemyError as e:
        logger.error(f"Database connection test failed: {e}")
        return False


def close_engine() -> None:
    """Dispose of the global engine and forget the session factory."""
    global _engine, SessionLocal

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine closed")

    SessionLocal = None
