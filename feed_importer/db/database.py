"""
Database engine, session management and episode persistence.

This module provides:
- Lazy engine creation from DATABASE_URL (PostgreSQL in production, SQLite locally)
- Session-per-operation pattern through get_db_session()
- Show lookup used to seed an import run
- Bulk episode insert followed by per-episode partial updates
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator, Optional
from urllib.parse import urlparse

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from feed_importer.errors import ShowNotFoundError
from feed_importer.logger import setup_logging, log_function
from .models import Base, Episode, Show


db_logger = setup_logging(
    logger_name="database",
    log_file="logs/database.log",
    verbose=False,  # Only file logging, no console output
)

SUPPORTED_SCHEMES = ("postgresql", "postgres", "sqlite")

engine: Optional[Engine] = None
SessionLocal = sessionmaker(autoflush=False)


@dataclass(frozen=True)
class ShowInfo:
    """Show attributes needed to seed an import."""

    id: int
    owner_id: Optional[int]
    image_url: Optional[str]


def validate_database_url(url: Optional[str]) -> tuple[bool, str]:
    """Validate the database URL format (and the file location for SQLite)."""
    if not url:
        return False, "DATABASE_URL is not set"
    try:
        parsed = urlparse(url)
        scheme = parsed.scheme.split("+")[0]
        if scheme not in SUPPORTED_SCHEMES:
            return False, f"Unsupported database scheme: {parsed.scheme}"

        if scheme != "sqlite":
            return True, f"{parsed.hostname}{parsed.path}"

        # Extract database file path (remove leading /)
        db_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        if not db_path:
            return False, "Database file path is empty"

        parent_dir = Path(db_path).parent
        if not parent_dir.exists():
            return False, f"Database directory does not exist: {parent_dir}"

        return True, db_path

    except Exception as e:
        return False, f"Invalid database URL format: {e}"


def optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite-specific settings when a connection is created."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def init_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create the engine and bind the session factory to it.

    Args:
        database_url: Connection URL; defaults to the DATABASE_URL environment variable.

    Returns:
        The configured engine.

    Raises:
        ValueError: If the URL is missing or invalid.
    """
    global engine

    url = database_url or os.getenv("DATABASE_URL")
    is_valid, db_info = validate_database_url(url)
    if not is_valid:
        db_logger.error(f"Database configuration error: {db_info}")
        raise ValueError(f"Database configuration error: {db_info}")

    if engine is not None:
        engine.dispose()

    engine = create_engine(url, poolclass=NullPool, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", optimize_sqlite_connection)

    SessionLocal.configure(bind=engine)
    db_logger.info(f"Database configured: {db_info}")
    return engine


def get_engine() -> Engine:
    """Return the current engine, creating it from DATABASE_URL on first use."""
    if engine is None:
        return init_engine()
    return engine


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions (session-per-operation pattern).

    Usage:
        with get_db_session() as session:
            session.add(Episode(title="Test", storage_url="..."))
            session.commit()
    """
    get_engine()
    session = SessionLocal()
    try:
        db_logger.debug("Database session created")
        yield session

    except OperationalError as e:
        db_logger.error(f"Database operational error: {e}")
        session.rollback()
        raise

    except SQLAlchemyError as e:
        db_logger.error(f"Database error: {e}")
        session.rollback()
        raise

    except Exception as e:
        db_logger.error(f"Unexpected database error: {e}")
        session.rollback()
        raise

    finally:
        session.close()
        db_logger.debug("Database session closed")


@log_function(logger_name="database", log_execution_time=True)
def check_database_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with get_db_session() as session:
            session.execute(text("SELECT 1"))
            return True
    except Exception as e:
        db_logger.error(f"Database connection test failed: {e}")
        return False


@log_function(logger_name="database", log_execution_time=True)
def init_database() -> None:
    """
    Create all tables defined in models.

    The production schema is managed by the main application; this is meant
    for local SQLite databases and tests.
    """
    Base.metadata.create_all(bind=get_engine())
    db_logger.info("Database tables created successfully")


@log_function(logger_name="database", log_execution_time=True)
def get_show(show_id: int) -> ShowInfo:
    """
    Look up the show an import targets.

    Args:
        show_id: Show primary key.

    Returns:
        ShowInfo with owner and artwork URL.

    Raises:
        ShowNotFoundError: If no show has this id.
    """
    with get_db_session() as session:
        show = session.get(Show, show_id)
        if show is None:
            raise ShowNotFoundError(f"Show {show_id} not found")
        return ShowInfo(id=show.id, owner_id=show.owner_id, image_url=show.image_url)


@log_function(logger_name="database", log_execution_time=True)
def insert_episodes(rows: list[dict[str, Any]]) -> list[tuple[int, str]]:
    """
    Insert episodes in one transaction.

    Args:
        rows: Column values, one dict per episode, in insertion order.

    Returns:
        (id, storage_url) of each inserted episode, in the order of ``rows``.
    """
    if not rows:
        return []

    with get_db_session() as session:
        episodes = [Episode(**row) for row in rows]
        session.add_all(episodes)
        session.flush()
        inserted = [(episode.id, episode.storage_url) for episode in episodes]
        session.commit()

    db_logger.info(f"Inserted {len(inserted)} episodes")
    return inserted


def update_episode_in_db(episode_id: int, storage_url: str) -> None:
    """
    Point an inserted episode at its final playback URL.

    Args:
        episode_id (int): Primary key of the episode to update.
        storage_url (str): New playback URL.
    """
    with get_db_session() as session:
        session.query(Episode).filter(Episode.id == episode_id).update(
            {"storage_url": storage_url}
        )
        session.commit()


def close_database() -> None:
    """Release every pooled connection and forget the engine."""
    global engine
    if engine is not None:
        engine.dispose()
        engine = None
        db_logger.info("Database connection released")
