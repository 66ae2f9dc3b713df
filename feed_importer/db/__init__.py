"""
Database package for the feed importer.

Structure:
- models.py: SQLAlchemy ORM models (Show, Episode, TimestampMixin)
- database.py: Engine and session management, show lookup, episode persistence

Database Patterns:
- The engine is created lazily from DATABASE_URL (or init_engine(url))
- Session-per-operation with the get_db_session() context manager
"""

from .models import Base, Episode, Show, TimestampMixin
from .database import (
    ShowInfo,
    get_db_session,
    check_database_connection,
    init_engine,
    init_database,
    get_show,
    insert_episodes,
    update_episode_in_db,
    close_database,
)

__all__ = [
    # Models
    "Base",
    "Episode",
    "Show",
    "TimestampMixin",
    # Database utilities
    "ShowInfo",
    "get_db_session",
    "check_database_connection",
    "init_engine",
    "init_database",
    "get_show",
    "insert_episodes",
    "update_episode_in_db",
    "close_database",
]
