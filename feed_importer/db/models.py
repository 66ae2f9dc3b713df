"""
SQLAlchemy ORM models for the feed importer.

This module maps the tables the importer reads and writes. The schema itself is
owned by the main application; these models only describe the columns used here.

Models:
    Show: A podcast show, owner of imported episodes
    Episode: A published episode with storage and compression metadata
    TimestampMixin: Provides created_at/updated_at timestamps
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# BIGINT primary keys are not auto-incrementing row ids on SQLite
Identity = BigInteger().with_variant(Integer, "sqlite")


class TimestampMixin:
    """
    Mixin to add timestamp tracking to models.

    Provides:
        created_at: Creation timestamp (database default now(), may be set explicitly)
        updated_at: Timestamp of the last update, refreshed on every ORM update
    """

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class Show(Base):
    """
    Represents a podcast show.

    Attributes:
        id: Primary key
        owner_id: Identity of the user owning the show
        title: Show title
        image_url: Full bucket URL of the show artwork
    """

    __tablename__ = "shows"

    id = Column(Identity, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, nullable=True)
    title = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    def __repr__(self):
        return f"<Show(id={self.id}, owner_id={self.owner_id}, title='{self.title}')>"


class Episode(Base, TimestampMixin):
    """
    Represents an imported podcast episode.

    Attributes:
        id: Primary key, assigned on insert
        show_id: Show the episode belongs to
        title / description: Episode metadata from the feed
        image_url / nginx_image_url: Artwork URLs (direct and image-proxy)
        storage_url: Public playback URL, carries show_id and episode_id query params
        position: 1-based position in the show (oldest first)
        publish_date: Publication date from the feed
        season: Season number
        duration: Reported enclosure length, as given by the feed
        deleted / status / compression_status: Lifecycle flags
        storage_used: Size in bytes of the stored audio
        original_url / original_file_size / original_duration: Source object metadata
    """

    __tablename__ = "episodes"

    id = Column(Identity, primary_key=True, autoincrement=True)
    show_id = Column(BigInteger, nullable=True)
    image_url = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    storage_url = Column(String, nullable=False)
    link = Column(String, nullable=True)
    position = Column(Integer, nullable=True)
    title = Column(String, nullable=True)
    publish_date = Column(DateTime(timezone=True), nullable=True)
    deleted = Column(Boolean, default=False)
    subtitle = Column(String, nullable=True)
    season = Column(Integer, nullable=True)
    duration = Column(String, nullable=True)
    status = Column(String, nullable=True)
    storage_used = Column(BigInteger, nullable=True)
    last_editor = Column(BigInteger, nullable=True)
    compression_status = Column(String(32), default="new")
    nginx_image_url = Column(String, nullable=True)
    ads_status = Column(String(64), default="new")
    original_url = Column(String, nullable=True)
    original_file_size = Column(BigInteger, nullable=True)
    original_duration = Column(String, nullable=True)

    def __repr__(self):
        return (
            f"<Episode(id={self.id}, show_id={self.show_id}, position={self.position}, "
            f"title='{self.title}', status={self.status})>"
        )
