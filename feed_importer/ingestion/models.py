"""
Feed data models.

Models:
    Enclosure: A downloadable media reference embedded in a feed item
    FeedItem: One episode entry of a syndication feed
    Feed: Parsed feed with its ordered items
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Enclosure:
    """Media file attached to a feed item (URL + reported length)."""

    url: str
    length: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class FeedItem:
    """
    A single feed entry, read-only input to the pipeline.

    Attributes:
        title: Episode title
        description: Raw description / show notes (HTML is kept as is)
        published: Publication date from pubDate
        created: Creation date (falls back to published)
        enclosures: Ordered enclosures, the first one is the episode audio
        image: Item-level image URL (itunes:image), if any
    """

    title: str
    description: str = ""
    published: Optional[datetime] = None
    created: Optional[datetime] = None
    enclosures: tuple[Enclosure, ...] = ()
    image: Optional[str] = None


@dataclass
class Feed:
    """Parsed feed."""

    title: str
    image: Optional[str] = None
    items: list[FeedItem] = field(default_factory=list)
