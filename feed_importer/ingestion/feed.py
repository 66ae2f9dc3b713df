"""
RSS feed loader.

Fetches a podcast feed over HTTP and parses it into Feed / FeedItem models.
Non-2xx responses are not treated as errors: some hosts answer feed requests
with redirect or error statuses while still serving the document, so the body
is always handed to the parser.
"""

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional

import requests
from bs4 import BeautifulSoup, Tag

from feed_importer.errors import FeedError
from feed_importer.logger import log_function
from .models import Enclosure, Feed, FeedItem


logger = logging.getLogger("ingestion")


def _find_child(parent: Tag, name: str, prefix: Optional[str] = None) -> Optional[Tag]:
    """Find a direct child by local name and namespace prefix."""
    return parent.find(
        lambda tag: tag.name == name and (tag.prefix or None) == prefix,
        recursive=False,
    )


def _text(tag: Optional[Tag]) -> str:
    return tag.get_text(strip=True) if tag else ""


def parse_date(value: str) -> Optional[datetime]:
    """Parse an RFC 822 feed date, returning None when it is unusable."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not parse date: {value}, error: {e}")
        return None


def _parse_item(item: Tag) -> FeedItem:
    published = parse_date(_text(_find_child(item, "pubDate")))
    created = published

    enclosures = tuple(
        Enclosure(
            url=tag["url"],
            length=tag.get("length"),
            type=tag.get("type"),
        )
        for tag in item.find_all("enclosure", recursive=False)
        if tag.has_attr("url")
    )

    image_tag = _find_child(item, "image", prefix="itunes")
    image = image_tag.get("href") if image_tag else None

    return FeedItem(
        title=_text(_find_child(item, "title")),
        description=_text(_find_child(item, "description")),
        published=published,
        created=created,
        enclosures=enclosures,
        image=image,
    )


def parse_feed(content: bytes) -> Feed:
    """
    Parse RSS XML into a Feed.

    Items keep the document order (newest first for most podcast feeds).

    Args:
        content: Raw feed document.

    Returns:
        Feed with title, feed-level image and items.

    Raises:
        FeedError: If the document has no <channel> element.
    """
    soup = BeautifulSoup(content, "xml")
    channel = soup.find("channel")
    if channel is None:
        raise FeedError("Document is not an RSS feed: no <channel> element")

    image = None
    image_tag = _find_child(channel, "image")
    if image_tag is not None:
        image = _text(_find_child(image_tag, "url")) or None
    if image is None:
        itunes_image = _find_child(channel, "image", prefix="itunes")
        if itunes_image is not None:
            image = itunes_image.get("href")

    items = [_parse_item(item) for item in channel.find_all("item", recursive=False)]

    return Feed(title=_text(_find_child(channel, "title")), image=image, items=items)


@log_function(logger_name="ingestion", log_execution_time=True)
def fetch_feed(feed_url: str, timeout: int = 30) -> Feed:
    """
    Fetch a feed and parse it.

    Args:
        feed_url: RSS feed URL.
        timeout: HTTP timeout in seconds.

    Returns:
        Parsed Feed.

    Raises:
        FeedError: If the request fails or the body is not a feed.
    """
    logger.info(f"Fetching feed from {feed_url}...")
    try:
        response = requests.get(feed_url, timeout=timeout)
    except requests.RequestException as e:
        raise FeedError(f"Error fetching feed {feed_url}: {e}") from e

    if not response.ok:
        logger.warning(
            f"Feed {feed_url} answered HTTP {response.status_code}, parsing body anyway"
        )

    feed = parse_feed(response.content)
    logger.info(f"Found {len(feed.items)} items in feed: {feed.title}")
    return feed
