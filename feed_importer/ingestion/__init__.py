"""
Ingestion package for the feed importer.

Retrieves what the pipeline consumes from the outside world:

1. Feed loading (feed.py):
   - Fetches the RSS document, tolerating non-2xx responses
   - Parses channel metadata and items into Feed / FeedItem models

2. Audio download (download.py):
   - Downloads enclosure bytes with browser headers
   - Derives the input extension hint from the enclosure URL
"""

from .models import Enclosure, Feed, FeedItem
from .feed import fetch_feed, parse_feed
from .download import audio_extension, fetch_audio

__all__ = [
    "Enclosure",
    "Feed",
    "FeedItem",
    "fetch_feed",
    "parse_feed",
    "audio_extension",
    "fetch_audio",
]
