import logging
from typing import Optional

import requests

from feed_importer.errors import FetchError


logger = logging.getLogger("ingestion")

# Browser headers to handle feedpress.me style redirects properly
HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Accept": "audio/mpeg, audio/*, */*",
    "Accept-Language": "en-US,en;q=0.9",
}


def fetch_audio(url: str, timeout: Optional[int] = None) -> bytes:
    """
    Download an enclosure fully into memory.

    Single attempt: a failed request fails the episode.

    Args:
        url: Enclosure URL
        timeout: Request timeout in seconds (None waits indefinitely)

    Returns:
        The response body.

    Raises:
        FetchError: On network errors or non-2xx responses.
    """
    logger.debug(f"Downloading {url}")
    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Error downloading {url}: {e}") from e

    logger.debug(f"Downloaded {url} ({len(response.content):,} bytes)")
    return response.content


def audio_extension(url: str) -> str:
    """Return the extension hint of an audio URL, ignoring its query string."""
    clean_url = url.split("?")[0]
    return clean_url.split(".")[-1]
