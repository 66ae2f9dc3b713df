"""
Configuration settings for the feed importer.

This module defines the ImportConfig dataclass. Defaults are read from the
environment (and a local .env file) when the module is imported; tests and
callers can override any field by passing it explicitly.
"""

import os
import tempfile
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


@dataclass
class ImportConfig:
    """Configuration for one feed import run"""

    # Database
    database_url: Optional[str] = os.getenv("DATABASE_URL")

    # Object store (S3 or S3-compatible)
    bucket_name: Optional[str] = os.getenv("BUCKET_NAME")
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    bucket_endpoint: Optional[str] = os.getenv("BUCKET_ENDPOINT")
    storage_class: str = os.getenv("STORAGE_CLASS", "STANDARD_IA")
    key_namespace: str = os.getenv("KEY_NAMESPACE", "protected")

    # Public URLs written into episode records
    public_image_base_url: str = os.getenv(
        "PUBLIC_IMAGE_BASE_URL", "https://s3.jewishpodcasts.fm/"
    )
    public_records_base_url: str = os.getenv(
        "PUBLIC_RECORDS_BASE_URL", "https://records.jewishpodcasts.fm/"
    )
    # Bucket URL: stripped from show image URLs, prefixed to original_url
    original_base_url: str = os.getenv(
        "ORIGINAL_BASE_URL", "https://jewishpodcasts-prod.s3.amazonaws.com/"
    )

    # Processing
    max_concurrency: int = _env_int("MAX_CONCURRENCY", 35)
    tmp_dir: str = os.getenv("TMP_DIR", tempfile.gettempdir())
    fetch_timeout: int = _env_int("FETCH_TIMEOUT", 0)  # seconds, 0 = no timeout
    feed_timeout: int = _env_int("FEED_TIMEOUT", 30)
    ffmpeg_bin: str = os.getenv("FFMPEG_BIN", "ffmpeg")

    # Logging
    log_file: str = os.getenv("LOG_FILE", "logs/feed_import.log")

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be at least 1, got {self.max_concurrency}"
            )
        if self.fetch_timeout < 0:
            raise ValueError(f"fetch_timeout cannot be negative: {self.fetch_timeout}")

    @property
    def fetch_timeout_or_none(self) -> Optional[int]:
        """Fetch timeout as expected by requests (None means wait forever)."""
        return self.fetch_timeout or None
