"""Shared fixtures for feed importer tests."""

from pathlib import Path
from typing import Optional

import pytest

from feed_importer.config import ImportConfig
from feed_importer.db import Show, close_database, get_db_session, init_database, init_engine
from feed_importer.errors import TranscodeError
from feed_importer.ingestion import Enclosure, FeedItem
from feed_importer.pipeline import ImportContext
from feed_importer.storage import LocalStorage


BUCKET_BASE_URL = "https://test-bucket.s3.amazonaws.com/"
SHOW_ID = 42
OWNER_ID = 7


class FakeTranscoder:
    """Stands in for ffmpeg: prefixes the payload, fails on a marker."""

    def __init__(self, fail_on: Optional[bytes] = None):
        self.fail_on = fail_on
        self.calls: list[tuple[bytes, str]] = []

    async def transcode(self, data: bytes, input_extension: str) -> bytes:
        self.calls.append((data, input_extension))
        if self.fail_on is not None and self.fail_on in data:
            raise TranscodeError("Invalid data found when processing input")
        return b"MP3:" + data


def make_item(title: str, url: Optional[str] = None, length: str = "1234", **kwargs) -> FeedItem:
    enclosures = (Enclosure(url=url, length=length, type="audio/mpeg"),) if url else ()
    return FeedItem(title=title, description=f"About {title}", enclosures=enclosures, **kwargs)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Directory the transcoder writes its temporary files to."""
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path: Path, tmp_dir: Path) -> ImportConfig:
    """Configuration pointing at a SQLite file and a test bucket."""
    return ImportConfig(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        bucket_name="test-bucket",
        aws_region="us-east-1",
        bucket_endpoint=None,
        storage_class="STANDARD_IA",
        key_namespace="protected",
        public_image_base_url="https://images.example.com/",
        public_records_base_url="https://records.example.com/",
        original_base_url=BUCKET_BASE_URL,
        max_concurrency=4,
        tmp_dir=str(tmp_dir),
        fetch_timeout=0,
        feed_timeout=5,
        ffmpeg_bin="ffmpeg",
        log_file=str(tmp_path / "logs" / "feed_import.log"),
    )


@pytest.fixture
def database(config: ImportConfig):
    """SQLite database with the tables created and one show."""
    init_engine(config.database_url)
    init_database()
    with get_db_session() as session:
        session.add(
            Show(
                id=SHOW_ID,
                owner_id=OWNER_ID,
                title="Test Show",
                image_url=f"{BUCKET_BASE_URL}protected/{OWNER_ID}/show.jpg",
            )
        )
        session.commit()
    yield config.database_url
    close_database()


@pytest.fixture
def context() -> ImportContext:
    return ImportContext(
        show_id=SHOW_ID,
        owner_id=OWNER_ID,
        default_image_key=f"protected/{OWNER_ID}/show.jpg",
    )


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "objects"))


@pytest.fixture
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()
