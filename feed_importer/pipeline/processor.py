"""
Per-item processing: download, transcode, upload, build the episode record.

One EpisodeProcessor is shared by every item of a run. It holds no per-item
state, so any number of process() calls may be in flight at once.
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Optional

from feed_importer.config import ImportConfig
from feed_importer.errors import MissingEnclosureError
from feed_importer.ingestion import FeedItem, audio_extension, fetch_audio
from feed_importer.logger import log_with_timer
from feed_importer.storage import BaseStorage, UniqueClock, make_key

from .context import ImportContext
from .records import EpisodeRecord
from .transcoder import Transcoder


logger = logging.getLogger("pipeline")

MP3_CONTENT_TYPE = "audio/mpeg"


class EpisodeProcessor:
    """Turn one feed item into a stored MP3 and an EpisodeRecord."""

    def __init__(
        self,
        context: ImportContext,
        config: ImportConfig,
        storage: BaseStorage,
        transcoder: Transcoder,
        fetcher: Optional[Callable[[str, Optional[int]], bytes]] = None,
        clock: Optional[Callable[[], float]] = None,
        executor: Optional[Executor] = None,
    ):
        """Initialize the processor.

        Args:
            context: Values shared by every item of the run
            config: Run configuration
            storage: Object store the MP3s are written to
            transcoder: Audio transcoder
            fetcher: Blocking download function (default: fetch_audio)
            clock: Time source for storage keys (default: a shared UniqueClock)
            executor: Thread pool for the blocking download and upload calls
                (default: the event loop's default executor)
        """
        self.context = context
        self.config = config
        self.storage = storage
        self.transcoder = transcoder
        self.fetcher = fetcher or fetch_audio
        self.clock = clock or UniqueClock()
        self.executor = executor

    async def _run_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, func, *args)

    @log_with_timer("pipeline")
    async def process(self, item: FeedItem, index: int) -> EpisodeRecord:
        """
        Process a single feed item.

        Args:
            item: Feed item to import
            index: Position of the item in processing order (0-based)

        Returns:
            The episode record, not yet persisted.

        Raises:
            MissingEnclosureError: If the item has no enclosure.
            FetchError, TranscodeError, UploadError: On the matching step failing.
        """
        if not item.enclosures:
            raise MissingEnclosureError(f"Episode '{item.title}' has no enclosure")

        enclosure = item.enclosures[0]
        audio = await self._run_blocking(
            self.fetcher, enclosure.url, self.config.fetch_timeout_or_none
        )

        mp3 = await self.transcoder.transcode(audio, audio_extension(enclosure.url))
        size = len(mp3)

        key = make_key(
            self.context.owner_id, "mp3", namespace=self.config.key_namespace, clock=self.clock
        )
        original_url = await self._run_blocking(
            self.storage.put_object, key, mp3, MP3_CONTENT_TYPE
        )
        logger.debug(f"Uploaded '{item.title}' to {key} ({size:,} bytes)")

        return self.build_record(item, index, key, original_url, size)

    def build_record(
        self, item: FeedItem, index: int, key: str, original_url: str, size: int
    ) -> EpisodeRecord:
        image_url = self.config.public_image_base_url + self.context.default_image_key
        storage_url = (
            f"{self.config.public_records_base_url}{key}"
            f"?show_id={self.context.show_id}&episode_id="
        )
        duration = item.enclosures[0].length

        return EpisodeRecord(
            title=item.title,
            show_id=self.context.show_id,
            description=f"<p>{item.description}</p>",
            image_url=image_url,
            storage_url=storage_url,
            position=index + 1,
            publish_date=item.published,
            created_at=item.created,
            duration=duration,
            storage_used=size,
            nginx_image_url=image_url.replace("protected", "img"),
            original_url=original_url,
            original_file_size=size,
            original_duration=duration,
        )
