import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from feed_importer.config import ImportConfig
from feed_importer.db import (
    close_database,
    get_show,
    init_engine,
    insert_episodes,
    update_episode_in_db,
)
from feed_importer.ingestion import FeedItem, fetch_feed
from feed_importer.logger import log_function
from feed_importer.storage import BaseStorage, CloudStorage

from .context import resolve_context
from .limiter import ConcurrencyLimiter
from .processor import EpisodeProcessor
from .records import Failed, ImportSummary, ItemResult, Processed
from .transcoder import Transcoder


logger = logging.getLogger("pipeline")


async def _process_isolated(
    limiter: ConcurrencyLimiter,
    processor: EpisodeProcessor,
    item: FeedItem,
    index: int,
) -> ItemResult:
    """Run one item, converting any exception into a Failed result."""
    try:
        record = await limiter.run(processor.process, item, index)
    except Exception as e:
        print(f"Could not process episode {item.title}")
        logger.warning(f"Could not process episode {item.title}: {type(e).__name__}: {e}")
        return Failed(index=index, title=item.title, error=e)

    print(f"Processed episode {item.title}")
    logger.info(f"Processed episode {item.title}")
    return Processed(index=index, title=item.title, record=record)


async def process_items(
    items: list[FeedItem],
    processor: EpisodeProcessor,
    max_concurrency: int,
) -> list[ItemResult]:
    """
    Process every feed item concurrently, at most max_concurrency at a time.

    Feeds list the newest item first; items are processed oldest first so
    that positions count up from the first episode ever published.

    Args:
        items: Feed items as listed in the feed
        processor: Per-item processor
        max_concurrency: Concurrency ceiling

    Returns:
        One result per item, in processing order. Never raises for a single
        item's failure.
    """
    ordered = list(reversed(items))
    print(f"Total episodes to process: {len(ordered)}")
    logger.info(f"Processing {len(ordered)} episodes (max {max_concurrency} at once)")

    limiter = ConcurrencyLimiter(max_concurrency)
    results = await asyncio.gather(
        *(
            _process_isolated(limiter, processor, item, index)
            for index, item in enumerate(ordered)
        )
    )
    logger.debug(f"Peak concurrency: {limiter.peak}")
    return list(results)


@log_function(logger_name="pipeline", log_execution_time=True)
def persist_results(results: list[ItemResult]) -> list[int]:
    """
    Insert the records of successful items and finalize their storage URLs.

    Args:
        results: Item results in processing order

    Returns:
        Inserted episode ids, in processing order.
    """
    records = [result.record for result in results if isinstance(result, Processed)]
    if not records:
        logger.info("No episodes to persist")
        return []

    inserted = insert_episodes([record.to_row() for record in records])
    for episode_id, storage_url in inserted:
        update_episode_in_db(episode_id, storage_url=f"{storage_url}{episode_id}")

    logger.info(f"Persisted {len(inserted)} episodes")
    return [episode_id for episode_id, _ in inserted]


@log_function(logger_name="pipeline", log_execution_time=True)
async def run_import(
    feed_url: str,
    show_id: int,
    owner_id: Optional[int],
    config: ImportConfig,
    storage: Optional[BaseStorage] = None,
    transcoder: Optional[Transcoder] = None,
) -> ImportSummary:
    """
    Import every item of a feed into a show.

    Args:
        feed_url: RSS feed to import
        show_id: Target show
        owner_id: Owner used when the show has none recorded
        config: Run configuration
        storage: Object store (default: S3 bucket from config)
        transcoder: Audio transcoder (default: ffmpeg from config)

    Returns:
        Counts of processed and failed items plus the inserted ids.

    Raises:
        FeedError: If the feed cannot be fetched or parsed.
        ShowNotFoundError: If the show does not exist.
    """
    init_engine(config.database_url)
    # One worker per concurrency slot: each item runs one blocking call at a time
    executor = ThreadPoolExecutor(
        max_workers=config.max_concurrency, thread_name_prefix="feed-import"
    )
    try:
        feed = await asyncio.to_thread(fetch_feed, feed_url, config.feed_timeout)
        logger.info(f"Loaded feed '{feed.title}' with {len(feed.items)} items")

        show = get_show(show_id)
        context = resolve_context(show, owner_id, config)

        processor = EpisodeProcessor(
            context=context,
            config=config,
            storage=storage or CloudStorage(config),
            transcoder=transcoder
            or Transcoder(tmp_dir=config.tmp_dir, ffmpeg_bin=config.ffmpeg_bin),
            executor=executor,
        )

        results = await process_items(feed.items, processor, config.max_concurrency)
        episode_ids = persist_results(results)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
        close_database()

    summary = ImportSummary.from_results(results, episode_ids)
    logger.info(
        f"Imported {summary.processed} of {summary.total} episodes ({summary.failed} failed)"
    )
    return summary
