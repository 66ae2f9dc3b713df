"""
Feed import pipeline.

This module orchestrates the import of a podcast feed into a show:
    1. Feed loading (feed_importer.ingestion)
    2. Per-item download, MP3 transcoding and upload (processor, transcoder)
    3. Bounded concurrency across items (limiter)
    4. Persistence of the successful items (orchestrator, feed_importer.db)

Usage:
    # CLI interface
    python -m feed_importer.pipeline https://feeds.example.com/podcast.xml 42 7
    python -m feed_importer.pipeline https://feeds.example.com/podcast.xml 42 7 --concurrency 10

    # Programmatic interface
    from feed_importer.pipeline import run_import
    summary = asyncio.run(run_import(feed_url, show_id, owner_id, ImportConfig()))
"""

from .context import ImportContext, resolve_context
from .limiter import ConcurrencyLimiter
from .orchestrator import persist_results, process_items, run_import
from .processor import EpisodeProcessor
from .records import EpisodeRecord, Failed, ImportSummary, ItemResult, Processed
from .transcoder import AudioInfo, Transcoder, probe_audio

__all__ = [
    # Orchestration
    "run_import",
    "process_items",
    "persist_results",
    # Building blocks
    "ConcurrencyLimiter",
    "EpisodeProcessor",
    "ImportContext",
    "resolve_context",
    "Transcoder",
    "AudioInfo",
    "probe_audio",
    # Results
    "EpisodeRecord",
    "Processed",
    "Failed",
    "ItemResult",
    "ImportSummary",
]
