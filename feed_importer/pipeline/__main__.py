#!/usr/bin/env python3
"""
CLI interface for the feed import pipeline.

Imports every item of an RSS feed into an existing show:
    1. Fetch and parse the feed
    2. Download, transcode to MP3 and upload each episode (concurrently)
    3. Insert the episodes that succeeded

Usage:
    python -m feed_importer.pipeline FEED_URL SHOW_ID OWNER_ID

Examples:
    python -m feed_importer.pipeline https://feeds.example.com/podcast.xml 42 7
    python -m feed_importer.pipeline https://feeds.example.com/podcast.xml 42 7 --concurrency 10
    python -m feed_importer.pipeline https://feeds.example.com/podcast.xml 42 7 --local-storage data/objects --verbose
"""

import argparse
import asyncio
import sys
from typing import Optional

from feed_importer.config import ImportConfig
from feed_importer.errors import ImportPipelineError
from feed_importer.logger import setup_logging
from feed_importer.storage import LocalStorage
from .orchestrator import run_import


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Feed Import Pipeline - Imports the episodes of an RSS feed into a show",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Notes:
  - Items are processed oldest first; positions count up from 1
  - An episode that fails is reported and skipped, the others are still imported
  - The show's recorded owner takes precedence over OWNER_ID
  - Configuration is read from the environment / .env (DATABASE_URL, BUCKET_NAME, ...)
        """,
    )

    parser.add_argument("feed_url", metavar="FEED_URL", help="RSS feed URL to import")
    parser.add_argument("show_id", metavar="SHOW_ID", type=int, help="Target show id")
    parser.add_argument(
        "owner_id", metavar="OWNER_ID", type=int, help="Owner id used in storage keys"
    )

    options_group = parser.add_argument_group("options")
    options_group.add_argument(
        "--concurrency",
        type=int,
        metavar="N",
        help="Maximum number of episodes processed at once (default: MAX_CONCURRENCY or 35)",
    )
    options_group.add_argument(
        "--local-storage",
        type=str,
        metavar="DIR",
        help="Write objects under DIR instead of the S3 bucket",
    )
    options_group.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Log file path (default: LOG_FILE or logs/feed_import.log)",
    )
    options_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ImportConfig:
    """Environment configuration with command-line overrides applied."""
    overrides = {}
    if args.concurrency is not None:
        overrides["max_concurrency"] = args.concurrency
    if args.log_file:
        overrides["log_file"] = args.log_file
    return ImportConfig(**overrides)


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the feed import CLI."""
    args = parse_arguments(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(
        logger_name="pipeline", log_file=config.log_file, verbose=args.verbose
    )
    for name in ("ingestion", "storage"):
        setup_logging(logger_name=name, log_file=config.log_file, verbose=args.verbose)

    storage = LocalStorage(args.local_storage) if args.local_storage else None

    logger.info("=" * 80)
    logger.info("Feed import started")
    logger.info(f"Feed: {args.feed_url}")
    logger.info(f"Show: {args.show_id} (owner {args.owner_id})")
    logger.info(f"Storage: {'local ' + args.local_storage if storage else 'cloud'}")
    logger.info(f"Concurrency: {config.max_concurrency}")
    logger.info("=" * 80)

    try:
        summary = asyncio.run(
            run_import(
                args.feed_url,
                args.show_id,
                args.owner_id,
                config,
                storage=storage,
            )
        )
    except KeyboardInterrupt:
        logger.warning("Import interrupted by user")
        print("\n✗ Import interrupted", file=sys.stderr)
        sys.exit(130)
    except (ImportPipelineError, ValueError) as e:
        logger.error(f"Import failed: {e}")
        print(f"\n✗ IMPORT FAILED: {e}", file=sys.stderr)
        sys.exit(1)

    print("\n" + "=" * 80)
    print(f"✓ Imported {summary.processed} of {summary.total} episodes")
    if summary.failed:
        print(f"  {summary.failed} episode(s) could not be processed, see {config.log_file}")
    print("=" * 80)


if __name__ == "__main__":
    main()
