"""Unit tests for the batch orchestrator."""

import asyncio
import os
import threading
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import SHOW_ID, FakeTranscoder, make_item
from feed_importer import db
from feed_importer.config import ImportConfig
from feed_importer.db import Episode, get_db_session, init_engine
from feed_importer.errors import FeedError, MissingEnclosureError, ShowNotFoundError
from feed_importer.ingestion import Feed
from feed_importer.pipeline import (
    EpisodeProcessor,
    Failed,
    ImportContext,
    Processed,
    persist_results,
    process_items,
    run_import,
)
from feed_importer.storage import LocalStorage


T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 8, tzinfo=timezone.utc)
T3 = datetime(2024, 1, 15, tzinfo=timezone.utc)


def fetch_by_url(url, timeout):
    return url.encode()


def scenario_items():
    """Feed order: A (oldest) first, B has no enclosure."""
    return [
        make_item("A", url="https://cdn.example.com/a.mp3", published=T1),
        make_item("B", published=T2),
        make_item("C", url="https://cdn.example.com/c.mp3", published=T3),
    ]


@pytest.fixture
def processor(context: ImportContext, config: ImportConfig, storage: LocalStorage) -> EpisodeProcessor:
    return EpisodeProcessor(
        context=context,
        config=config,
        storage=storage,
        transcoder=FakeTranscoder(fail_on=b"broken"),
        fetcher=fetch_by_url,
    )


def stored_episodes() -> list[Episode]:
    with get_db_session() as session:
        episodes = session.query(Episode).order_by(Episode.id).all()
        session.expunge_all()
        return episodes


class TestProcessItems:
    """Tests for process_items."""

    @pytest.mark.asyncio
    async def test_processing_order_is_reversed(self, processor: EpisodeProcessor) -> None:
        """Test results come back in reversed feed order."""
        results = await process_items(scenario_items(), processor, max_concurrency=4)

        assert [result.title for result in results] == ["C", "B", "A"]
        assert [result.index for result in results] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_failures_become_tagged_results(self, processor: EpisodeProcessor) -> None:
        """Test a failing item yields Failed with its reason, others Processed."""
        results = await process_items(scenario_items(), processor, max_concurrency=4)

        assert isinstance(results[0], Processed)
        assert isinstance(results[1], Failed)
        assert isinstance(results[1].error, MissingEnclosureError)
        assert isinstance(results[2], Processed)
        assert results[0].record.position == 1
        assert results[2].record.position == 3

    @pytest.mark.asyncio
    async def test_console_lines(self, processor: EpisodeProcessor, capsys: pytest.CaptureFixture) -> None:
        """Test one progress line per item."""
        await process_items(scenario_items(), processor, max_concurrency=4)

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Total episodes to process: 3"
        assert sorted(lines[1:]) == [
            "Could not process episode B",
            "Processed episode A",
            "Processed episode C",
        ]

    @pytest.mark.asyncio
    async def test_any_exception_is_isolated(self, context: ImportContext, config: ImportConfig) -> None:
        """Test unexpected exceptions are also converted to Failed."""
        storage = Mock()
        storage.put_object.side_effect = RuntimeError("unexpected")
        processor = EpisodeProcessor(
            context=context,
            config=config,
            storage=storage,
            transcoder=FakeTranscoder(),
            fetcher=fetch_by_url,
        )

        results = await process_items(scenario_items(), processor, max_concurrency=1)

        assert all(isinstance(result, Failed) for result in results)

    @pytest.mark.asyncio
    async def test_empty_feed(self, processor: EpisodeProcessor) -> None:
        """Test an empty item list completes with no results."""
        assert await process_items([], processor, max_concurrency=4) == []


class TestPersistResults:
    """Tests for persist_results."""

    @pytest.mark.asyncio
    async def test_scenario_persists_survivors(self, processor: EpisodeProcessor, database: str) -> None:
        """Test C and A are inserted in processing order, B dropped."""
        results = await process_items(scenario_items(), processor, max_concurrency=4)

        episode_ids = persist_results(results)

        assert episode_ids == [1, 2]
        episodes = stored_episodes()
        assert [(e.id, e.title, e.position) for e in episodes] == [(1, "C", 1), (2, "A", 3)]

    @pytest.mark.asyncio
    async def test_storage_url_ends_with_own_id(self, processor: EpisodeProcessor, database: str) -> None:
        """Test each storage URL is patched with its inserted id."""
        results = await process_items(scenario_items(), processor, max_concurrency=4)

        persist_results(results)

        for episode in stored_episodes():
            assert episode.storage_url.endswith(f"?show_id={SHOW_ID}&episode_id={episode.id}")

    @pytest.mark.asyncio
    async def test_one_failure_in_batch(self, processor: EpisodeProcessor, database: str) -> None:
        """Test N items with one failing persist exactly N-1 records."""
        items = [
            make_item(f"Episode {i}", url=f"https://cdn.example.com/{'broken' if i == 3 else i}.mp3")
            for i in range(8)
        ]

        results = await process_items(items, processor, max_concurrency=3)
        persist_results(results)

        titles = {episode.title for episode in stored_episodes()}
        assert titles == {f"Episode {i}" for i in range(8) if i != 3}

    @pytest.mark.asyncio
    async def test_stored_fields(self, processor: EpisodeProcessor, database: str) -> None:
        """Test the persisted row carries the record's values."""
        results = await process_items(scenario_items()[:1], processor, max_concurrency=1)

        persist_results(results)

        (episode,) = stored_episodes()
        assert episode.show_id == SHOW_ID
        assert episode.status == "published"
        assert episode.compression_status == "compressed"
        assert episode.season == 1
        assert episode.deleted is False
        assert episode.storage_used == len(b"MP3:https://cdn.example.com/a.mp3")
        assert episode.description == "<p>About A</p>"
        assert episode.created_at is not None

    def test_nothing_to_persist(self, database: str) -> None:
        """Test an all-failed batch inserts nothing."""
        results = [Failed(index=0, title="B", error=MissingEnclosureError("no enclosure"))]

        assert persist_results(results) == []
        assert stored_episodes() == []


class TestRunImport:
    """Tests for run_import."""

    @pytest.fixture
    def feed(self) -> Feed:
        return Feed(title="Test Feed", items=scenario_items())

    @pytest.mark.asyncio
    async def test_full_run(
        self, config: ImportConfig, database: str, storage: LocalStorage, feed: Feed
    ) -> None:
        """Test feed to database with one failed item."""
        with patch("feed_importer.pipeline.orchestrator.fetch_feed", return_value=feed), patch(
            "feed_importer.pipeline.processor.fetch_audio", side_effect=fetch_by_url
        ):
            summary = await run_import(
                "https://feeds.example.com/rss", SHOW_ID, 99, config,
                storage=storage, transcoder=FakeTranscoder(),
            )

        assert summary.total == 3
        assert summary.processed == 2
        assert summary.failed == 1
        assert summary.episode_ids == [1, 2]
        assert db.database.engine is None

        init_engine(config.database_url)
        assert [e.title for e in stored_episodes()] == ["C", "A"]

    @pytest.mark.asyncio
    async def test_show_owner_used_for_keys(
        self, config: ImportConfig, database: str, feed: Feed
    ) -> None:
        """Test keys use the show's owner over the one passed in."""
        storage = Mock()
        storage.put_object.return_value = "https://test-bucket.s3.amazonaws.com/key"

        with patch("feed_importer.pipeline.orchestrator.fetch_feed", return_value=feed), patch(
            "feed_importer.pipeline.processor.fetch_audio", side_effect=fetch_by_url
        ):
            await run_import(
                "https://feeds.example.com/rss", SHOW_ID, 99, config,
                storage=storage, transcoder=FakeTranscoder(),
            )

        keys = [call.args[0] for call in storage.put_object.call_args_list]
        assert len(keys) == 2
        assert all(key.startswith("protected/7/") for key in keys)

    @pytest.mark.asyncio
    async def test_unknown_show(self, config: ImportConfig, database: str, feed: Feed) -> None:
        """Test a missing show aborts before processing and releases the engine."""
        with patch("feed_importer.pipeline.orchestrator.fetch_feed", return_value=feed):
            with pytest.raises(ShowNotFoundError):
                await run_import("https://feeds.example.com/rss", 404, 7, config)

        assert db.database.engine is None

    @pytest.mark.asyncio
    async def test_feed_error(self, config: ImportConfig, database: str) -> None:
        """Test an unreadable feed propagates FeedError."""
        with patch(
            "feed_importer.pipeline.orchestrator.fetch_feed",
            side_effect=FeedError("no <channel> element"),
        ):
            with pytest.raises(FeedError):
                await run_import("https://feeds.example.com/rss", SHOW_ID, 7, config)

        assert db.database.engine is None

    @pytest.mark.asyncio
    async def test_persistence_error_not_isolated(
        self, config: ImportConfig, database: str, storage: LocalStorage, feed: Feed
    ) -> None:
        """Test a database failure aborts the run but still releases the engine."""
        with patch("feed_importer.pipeline.orchestrator.fetch_feed", return_value=feed), patch(
            "feed_importer.pipeline.processor.fetch_audio", side_effect=fetch_by_url
        ), patch(
            "feed_importer.pipeline.orchestrator.insert_episodes",
            side_effect=SQLAlchemyError("disk I/O error"),
        ):
            with pytest.raises(SQLAlchemyError):
                await run_import(
                    "https://feeds.example.com/rss", SHOW_ID, 7, config,
                    storage=storage, transcoder=FakeTranscoder(),
                )

        assert db.database.engine is None

    @pytest.mark.asyncio
    async def test_hung_downloads_hold_only_their_slots(
        self, config: ImportConfig, database: str
    ) -> None:
        """Test items keep flowing while more downloads hang than asyncio's default pool has workers."""
        hung_count = min(32, (os.cpu_count() or 1) + 4) + 1
        config.max_concurrency = hung_count + 3
        release = threading.Event()

        def fetch(url, timeout):
            if "hung" in url:
                release.wait(timeout=10)
            return b"audio"

        # Feed order is newest first, so the hung items are submitted first
        items = [make_item(f"Healthy {i}", url=f"https://cdn.example.com/ok-{i}.mp3") for i in range(3)]
        items += [
            make_item(f"Hung {i}", url=f"https://cdn.example.com/hung-{i}.mp3")
            for i in range(hung_count)
        ]
        storage = Mock()
        storage.put_object.return_value = "https://test-bucket.s3.amazonaws.com/key"

        with patch(
            "feed_importer.pipeline.orchestrator.fetch_feed",
            return_value=Feed(title="Test Feed", items=items),
        ), patch("feed_importer.pipeline.processor.fetch_audio", side_effect=fetch):
            task = asyncio.create_task(
                run_import(
                    "https://feeds.example.com/rss", SHOW_ID, 7, config,
                    storage=storage, transcoder=FakeTranscoder(),
                )
            )
            try:
                for _ in range(300):
                    if storage.put_object.call_count >= 3:
                        break
                    await asyncio.sleep(0.01)
                uploaded_while_hung = storage.put_object.call_count
            finally:
                release.set()
            summary = await task

        assert uploaded_while_hung == 3
        assert summary.processed == hung_count + 3
        assert summary.failed == 0
