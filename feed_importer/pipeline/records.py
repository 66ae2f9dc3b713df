"""Episode records and per-item outcomes produced by the pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional, Union


@dataclass(frozen=True)
class EpisodeRecord:
    """
    Episode row built for one successfully processed feed item.

    ``storage_url`` ends with an empty ``episode_id=`` parameter; the identity
    is appended once the row has been inserted.
    """

    title: str
    show_id: int
    description: str
    image_url: str
    storage_url: str
    position: int
    publish_date: Optional[datetime]
    created_at: Optional[datetime]
    duration: Optional[str]
    storage_used: int
    nginx_image_url: str
    original_url: str
    original_file_size: int
    original_duration: Optional[str]
    season: int = 1
    deleted: bool = False
    status: str = "published"
    compression_status: str = "compressed"

    def to_row(self) -> dict[str, Any]:
        """Column values for the episodes table."""
        row = asdict(self)
        # Let the database default apply when the feed gave no date
        if row["created_at"] is None:
            del row["created_at"]
        return row


@dataclass(frozen=True)
class Processed:
    """Item turned into an episode record."""

    index: int
    title: str
    record: EpisodeRecord


@dataclass(frozen=True)
class Failed:
    """Item that could not be processed, with the reason."""

    index: int
    title: str
    error: Exception


ItemResult = Union[Processed, Failed]


@dataclass
class ImportSummary:
    """Outcome of a whole import run."""

    total: int
    processed: int
    failed: int
    episode_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[ItemResult], episode_ids: list[int]) -> "ImportSummary":
        processed = sum(1 for result in results if isinstance(result, Processed))
        return cls(
            total=len(results),
            processed=processed,
            failed=len(results) - processed,
            episode_ids=episode_ids,
        )
