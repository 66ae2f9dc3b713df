from dataclasses import dataclass
from typing import Optional

from feed_importer.config import ImportConfig
from feed_importer.db import ShowInfo


@dataclass(frozen=True)
class ImportContext:
    """Values resolved once per run and shared read-only by every item."""

    show_id: int
    owner_id: int
    default_image_key: str


def resolve_context(
    show: ShowInfo, owner_override: Optional[int], config: ImportConfig
) -> ImportContext:
    """
    Build the run context from the looked-up show.

    The show's own owner wins; the command line owner is only used for shows
    that have none recorded.

    Raises:
        ValueError: If neither the show nor the caller provides an owner.
    """
    owner_id = show.owner_id if show.owner_id is not None else owner_override
    if owner_id is None:
        raise ValueError(f"Show {show.id} has no owner and none was given")

    image_url = show.image_url or ""
    default_image_key = image_url.replace(config.original_base_url, "")

    return ImportContext(
        show_id=show.id,
        owner_id=owner_id,
        default_image_key=default_image_key,
    )
