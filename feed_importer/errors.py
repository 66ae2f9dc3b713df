"""Exceptions raised by the feed importer."""


class ImportPipelineError(Exception):
    """Base exception for all feed import errors."""

    pass


class FeedError(ImportPipelineError):
    """Feed could not be retrieved or parsed."""

    pass


class ShowNotFoundError(ImportPipelineError):
    """Target show does not exist in the database."""

    pass


class ItemProcessingError(ImportPipelineError):
    """A single feed item could not be turned into an episode."""

    pass


class MissingEnclosureError(ItemProcessingError):
    """Feed item has no enclosure to download."""

    pass


class FetchError(ItemProcessingError):
    """Audio download failed."""

    pass


class TranscodeError(ItemProcessingError):
    """ffmpeg rejected the input or could not run."""

    pass


class UploadError(ItemProcessingError):
    """Object store PUT failed."""

    pass
