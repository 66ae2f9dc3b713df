import os

from feed_importer.errors import UploadError
from .base import BaseStorage


class LocalStorage(BaseStorage):
    """Stores objects on the local filesystem, mirroring keys as relative paths."""

    def __init__(self, root: str = "data/objects"):
        self.root = root

    def get_object_url(self, key: str) -> str:
        """Constructs the absolute filename of an object in local storage.

        Args:
            key (str): The object key.

        Return:
            str: The absolute filename.
        """
        return os.path.abspath(os.path.join(self.root, key))

    def put_object(self, key: str, body: bytes, content_type: str) -> str:
        """Writes the payload to ``<root>/<key>``.

        The content type is not persisted on the local filesystem.

        Args:
            key (str): The object key.
            body (bytes): The payload.
            content_type (str): MIME type of the payload.

        Returns:
            str: The absolute path of the saved file.
        """
        path = self.get_object_url(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as file:
                file.write(body)
        except OSError as e:
            raise UploadError(f"Error saving {key} to local storage: {e}") from e
        return path
