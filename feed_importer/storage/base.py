from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """
    Abstract base class for object storage.

    Defines the write-only interface the import pipeline needs: a durable PUT
    of a byte payload under a key, and the URL an object is reachable at.
    """

    @abstractmethod
    def put_object(self, key: str, body: bytes, content_type: str) -> str:
        """Durably stores a payload under the given key.

        Args:
            key (str): The object key (e.g. "protected/42/1700000000000.mp3").
            body (bytes): The payload to store.
            content_type (str): MIME type recorded with the object.

        Returns:
            str: The URL of the stored object.

        Raises:
            UploadError: If the object could not be stored.
        """
        pass

    @abstractmethod
    def get_object_url(self, key: str) -> str:
        """Constructs the URL of an object.

        Args:
            key (str): The object key.

        Returns:
            str: The URL (or absolute path) of the object.
        """
        pass
