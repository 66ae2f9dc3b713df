import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from feed_importer.config import ImportConfig
from feed_importer.errors import UploadError
from .base import BaseStorage


logger = logging.getLogger("storage")


class CloudStorage(BaseStorage):
    """A client for writing episode objects to S3 (or an S3-compatible service)."""

    def __init__(self, config: ImportConfig, client=None, tagging: str = "compressed=true"):
        if not config.bucket_name:
            raise ValueError(
                "Missing required configuration for cloud storage client."
                " Please ensure BUCKET_NAME is set."
            )

        self.bucket_name = config.bucket_name
        self.storage_class = config.storage_class
        self.tagging = tagging
        self.base_url: Optional[str] = config.original_base_url or None

        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=config.aws_region,
                endpoint_url=config.bucket_endpoint,
            )
        self.client = client

    def get_client(self):
        """Returns the initialized cloud storage client."""
        return self.client

    def get_object_url(self, key: str) -> str:
        """Constructs the public bucket URL of an object.

        Args:
            key (str): The object key.

        Return:
            str: The object URL.
        """
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    def put_object(self, key: str, body: bytes, content_type: str) -> str:
        """Uploads a payload with the configured tagging and storage class.

        Args:
            key (str): The object key.
            body (bytes): The payload.
            content_type (str): MIME type of the payload.

        Returns:
            str: The URL of the stored object.
        """
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
                Tagging=self.tagging,
                StorageClass=self.storage_class,
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(
                f"Error uploading s3://{self.bucket_name}/{key}: {e}"
            ) from e

        logger.debug(f"Uploaded s3://{self.bucket_name}/{key} ({len(body):,} bytes)")
        return self.get_object_url(key)
