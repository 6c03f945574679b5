"""Object storage for listing images."""

import asyncio
import logging
from functools import partial
from typing import Any, List, Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from carmarket.config import StorageSettings
from carmarket.utils.errors import UpstreamServiceError

logger = logging.getLogger(__name__)


def _status_of(error: Exception) -> Optional[int]:
    if isinstance(error, ClientError):
        return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return None


class ImageStorage:
    """Stores images in an S3-compatible bucket under `<listing_id>/<filename>`.

    Public URLs follow `<public_base_url>/<bucket>/<key>`, so every key can be
    recovered from the URL stored on the listing.
    """

    def __init__(self, settings: StorageSettings, client: Any = None):
        """Initialize the storage.

        Args:
            settings: Storage settings
            client: A boto3 S3 client. Built from the settings when omitted.
        """
        self.bucket = settings.bucket
        self.public_base_url = settings.public_base_url.rstrip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            region_name=settings.region,
            aws_access_key_id=settings.access_key_id.get_secret_value() or None,
            aws_secret_access_key=settings.secret_access_key.get_secret_value() or None,
        )
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def object_key(listing_id: Any, filename: str) -> str:
        return f"{listing_id}/{filename}"

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Recover the object key from a public URL, or None if it is not one of ours."""
        path = unquote(urlparse(url).path)
        marker = f"/{self.bucket}/"
        position = path.find(marker)
        if position == -1:
            return None
        key = path[position + len(marker) :]
        return key or None

    async def _run(self, func, **kwargs):
        # boto3 is synchronous
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, **kwargs))

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Upload one object and return its public URL.

        Raises:
            UpstreamServiceError: If the storage call fails
        """
        try:
            await self._run(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(
                "storage", f"Failed to upload image {key}: {e}", upstream_status=_status_of(e)
            ) from e

        self.logger.debug(f"Uploaded {key} ({len(data)} bytes)")
        return self.public_url(key)

    async def remove(self, keys: List[str]) -> None:
        """Delete objects by key.

        Raises:
            UpstreamServiceError: If the call fails or any object could not be deleted
        """
        if not keys:
            return
        try:
            response = await self._run(
                self.client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(
                "storage", f"Failed to delete images: {e}", upstream_status=_status_of(e)
            ) from e

        errors = (response or {}).get("Errors") or []
        if errors:
            failed = [error.get("Key") for error in errors]
            raise UpstreamServiceError("storage", f"Failed to delete images: {failed}")
        self.logger.debug(f"Deleted {len(keys)} images")
