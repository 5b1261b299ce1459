"""S3-compatible object storage client (DigitalOcean Spaces)."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backup_agent.config import UploadConfig

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


class StorageError(RuntimeError):
    """Raised when an object storage request fails.

    ``deleted`` counts objects a batch delete removed before it failed.
    """

    def __init__(self, message: str, deleted: int = 0):
        super().__init__(message)
        self.deleted = deleted


@dataclass(frozen=True)
class RemoteObject:
    """A listed object: its key and last-modified time."""

    key: str
    last_modified: Optional[datetime]


class StorageClient:
    """Thin async wrapper around a boto3 S3 client.

    All SDK calls are blocking, so each one is run in a worker thread.
    """

    def __init__(self, config: UploadConfig, client: Any = None):
        self.config = config
        self._client = client if client is not None else self._build_client(config)

    @staticmethod
    def _build_client(config: UploadConfig) -> Any:
        try:
            session = boto3.session.Session()
            return session.client(
                "s3",
                region_name=config.region_name,
                endpoint_url=config.endpoint_name,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
            )
        except (BotoCoreError, ValueError) as e:
            # botocore raises ValueError for a malformed endpoint URL
            raise StorageError(f"Could not create storage client: {e}") from e

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
        acl: str = "private",
    ) -> None:
        """Upload bytes under ``key`` in the configured bucket."""
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.config.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
                ACL=acl,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"put_object {key} failed: {e}") from e

    async def list_objects(self, prefix: str) -> list[RemoteObject]:
        """List every object whose key starts with ``prefix``."""
        try:
            return await asyncio.to_thread(self._list_objects, prefix)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"list_objects {prefix} failed: {e}") from e

    def _list_objects(self, prefix: str) -> list[RemoteObject]:
        paginator = self._client.get_paginator("list_objects_v2")
        objects: list[RemoteObject] = []
        for page in paginator.paginate(Bucket=self.config.bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                objects.append(RemoteObject(key=obj["Key"], last_modified=obj.get("LastModified")))
        return objects

    async def delete_objects(self, keys: Iterable[str]) -> int:
        """Batch-delete ``keys``. Returns the number of objects deleted."""
        keys = list(keys)
        deleted = 0
        if not keys:
            return deleted

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                response = await asyncio.to_thread(
                    self._client.delete_objects,
                    Bucket=self.config.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                raise StorageError(
                    f"delete_objects failed after {deleted} deletion(s): {e}", deleted=deleted
                ) from e

            errors = (response or {}).get("Errors") or []
            deleted += len(batch) - len(errors)
            if errors:
                first = errors[0]
                raise StorageError(
                    f"delete_objects failed for {len(errors)} key(s), "
                    f"first {first.get('Key')}: {first.get('Message')}",
                    deleted=deleted,
                )

        return deleted
