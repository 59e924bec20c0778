"""
services/object_store.py
------------------------
Object Store Gateway: bytes live here, metadata lives in the database.

ObjectStore is the interface the rest of the application talks to;
S3ObjectStore implements it over aioboto3 and works against any
S3-compatible service (AWS S3, MinIO, Supabase Storage's S3 endpoint).

Key layout:
    {registration_number}/{display_name}
    {registration_number}/.keep      placeholder that materialises an
                                     otherwise empty namespace

Every failure is raised on the first attempt; nothing here retries.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from docportal.core.config import Settings
from docportal.core.errors import (
    ObjectNotFound,
    ObjectStoreError,
    SignError,
    UploadError,
)
from docportal.core.logging import get_logger

logger = get_logger(__name__)

KEEP_PLACEHOLDER = ".keep"

# S3 DeleteObjects accepts at most this many keys per call.
_DELETE_BATCH = 1000

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def object_key(prefix: str, name: str) -> str:
    return f"{prefix.rstrip('/')}/{name}"


@dataclass(frozen=True)
class ObjectMeta:
    key: str
    name: str
    size: int
    last_modified: Optional[datetime]


class ObjectStore(abc.ABC):
    """Minimal object-storage contract used by the services."""

    @abc.abstractmethod
    async def put_object(
        self, key: str, data: bytes, content_type: str, upsert: bool = True
    ) -> None:
        """Write `data` under `key`; with upsert an existing object is replaced."""

    @abc.abstractmethod
    async def signed_url(self, key: str, ttl_seconds: int) -> str:
        """Time-limited read URL. Raises ObjectNotFound if the key is absent."""

    @abc.abstractmethod
    async def list_prefix(self, prefix: str) -> List[ObjectMeta]:
        """Direct children of `prefix` (non-recursive)."""

    @abc.abstractmethod
    async def remove_prefix(self, prefix: str) -> int:
        """Delete every object under `prefix`; returns the number removed."""

    async def close(self) -> None:
        return None


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(ObjectStore):

    def __init__(
        self,
        bucket: str,
        session: Optional[aioboto3.Session] = None,
        client_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._bucket = bucket
        self._session = session or aioboto3.Session()
        self._client_kwargs = client_kwargs or {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        client_kwargs: Dict[str, Any] = {
            "region_name": settings.S3_REGION,
            "config": Config(signature_version="s3v4", retries={"max_attempts": 1}),
        }
        if settings.S3_ENDPOINT_URL:
            client_kwargs["endpoint_url"] = settings.S3_ENDPOINT_URL
        if settings.S3_ACCESS_KEY_ID:
            client_kwargs["aws_access_key_id"] = settings.S3_ACCESS_KEY_ID
            client_kwargs["aws_secret_access_key"] = settings.S3_SECRET_ACCESS_KEY
        logger.info(
            "S3 object store configured",
            bucket=settings.S3_BUCKET,
            endpoint=settings.S3_ENDPOINT_URL,
            region=settings.S3_REGION,
        )
        return cls(bucket=settings.S3_BUCKET, client_kwargs=client_kwargs)

    def _client(self):
        return self._session.client("s3", **self._client_kwargs)

    async def _head(self, s3, key: str) -> bool:
        try:
            await s3.head_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise

    async def put_object(
        self, key: str, data: bytes, content_type: str, upsert: bool = True
    ) -> None:
        try:
            async with self._client() as s3:
                if not upsert and await self._head(s3, key):
                    raise UploadError(f"Object '{key}' already exists")
                await s3.put_object(
                    Bucket=self._bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 upload failed", key=key, error=str(exc))
            raise UploadError(f"Upload failed: {exc}") from exc
        logger.info("Object stored", key=key, size=len(data), content_type=content_type)

    async def signed_url(self, key: str, ttl_seconds: int) -> str:
        try:
            async with self._client() as s3:
                if not await self._head(s3, key):
                    raise ObjectNotFound(f"File '{key}' not found")
                return await s3.generate_presigned_url(
                    ClientMethod="get_object",
                    Params={"Bucket": self._bucket, "Key": key},
                    ExpiresIn=ttl_seconds,
                    HttpMethod="GET",
                )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 signing failed", key=key, error=str(exc))
            raise SignError(f"Could not sign URL: {exc}") from exc

    async def list_prefix(self, prefix: str) -> List[ObjectMeta]:
        folder = prefix.rstrip("/") + "/"
        objects: List[ObjectMeta] = []
        params: Dict[str, Any] = {
            "Bucket": self._bucket,
            "Prefix": folder,
            "Delimiter": "/",
        }
        try:
            async with self._client() as s3:
                while True:
                    page = await s3.list_objects_v2(**params)
                    for item in page.get("Contents", []):
                        key = item["Key"]
                        objects.append(
                            ObjectMeta(
                                key=key,
                                name=key[len(folder):],
                                size=int(item.get("Size", 0)),
                                last_modified=item.get("LastModified"),
                            )
                        )
                    if not page.get("IsTruncated"):
                        break
                    params["ContinuationToken"] = page["NextContinuationToken"]
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 listing failed", prefix=prefix, error=str(exc))
            raise ObjectStoreError(f"Could not list '{prefix}': {exc}") from exc
        return objects

    async def remove_prefix(self, prefix: str) -> int:
        folder = prefix.rstrip("/") + "/"
        removed = 0
        params: Dict[str, Any] = {"Bucket": self._bucket, "Prefix": folder}
        try:
            async with self._client() as s3:
                while True:
                    page = await s3.list_objects_v2(**params)
                    keys = [{"Key": item["Key"]} for item in page.get("Contents", [])]
                    for start in range(0, len(keys), _DELETE_BATCH):
                        batch = keys[start:start + _DELETE_BATCH]
                        result = await s3.delete_objects(
                            Bucket=self._bucket,
                            Delete={"Objects": batch, "Quiet": True},
                        )
                        errors = result.get("Errors") or []
                        if errors:
                            raise ObjectStoreError(
                                f"{len(errors)} object(s) under '{prefix}' could not be deleted"
                            )
                        removed += len(batch)
                    if not page.get("IsTruncated"):
                        break
                    params["ContinuationToken"] = page["NextContinuationToken"]
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 prefix removal failed", prefix=prefix, error=str(exc))
            raise ObjectStoreError(f"Could not remove '{prefix}': {exc}") from exc
        logger.info("Prefix removed", prefix=prefix, removed=removed)
        return removed
