"""Object-store gateway: the interface the engine needs and its MinIO/S3 implementation."""

import asyncio
from abc import ABC, abstractmethod
from datetime import timedelta
from io import BytesIO
from typing import Optional

from minio import Minio
from minio.commonconfig import Tags
from minio.error import MinioException, S3Error
from minio.sse import SseS3
from urllib3.exceptions import HTTPError as TransportError

from common.logging_config import get_logger
from common.types import ObjectTags, StoredObject
from vault.exceptions import StorageError

logger = get_logger(__name__)

_STORE_ERRORS = (MinioException, TransportError, OSError, ValueError)
_MISSING_CODES = ("NoSuchKey", "NotFound", "NoSuchObject")


class ObjectStoreGateway(ABC):
    """
    Operations the upload engine needs from a key-addressed blob store.

    Every method raises StorageError on transport or backend failure.
    Retrying is left to the implementation's own transport.
    """

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str, tags: ObjectTags) -> StoredObject:
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object. A missing key counts as success."""
        ...

    @abstractmethod
    async def head_exists(self, key: str) -> bool:
        ...

    @abstractmethod
    async def signed_read_url(self, key: str, ttl_seconds: int, force_download: bool = False) -> str:
        ...

    @abstractmethod
    async def signed_write_url(self, key: str, content_type: str, ttl_seconds: int) -> str:
        ...

    async def ensure_bucket(self) -> None:
        """Create backing storage if the implementation needs it."""
        return None


class MinioObjectStore(ObjectStoreGateway):
    """
    Gateway over any S3-compatible service via the MinIO client.

    The client is blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        region: Optional[str] = None,
        server_side_encryption: bool = True,
        environment: str = "development",
        client: Optional[Minio] = None,
    ):
        """
        Initialize gateway.

        Args:
            endpoint: host:port of the S3 endpoint
            access_key: Access key id
            secret_key: Secret access key
            bucket: Bucket holding all uploads
            secure: Use HTTPS
            region: Optional bucket region
            server_side_encryption: Request SSE-S3 on every put
            environment: Value of the Environment object tag
            client: Preconfigured Minio client (mainly for tests)
        """
        self.bucket = bucket
        self.endpoint = endpoint
        self.secure = secure
        self.environment = environment
        self._sse = SseS3() if server_side_encryption else None
        self._client = client or Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )

    def _location(self, key: str) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}/{self.bucket}/{key}"

    async def ensure_bucket(self) -> None:
        try:
            exists = await asyncio.to_thread(self._client.bucket_exists, bucket_name=self.bucket)
            if not exists:
                await asyncio.to_thread(self._client.make_bucket, bucket_name=self.bucket)
                logger.info(f"Created bucket {self.bucket}")
        except _STORE_ERRORS as e:
            logger.error(f"Failed to ensure bucket {self.bucket}: {e}")
            raise StorageError(f"Object store unavailable: {e}") from e

    async def put(self, key: str, data: bytes, content_type: str, tags: ObjectTags) -> StoredObject:
        object_tags = Tags.new_object_tags()
        for tag_key, tag_value in tags.as_object_tags(self.environment).items():
            object_tags[tag_key] = tag_value

        try:
            await asyncio.to_thread(
                self._client.put_object,
                bucket_name=self.bucket,
                object_name=key,
                data=BytesIO(data),
                length=len(data),
                content_type=content_type,
                metadata=tags.as_metadata(),
                sse=self._sse,
                tags=object_tags,
            )
        except _STORE_ERRORS as e:
            logger.error(f"Object store upload failed [key={key}]: {e}")
            raise StorageError(f"File upload failed: {e}") from e

        logger.info(f"File uploaded to object store [key={key}] [size={len(data)}]")
        return StoredObject(key=key, location=self._location(key))

    async def delete(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.remove_object, bucket_name=self.bucket, object_name=key)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return True
            logger.error(f"Object store delete failed [key={key}]: {e}")
            raise StorageError(f"File deletion failed: {e}") from e
        except _STORE_ERRORS as e:
            logger.error(f"Object store delete failed [key={key}]: {e}")
            raise StorageError(f"File deletion failed: {e}") from e

        logger.info(f"File deleted from object store [key={key}]")
        return True

    async def head_exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.stat_object, bucket_name=self.bucket, object_name=key)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to check object {key}: {e}") from e
        except _STORE_ERRORS as e:
            raise StorageError(f"Failed to check object {key}: {e}") from e
        return True

    async def signed_read_url(self, key: str, ttl_seconds: int, force_download: bool = False) -> str:
        response_headers = {"response-content-disposition": "attachment"} if force_download else None
        try:
            url = await asyncio.to_thread(
                self._client.presigned_get_object,
                bucket_name=self.bucket,
                object_name=key,
                expires=timedelta(seconds=ttl_seconds),
                response_headers=response_headers,
            )
        except _STORE_ERRORS as e:
            logger.error(f"Failed to generate presigned URL [key={key}]: {e}")
            raise StorageError(f"Failed to generate access URL: {e}") from e

        logger.debug(f"Presigned URL generated [key={key}]")
        return url

    async def signed_write_url(self, key: str, content_type: str, ttl_seconds: int) -> str:
        try:
            url = await asyncio.to_thread(
                self._client.presigned_put_object,
                bucket_name=self.bucket,
                object_name=key,
                expires=timedelta(seconds=ttl_seconds),
            )
        except _STORE_ERRORS as e:
            logger.error(f"Failed to generate presigned upload URL [key={key}]: {e}")
            raise StorageError(f"Failed to generate upload URL: {e}") from e

        logger.debug(f"Presigned upload URL generated [key={key}] [content_type={content_type}]")
        return url
