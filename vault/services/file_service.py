"""File service for read, delete, share and statistics operations."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from common.constants import ANONYMOUS_OWNER, DEFAULT_PRESIGNED_URL_TTL_SECONDS, DEFAULT_SHARE_TTL_SECONDS
from common.logging_config import get_logger
from common.types import FilePage, FileRecord
from vault.object_store import ObjectStoreGateway
from vault.repositories.metadata_index import MetadataIndex
from vault.utils import build_storage_key, generate_uuid, sanitize_filename, utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileAccess:
    record: FileRecord
    url: str
    expires_in: int
    expires_at: datetime


@dataclass(frozen=True)
class UploadTicket:
    file_id: str
    upload_url: str
    key: str
    expires_in: int


class FileService:
    def __init__(self, metadata_index: MetadataIndex, object_store: ObjectStoreGateway):
        self.metadata_index = metadata_index
        self.object_store = object_store

    async def get_file_access(
        self,
        file_id: str,
        expires_in: int = DEFAULT_PRESIGNED_URL_TTL_SECONDS,
        download: bool = False,
    ) -> FileAccess:
        """
        Sign a read URL for a file and count the access.

        Raises:
            FileRecordNotFoundError: Unknown file id
            StorageError: URL signing failed (no access is counted)
        """
        record = self.metadata_index.get(file_id)
        url = await self.object_store.signed_read_url(record.storage_key, expires_in, force_download=download)

        self.metadata_index.record_access(file_id)
        logger.info(f"File access [file_id={file_id}]")

        return FileAccess(
            record=record,
            url=url,
            expires_in=expires_in,
            expires_at=utc_now() + timedelta(seconds=expires_in),
        )

    def get_file_metadata(self, file_id: str) -> FileRecord:
        return self.metadata_index.get(file_id)

    async def delete_file(self, file_id: str) -> FileRecord:
        """
        Delete a file's bytes, then its record.

        A failed object-store delete leaves the record in place.

        Raises:
            FileRecordNotFoundError: Unknown file id
            StorageError: Object-store delete failed
        """
        record = self.metadata_index.get(file_id)

        await self.object_store.delete(record.storage_key)
        self.metadata_index.delete(file_id)

        logger.info(f"File deleted [file_id={file_id}]")
        return record

    def list_files(
        self,
        page: int = 1,
        limit: int = 20,
        type_filter: Optional[str] = None,
        search: Optional[str] = None,
    ) -> FilePage:
        return self.metadata_index.list(page=page, limit=limit, type_filter=type_filter, search=search)

    async def create_share_link(self, file_id: str, expires_in: int = DEFAULT_SHARE_TTL_SECONDS) -> FileAccess:
        """
        Sign a long-lived read URL and log the share.
        """
        record = self.metadata_index.get(file_id)
        url = await self.object_store.signed_read_url(record.storage_key, expires_in)

        self.metadata_index.log_share(file_id, expires_in)
        logger.info(f"Shareable link created [file_id={file_id}]")

        return FileAccess(
            record=record,
            url=url,
            expires_in=expires_in,
            expires_at=utc_now() + timedelta(seconds=expires_in),
        )

    async def create_upload_url(
        self,
        filename: str,
        content_type: str,
        expires_in: int = DEFAULT_PRESIGNED_URL_TTL_SECONDS,
        owner_id: Optional[str] = None,
    ) -> UploadTicket:
        """
        Sign a direct-to-store write URL. No record is created.
        """
        file_id = generate_uuid()
        key = build_storage_key(owner_id or ANONYMOUS_OWNER, file_id, sanitize_filename(filename))

        upload_url = await self.object_store.signed_write_url(key, content_type, expires_in)
        return UploadTicket(file_id=file_id, upload_url=upload_url, key=key, expires_in=expires_in)

    def get_stats(self) -> Dict[str, Any]:
        return self.metadata_index.stats()
