"""Single-file upload pipeline: validate, transform, store, index."""

import asyncio
from typing import Callable, Optional

from common.constants import ANONYMOUS_OWNER, DEFAULT_PRESIGNED_URL_TTL_SECONDS
from common.logging_config import get_logger
from common.types import FileRecord, ObjectTags, StoredObject, UploadResult
from vault.cleanup_task import OrphanLog
from vault.content_validator import ContentValidator
from vault.exceptions import InternalError, StorageError, ValidationError
from vault.object_store import ObjectStoreGateway
from vault.repositories.metadata_index import MetadataIndex
from vault.staging import StagedFile
from vault.utils import build_storage_key, generate_uuid, sanitize_filename, utc_now

logger = get_logger(__name__)


class UploadPipeline:
    def __init__(
        self,
        metadata_index: MetadataIndex,
        object_store: ObjectStoreGateway,
        validator: ContentValidator,
        orphan_log: Optional[OrphanLog] = None,
        presigned_url_ttl: int = DEFAULT_PRESIGNED_URL_TTL_SECONDS,
    ):
        self.metadata_index = metadata_index
        self.object_store = object_store
        self.validator = validator
        self.orphan_log = orphan_log
        self.presigned_url_ttl = presigned_url_ttl

    async def ingest(self, staged: StagedFile, owner_id: Optional[str] = None) -> UploadResult:
        """
        Run one staged file through validation, storage and indexing.

        The staged file is released on every exit path.

        Args:
            staged: Staged client file with its declared name, type and size
            owner_id: Uploading user; "anonymous" when absent

        Returns:
            UploadResult with the committed record and a short-lived read URL

        Raises:
            ValidationError: Detected content type disagrees with the declared one
            StorageError: The object store rejected the upload
            InternalError: The record could not be indexed (bytes are left as an orphan)
        """
        owner_id = owner_id or ANONYMOUS_OWNER
        file_id = generate_uuid()
        original_name = sanitize_filename(staged.filename)
        storage_key = build_storage_key(owner_id, file_id, original_name)
        declared_type = staged.content_type

        try:
            data = await asyncio.to_thread(staged.read_bytes)

            detected_type = self.validator.sniff(data)
            if detected_type is not None and detected_type != declared_type:
                logger.warning(
                    f"File type mismatch [file_id={file_id}]: declared {declared_type}, actual {detected_type}"
                )
                raise ValidationError(
                    f"File type validation failed: declared {declared_type}, detected {detected_type}"
                )

            if self.validator.should_reencode(declared_type):
                data = await asyncio.to_thread(self.validator.reencode, data, declared_type)

            uploaded_at = utc_now()
            tags = ObjectTags(
                owner_id=owner_id,
                file_id=file_id,
                original_name=original_name,
                uploaded_at=uploaded_at,
            )

            def build_record(stored: StoredObject) -> FileRecord:
                return FileRecord(
                    file_id=file_id,
                    original_name=original_name,
                    mime_type=declared_type,
                    size=staged.size,
                    storage_key=stored.key,
                    owner_id=owner_id,
                    uploaded_at=uploaded_at,
                    updated_at=uploaded_at,
                    location=stored.location,
                )

            stored = await self._put(storage_key, data, declared_type, tags, build_record)
            record = self._commit(build_record(stored))
        finally:
            staged.release()

        presigned_url = await self._presign(record)

        logger.info(f"File uploaded successfully [file_id={file_id}] [owner={owner_id}]")
        return UploadResult(record=record, location=stored.location, presigned_url=presigned_url)

    async def _put(
        self,
        storage_key: str,
        data: bytes,
        content_type: str,
        tags: ObjectTags,
        build_record: Callable[[StoredObject], FileRecord],
    ) -> StoredObject:
        """
        Store bytes; if the caller is cancelled mid-put, the put keeps running
        and its record is still committed once it lands.
        """
        put_task = asyncio.ensure_future(self.object_store.put(storage_key, data, content_type, tags))
        try:
            return await asyncio.shield(put_task)
        except asyncio.CancelledError:
            logger.warning(f"Upload cancelled while storing [key={storage_key}], committing when put completes")
            put_task.add_done_callback(lambda task: self._commit_after_cancel(task, build_record))
            raise

    def _commit(self, record: FileRecord) -> FileRecord:
        try:
            return self.metadata_index.create(record)
        except Exception as e:
            logger.error(
                f"Failed to save file metadata [file_id={record.file_id}], object {record.storage_key} is orphaned: {e}",
                exc_info=True,
            )
            if self.orphan_log is not None:
                self.orphan_log.record(record.storage_key, record.file_id, f"metadata commit failed: {e}")
            if isinstance(e, InternalError):
                raise
            raise InternalError(f"Failed to save file metadata: {e}") from e

    def _commit_after_cancel(self, task: asyncio.Future, build_record: Callable[[StoredObject], FileRecord]) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            return
        try:
            self._commit(build_record(task.result()))
        except InternalError:
            pass

    async def _presign(self, record: FileRecord) -> Optional[str]:
        try:
            return await self.object_store.signed_read_url(record.storage_key, self.presigned_url_ttl)
        except StorageError as e:
            logger.warning(f"Uploaded file {record.file_id} but could not sign a read URL: {e}")
            return None
