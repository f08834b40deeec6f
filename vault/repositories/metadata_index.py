"""In-memory index: file_id -> FileRecord, plus share activity and aggregate views."""

import math
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from common.constants import RECENT_UPLOAD_WINDOW_SECONDS
from common.logging_config import get_logger
from common.types import FilePage, FileRecord, ShareActivityEntry
from vault.exceptions import FileRecordNotFoundError, RecordConflictError, ValidationError
from vault.utils import get_file_category, round_half_up, utc_now

logger = get_logger(__name__)


class MetadataIndex:
    """
    In-process store of file records keyed by file_id.

    Every public operation runs under one coarse lock and never performs I/O
    while holding it. Callers receive copies of records, never the stored
    instances.
    """

    def __init__(self):
        """Initialize empty index."""
        self._lock = threading.Lock()
        self._records: Dict[str, FileRecord] = {}
        self._share_activity: Dict[str, List[ShareActivityEntry]] = {}

    def create(self, record: FileRecord) -> FileRecord:
        """
        Insert a new record.

        Args:
            record: Fully populated FileRecord

        Returns:
            Copy of the stored record

        Raises:
            RecordConflictError: If file_id is already indexed
        """
        with self._lock:
            if record.file_id in self._records:
                raise RecordConflictError(f"File {record.file_id} is already indexed")
            stored = replace(record)
            self._records[stored.file_id] = stored
            snapshot = replace(stored)

        logger.info(f"File metadata saved [file_id={record.file_id}]")
        return snapshot

    def get(self, file_id: str) -> FileRecord:
        """
        Retrieve a record by id.

        Raises:
            FileRecordNotFoundError: If file_id is unknown
        """
        with self._lock:
            record = self._records.get(file_id)
            if record is None:
                raise FileRecordNotFoundError(f"File {file_id} not found")
            return replace(record)

    def exists(self, file_id: str) -> bool:
        with self._lock:
            return file_id in self._records

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def record_access(self, file_id: str) -> None:
        """
        Bump access_count and last_accessed for a record.

        Unknown ids are ignored. Failures are logged and never raised.
        """
        try:
            with self._lock:
                record = self._records.get(file_id)
                if record is None:
                    return
                now = utc_now()
                record.access_count += 1
                record.last_accessed = now
                record.updated_at = now
            logger.debug(f"Access stats updated [file_id={file_id}]")
        except Exception as e:
            logger.error(f"Failed to update access stats [file_id={file_id}]: {e}", exc_info=True)

    def delete(self, file_id: str) -> bool:
        """
        Remove a record and its share activity.

        Returns:
            True if a record was removed, False if none existed
        """
        with self._lock:
            removed = self._records.pop(file_id, None)
            self._share_activity.pop(file_id, None)

        if removed is not None:
            logger.info(f"File metadata deleted [file_id={file_id}]")
        return removed is not None

    def list(
        self,
        page: int = 1,
        limit: int = 20,
        type_filter: Optional[str] = None,
        search: Optional[str] = None,
    ) -> FilePage:
        """
        Filtered, newest-first page of records.

        Args:
            page: 1-indexed page number
            limit: Page size
            type_filter: Substring that must appear in mime_type
            search: Case-insensitive substring of original_name

        Returns:
            FilePage with pagination computed from the filtered count

        Raises:
            ValidationError: If page or limit is below 1
        """
        if page < 1:
            raise ValidationError("Page must be a positive integer")
        if limit < 1:
            raise ValidationError("Limit must be a positive integer")

        with self._lock:
            records = list(self._records.values())
            if type_filter:
                records = [r for r in records if type_filter in r.mime_type]
            if search:
                needle = search.lower()
                records = [r for r in records if needle in r.original_name.lower()]

            # stable sort keeps insertion order among equal timestamps
            records.sort(key=lambda r: r.uploaded_at, reverse=True)

            total = len(records)
            start = (page - 1) * limit
            items = [replace(r) for r in records[start:start + limit]]

        pages = math.ceil(total / limit)
        return FilePage(
            items=items,
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )

    def log_share(self, file_id: str, expires_in: int) -> None:
        """
        Append a share-link entry for an indexed file.

        Unknown ids are ignored. Failures are logged and never raised.
        """
        try:
            now = utc_now()
            entry = ShareActivityEntry(
                shared_at=now,
                expires_in=int(expires_in),
                expires_at=now + timedelta(seconds=int(expires_in)),
            )
            with self._lock:
                if file_id not in self._records:
                    return
                self._share_activity.setdefault(file_id, []).append(entry)
            logger.debug(f"Share activity logged [file_id={file_id}]")
        except Exception as e:
            logger.error(f"Failed to log share activity [file_id={file_id}]: {e}", exc_info=True)

    def share_activity(self, file_id: str) -> List[ShareActivityEntry]:
        with self._lock:
            return list(self._share_activity.get(file_id, []))

    def stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Aggregate statistics over one consistent view of the index.

        Args:
            now: Reference time for the recent-uploads window (defaults to now)

        Returns:
            Dictionary with overview, distribution, averages and timestamp
        """
        now = now or utc_now()
        recent_cutoff = now - timedelta(seconds=RECENT_UPLOAD_WINDOW_SECONDS)

        total_files = 0
        total_size = 0
        total_accesses = 0
        recent_uploads = 0
        by_type: Dict[str, int] = {}
        storage_by_type: Dict[str, int] = {}

        with self._lock:
            for record in self._records.values():
                category = get_file_category(record.mime_type)
                total_files += 1
                total_size += record.size
                total_accesses += record.access_count
                by_type[category] = by_type.get(category, 0) + 1
                storage_by_type[category] = storage_by_type.get(category, 0) + record.size
                if record.uploaded_at > recent_cutoff:
                    recent_uploads += 1

        return {
            "overview": {
                "total_files": total_files,
                "total_size": total_size,
                "total_accesses": total_accesses,
                "recent_uploads": recent_uploads,
            },
            "distribution": {
                "by_type": by_type,
                "storage_by_type": storage_by_type,
            },
            "averages": {
                "file_size": round_half_up(total_size / total_files) if total_files else 0,
                "accesses_per_file": round_half_up(total_accesses / total_files) if total_files else 0,
            },
            "timestamp": now.isoformat(),
        }

    def export_snapshot(self) -> Dict[str, Any]:
        """
        Dump records and share activity as JSON-safe data.
        """
        with self._lock:
            files = [record.to_dict() for record in self._records.values()]
            share_activity = {
                file_id: [entry.to_dict() for entry in entries]
                for file_id, entries in self._share_activity.items()
            }

        return {
            "files": files,
            "share_activity": share_activity,
            "exported_at": utc_now().isoformat(),
        }

    def import_snapshot(self, data: Dict[str, Any]) -> int:
        """
        Replace the index contents with a snapshot from export_snapshot.

        Returns:
            Number of records loaded
        """
        records = {}
        for item in data.get("files", []):
            record = FileRecord.from_dict(item)
            records[record.file_id] = record

        share_activity = {
            file_id: [ShareActivityEntry.from_dict(entry) for entry in entries]
            for file_id, entries in data.get("share_activity", {}).items()
            if file_id in records
        }

        with self._lock:
            self._records = records
            self._share_activity = share_activity

        logger.info(f"Imported {len(records)} file records into metadata index")
        return len(records)
