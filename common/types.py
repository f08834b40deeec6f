"""Shared data type definitions (FileRecord, ObjectTags, BatchOutcome, etc.)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


@dataclass
class FileRecord:
    """
    Metadata for one stored file.

    Only the metadata index mutates instances; everything outside it
    receives copies.
    """
    file_id: str
    original_name: str
    mime_type: str
    size: int
    storage_key: str
    owner_id: str
    uploaded_at: datetime
    updated_at: datetime
    location: Optional[str] = None
    access_count: int = 0
    last_accessed: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "original_name": self.original_name,
            "mime_type": self.mime_type,
            "size": self.size,
            "storage_key": self.storage_key,
            "owner_id": self.owner_id,
            "uploaded_at": self.uploaded_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "location": self.location,
            "access_count": self.access_count,
            "last_accessed": self.last_accessed.isoformat() if self.last_accessed else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        return cls(
            file_id=data["file_id"],
            original_name=data["original_name"],
            mime_type=data["mime_type"],
            size=int(data["size"]),
            storage_key=data["storage_key"],
            owner_id=data["owner_id"],
            uploaded_at=_parse_timestamp(data["uploaded_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
            location=data.get("location"),
            access_count=int(data.get("access_count", 0)),
            last_accessed=_parse_timestamp(data.get("last_accessed")),
        )


@dataclass(frozen=True)
class ShareActivityEntry:
    """
    One share-link creation, kept for auditing only.
    """
    shared_at: datetime
    expires_in: int
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shared_at": self.shared_at.isoformat(),
            "expires_in": self.expires_in,
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShareActivityEntry":
        return cls(
            shared_at=_parse_timestamp(data["shared_at"]),
            expires_in=int(data["expires_in"]),
            expires_at=_parse_timestamp(data["expires_at"]),
        )


@dataclass(frozen=True)
class ObjectTags:
    """
    Descriptive fields attached to every stored object.
    """
    owner_id: str
    file_id: str
    original_name: str
    uploaded_at: datetime

    def as_metadata(self) -> Dict[str, str]:
        """
        Render as object user metadata.

        Header values must be ASCII, so the original name is percent-encoded.
        """
        return {
            "user-id": self.owner_id,
            "file-id": self.file_id,
            "original-name": quote(self.original_name, safe=""),
            "upload-timestamp": self.uploaded_at.isoformat(),
        }

    def as_object_tags(self, environment: str) -> Dict[str, str]:
        return {
            "Environment": environment,
            "UserId": self.owner_id,
            "FileId": self.file_id,
        }


@dataclass(frozen=True)
class StoredObject:
    """
    Result of a successful object-store put.
    """
    key: str
    location: str


@dataclass(frozen=True)
class UploadResult:
    record: FileRecord
    location: str
    presigned_url: Optional[str]


@dataclass(frozen=True)
class FailedUpload:
    filename: str
    error: str


@dataclass(frozen=True)
class BatchSummary:
    total: int
    successful: int
    failed: int


@dataclass(frozen=True)
class BatchOutcome:
    """
    Per-file results of one batch upload, in input order.
    """
    uploaded: List[UploadResult]
    failed: List[FailedUpload]
    summary: BatchSummary


@dataclass(frozen=True)
class FilePage:
    items: List[FileRecord] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0
    pages: int = 0
    has_next: bool = False
    has_prev: bool = False
