"""Pydantic schemas for file and upload endpoints."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from common.constants import DEFAULT_PRESIGNED_URL_TTL_SECONDS, SHARE_URL_MIN_TTL_SECONDS, URL_MAX_TTL_SECONDS
from common.types import FileRecord, UploadResult


class UploadedFileResponse(BaseModel):
    """Response model for one uploaded file."""
    file_id: str
    filename: str
    mime_type: str
    size: int
    url: str
    presigned_url: Optional[str] = None
    uploaded_at: datetime

    @classmethod
    def from_result(cls, result: UploadResult) -> "UploadedFileResponse":
        return cls(
            file_id=result.record.file_id,
            filename=result.record.original_name,
            mime_type=result.record.mime_type,
            size=result.record.size,
            url=result.location,
            presigned_url=result.presigned_url,
            uploaded_at=result.record.uploaded_at,
        )


class FailedFileResponse(BaseModel):
    filename: str
    error: str


class BatchSummaryResponse(BaseModel):
    total: int
    successful: int
    failed: int


class BatchUploadResponse(BaseModel):
    """Response model for multi-file upload."""
    uploaded: List[UploadedFileResponse]
    failed: List[FailedFileResponse]
    summary: BatchSummaryResponse
    message: str


class DirectUploadRequest(BaseModel):
    """Request model for a direct-to-store upload URL."""
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1)
    expires_in: int = Field(DEFAULT_PRESIGNED_URL_TTL_SECONDS, ge=60, le=URL_MAX_TTL_SECONDS)


class DirectUploadResponse(BaseModel):
    file_id: str
    upload_url: str
    key: str
    expires_in: int


class FileMetadataResponse(BaseModel):
    """Response model for file metadata."""
    file_id: str
    filename: str
    mime_type: str
    size: int
    uploaded_at: datetime
    access_count: int
    last_accessed: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileMetadataResponse":
        return cls(
            file_id=record.file_id,
            filename=record.original_name,
            mime_type=record.mime_type,
            size=record.size,
            uploaded_at=record.uploaded_at,
            access_count=record.access_count,
            last_accessed=record.last_accessed,
        )


class FileAccessResponse(BaseModel):
    """Response model for a signed read URL."""
    file_id: str
    filename: str
    mime_type: str
    size: int
    presigned_url: str
    expires_at: datetime
    uploaded_at: datetime


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class ListFilesResponse(BaseModel):
    """Response model for file listing."""
    files: List[FileMetadataResponse]
    pagination: PaginationResponse


class DeleteFileResponse(BaseModel):
    file_id: str
    deleted_at: datetime


class ShareLinkResponse(BaseModel):
    """Response model for a shareable link."""
    file_id: str
    filename: str
    shareable_url: str
    expires_at: datetime
    expires_in: int = Field(..., ge=SHARE_URL_MIN_TTL_SECONDS)


class StatsOverview(BaseModel):
    total_files: int
    total_size: int
    total_accesses: int
    recent_uploads: int


class StatsDistribution(BaseModel):
    by_type: Dict[str, int]
    storage_by_type: Dict[str, int]


class StatsAverages(BaseModel):
    file_size: int
    accesses_per_file: int


class UploadStatsResponse(BaseModel):
    """Response model for aggregate upload statistics."""
    overview: StatsOverview
    distribution: StatsDistribution
    averages: StatsAverages
    timestamp: str
