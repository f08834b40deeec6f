"""Pydantic schemas for API requests and responses."""

from vault.schemas.files import (
    BatchUploadResponse,
    DeleteFileResponse,
    DirectUploadRequest,
    DirectUploadResponse,
    FileAccessResponse,
    FileMetadataResponse,
    ListFilesResponse,
    ShareLinkResponse,
    UploadedFileResponse,
    UploadStatsResponse,
)
from vault.schemas.common import ErrorResponse

__all__ = [
    "BatchUploadResponse",
    "DeleteFileResponse",
    "DirectUploadRequest",
    "DirectUploadResponse",
    "FileAccessResponse",
    "FileMetadataResponse",
    "ListFilesResponse",
    "ShareLinkResponse",
    "UploadedFileResponse",
    "UploadStatsResponse",
    "ErrorResponse",
]
