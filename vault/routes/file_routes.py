"""File operation API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from common.constants import (
    ACCESS_URL_MIN_TTL_SECONDS,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_PRESIGNED_URL_TTL_SECONDS,
    DEFAULT_SHARE_TTL_SECONDS,
    MAX_PAGE_LIMIT,
    MAX_SEARCH_LENGTH,
    SHARE_URL_MIN_TTL_SECONDS,
    URL_MAX_TTL_SECONDS,
)
from vault.exceptions import ValidationError
from vault.schemas.files import (
    DeleteFileResponse,
    FileAccessResponse,
    FileMetadataResponse,
    ListFilesResponse,
    PaginationResponse,
    ShareLinkResponse,
)
from vault.service_locator import VaultServices, get_services
from vault.utils import is_valid_uuid, utc_now

router = APIRouter(prefix="/files", tags=["Files"])


def _require_file_id(file_id: str) -> str:
    if not is_valid_uuid(file_id):
        raise ValidationError("Invalid file ID format")
    return file_id


@router.get("", response_model=ListFilesResponse)
async def list_files(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    type: Optional[str] = Query(None, description="Substring of the MIME type"),
    search: Optional[str] = Query(None, max_length=MAX_SEARCH_LENGTH),
    services: VaultServices = Depends(get_services),
):
    """
    List files newest first.

    Parameters:
        - page: 1-indexed page number
        - limit: page size (1-100)
        - type: MIME type substring filter
        - search: case-insensitive filename substring
    """
    result = services.file_service.list_files(page=page, limit=limit, type_filter=type, search=search)

    return ListFilesResponse(
        files=[FileMetadataResponse.from_record(record) for record in result.items],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
    )


@router.get("/{file_id}", response_model=FileAccessResponse)
async def get_file(
    file_id: str,
    download: bool = Query(False),
    expires: int = Query(DEFAULT_PRESIGNED_URL_TTL_SECONDS, ge=ACCESS_URL_MIN_TTL_SECONDS, le=URL_MAX_TTL_SECONDS),
    services: VaultServices = Depends(get_services),
):
    """
    Get a signed read URL for a file and count the access.

    Raises:
        - 400: Invalid file id
        - 404: File not found
        - 502: Object store failure
    """
    access = await services.file_service.get_file_access(
        _require_file_id(file_id), expires_in=expires, download=download
    )

    return FileAccessResponse(
        file_id=access.record.file_id,
        filename=access.record.original_name,
        mime_type=access.record.mime_type,
        size=access.record.size,
        presigned_url=access.url,
        expires_at=access.expires_at,
        uploaded_at=access.record.uploaded_at,
    )


@router.get("/{file_id}/metadata", response_model=FileMetadataResponse)
async def get_file_metadata(file_id: str, services: VaultServices = Depends(get_services)):
    record = services.file_service.get_file_metadata(_require_file_id(file_id))
    return FileMetadataResponse.from_record(record)


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(file_id: str, services: VaultServices = Depends(get_services)):
    """
    Delete a file from the object store and the index.

    Raises:
        - 400: Invalid file id
        - 404: File not found
        - 502: Object store failure (the file stays listed)
    """
    await services.file_service.delete_file(_require_file_id(file_id))
    return DeleteFileResponse(file_id=file_id, deleted_at=utc_now())


@router.post("/{file_id}/share", response_model=ShareLinkResponse)
async def create_share_link(
    file_id: str,
    expires: int = Query(DEFAULT_SHARE_TTL_SECONDS, ge=SHARE_URL_MIN_TTL_SECONDS, le=URL_MAX_TTL_SECONDS),
    services: VaultServices = Depends(get_services),
):
    """
    Create a time-limited shareable link (1 hour to 7 days).
    """
    access = await services.file_service.create_share_link(_require_file_id(file_id), expires_in=expires)

    return ShareLinkResponse(
        file_id=access.record.file_id,
        filename=access.record.original_name,
        shareable_url=access.url,
        expires_at=access.expires_at,
        expires_in=access.expires_in,
    )
