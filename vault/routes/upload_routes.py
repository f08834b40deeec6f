"""Upload API routes."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status

from common.logging_config import get_logger
from vault import config
from vault.auth import get_owner_id
from vault.exceptions import ValidationError
from vault.schemas.files import (
    BatchSummaryResponse,
    BatchUploadResponse,
    DirectUploadRequest,
    DirectUploadResponse,
    FailedFileResponse,
    UploadedFileResponse,
    UploadStatsResponse,
)
from vault.service_locator import VaultServices, get_services
from vault.utils import normalize_content_type

logger = get_logger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])


def _check_allowed_type(upload: UploadFile) -> None:
    content_type = normalize_content_type(upload.content_type)
    if content_type not in config.ALLOWED_FILE_TYPES:
        raise ValidationError(f"File type {content_type} is not allowed")


@router.post("/single", response_model=UploadedFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_single(
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id),
    services: VaultServices = Depends(get_services),
):
    """
    Upload one file.

    Parameters:
        - file: File to upload (multipart/form-data)
        - X-User-Id header: optional owner id

    Returns:
        - file_id, filename, mime_type, size, url, presigned_url, uploaded_at

    Raises:
        - 400: Disallowed or mismatching content type
        - 413: File too large
        - 502: Object store failure
    """
    _check_allowed_type(file)

    staged = await services.staging_area.stage_upload(file)
    result = await services.upload_pipeline.ingest(staged, owner_id)

    return UploadedFileResponse.from_result(result)


@router.post("/multiple", response_model=BatchUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_multiple(
    files: List[UploadFile] = File(...),
    owner_id: str = Depends(get_owner_id),
    services: VaultServices = Depends(get_services),
):
    """
    Upload several files; each succeeds or fails on its own.

    Parameters:
        - files: Files to upload (multipart/form-data, at most VAULT_MAX_BATCH_FILES)

    Returns:
        - uploaded: successful uploads in request order
        - failed: filename and error for each failed upload
        - summary: total, successful, failed

    Raises:
        - 400: No files, too many files, or a disallowed content type
        - 413: A file is too large
    """
    if not files:
        raise ValidationError("No files provided")
    if len(files) > config.MAX_BATCH_FILES:
        raise ValidationError(f"At most {config.MAX_BATCH_FILES} files can be uploaded at once")
    for upload in files:
        _check_allowed_type(upload)

    staged_files = []
    try:
        for upload in files:
            staged_files.append(await services.staging_area.stage_upload(upload))
    except BaseException:
        for staged in staged_files:
            staged.release()
        raise

    outcome = await services.batch_coordinator.ingest_many(staged_files, owner_id)

    return BatchUploadResponse(
        uploaded=[UploadedFileResponse.from_result(result) for result in outcome.uploaded],
        failed=[FailedFileResponse(filename=f.filename, error=f.error) for f in outcome.failed],
        summary=BatchSummaryResponse(
            total=outcome.summary.total,
            successful=outcome.summary.successful,
            failed=outcome.summary.failed,
        ),
        message=f"Upload completed: {outcome.summary.successful}/{outcome.summary.total} files successful",
    )


@router.post("/direct", response_model=DirectUploadResponse)
async def create_direct_upload(
    request: DirectUploadRequest,
    owner_id: str = Depends(get_owner_id),
    services: VaultServices = Depends(get_services),
):
    """
    Issue a signed URL the client can PUT the file to directly.
    """
    ticket = await services.file_service.create_upload_url(
        filename=request.filename,
        content_type=request.content_type,
        expires_in=request.expires_in,
        owner_id=owner_id,
    )

    return DirectUploadResponse(
        file_id=ticket.file_id,
        upload_url=ticket.upload_url,
        key=ticket.key,
        expires_in=ticket.expires_in,
    )


@router.get("/stats", response_model=UploadStatsResponse)
async def get_upload_stats(services: VaultServices = Depends(get_services)):
    """
    Aggregate statistics over all indexed files.
    """
    return services.file_service.get_stats()
