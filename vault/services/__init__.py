"""Service layer for upload and file operations."""

from vault.services.batch_coordinator import BatchCoordinator
from vault.services.file_service import FileService
from vault.services.upload_pipeline import UploadPipeline

__all__ = [
    "BatchCoordinator",
    "FileService",
    "UploadPipeline",
]
