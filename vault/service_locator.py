"""Service locator for process-wide Vault components."""

from dataclasses import dataclass
from typing import Optional

from vault import config
from vault.cleanup_task import OrphanLog, OrphanedObjectCleaner
from vault.content_validator import ContentValidator
from vault.exceptions import InternalError
from vault.object_store import ObjectStoreGateway
from vault.repositories.metadata_index import MetadataIndex
from vault.services.batch_coordinator import BatchCoordinator
from vault.services.file_service import FileService
from vault.services.upload_pipeline import UploadPipeline
from vault.staging import StagingArea


@dataclass
class VaultServices:
    metadata_index: MetadataIndex
    object_store: ObjectStoreGateway
    staging_area: StagingArea
    orphan_log: OrphanLog
    upload_pipeline: UploadPipeline
    batch_coordinator: BatchCoordinator
    file_service: FileService
    cleaner: OrphanedObjectCleaner


_services: Optional[VaultServices] = None


def build_services(
    object_store: ObjectStoreGateway,
    metadata_index: Optional[MetadataIndex] = None,
    staging_dir: Optional[str] = None,
    orphan_log_path: Optional[str] = None,
) -> VaultServices:
    """
    Wire every component around one metadata index and one object store.

    Args:
        object_store: Gateway to the blob store
        metadata_index: Existing index (a fresh one is created if omitted)
        staging_dir: Override for config.STAGING_DIR
        orphan_log_path: Override for config.ORPHAN_LOG_PATH

    Returns:
        VaultServices bundle
    """
    metadata_index = metadata_index or MetadataIndex()
    orphan_log = OrphanLog(orphan_log_path or config.ORPHAN_LOG_PATH)
    pipeline = UploadPipeline(
        metadata_index=metadata_index,
        object_store=object_store,
        validator=ContentValidator(),
        orphan_log=orphan_log,
        presigned_url_ttl=config.PRESIGNED_URL_TTL,
    )

    return VaultServices(
        metadata_index=metadata_index,
        object_store=object_store,
        staging_area=StagingArea(staging_dir or config.STAGING_DIR, max_file_size=config.MAX_FILE_SIZE),
        orphan_log=orphan_log,
        upload_pipeline=pipeline,
        batch_coordinator=BatchCoordinator(pipeline, max_concurrency=config.BATCH_CONCURRENCY),
        file_service=FileService(metadata_index, object_store),
        cleaner=OrphanedObjectCleaner(
            orphan_log=orphan_log,
            object_store=object_store,
            metadata_index=metadata_index,
            interval_seconds=config.ORPHAN_CLEANUP_INTERVAL_SECONDS,
        ),
    )


def set_services(services: Optional[VaultServices]) -> None:
    """Set global services instance"""
    global _services
    _services = services


def get_services() -> VaultServices:
    """Get global services instance"""
    if _services is None:
        raise InternalError("Vault services are not initialized")
    return _services


def has_services() -> bool:
    return _services is not None
