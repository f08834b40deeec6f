"""Batch upload: runs the pipeline per file and merges outcomes in input order."""

import asyncio
from typing import List, Optional, Sequence, Union

from common.logging_config import get_logger
from common.types import BatchOutcome, BatchSummary, FailedUpload, UploadResult
from vault.services.upload_pipeline import UploadPipeline
from vault.staging import StagedFile

logger = get_logger(__name__)


class BatchCoordinator:
    """
    Drives UploadPipeline over several files with bounded parallelism.

    One file's failure never affects its siblings.
    """

    def __init__(self, pipeline: UploadPipeline, max_concurrency: int = 4):
        self.pipeline = pipeline
        self.max_concurrency = max(1, max_concurrency)

    async def ingest_many(self, files: Sequence[StagedFile], owner_id: Optional[str] = None) -> BatchOutcome:
        """
        Upload every staged file independently.

        Args:
            files: Staged files in request order
            owner_id: Uploading user

        Returns:
            BatchOutcome whose uploaded and failed lists follow input order
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(staged: StagedFile) -> Union[UploadResult, FailedUpload]:
            async with semaphore:
                try:
                    return await self.pipeline.ingest(staged, owner_id)
                except Exception as e:
                    logger.error(f"Failed to upload file {staged.filename}: {e}")
                    return FailedUpload(filename=staged.filename, error=str(e) or e.__class__.__name__)

        try:
            outcomes = await asyncio.gather(*(run_one(staged) for staged in files))
        finally:
            for staged in files:
                staged.release()

        uploaded: List[UploadResult] = []
        failed: List[FailedUpload] = []
        for outcome in outcomes:
            if isinstance(outcome, FailedUpload):
                failed.append(outcome)
            else:
                uploaded.append(outcome)

        summary = BatchSummary(total=len(files), successful=len(uploaded), failed=len(failed))
        logger.info(f"Batch upload completed: {summary.successful} successful, {summary.failed} failed")

        return BatchOutcome(uploaded=uploaded, failed=failed, summary=summary)
