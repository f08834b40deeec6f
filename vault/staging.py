"""Local staging area for request bodies awaiting the upload pipeline."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile

from common.constants import STAGING_PIECE_SIZE_BYTES
from vault.exceptions import PayloadTooLargeError
from vault.utils import generate_uuid, normalize_content_type

logger = logging.getLogger(__name__)


@dataclass
class StagedFile:
    """
    One client file spooled to disk.

    release() is idempotent and never raises.
    """
    path: Path
    filename: str
    content_type: str
    size: int
    _released: bool = field(default=False, repr=False)

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to cleanup staged file {self.path}: {e}")


class StagingArea:
    """
    Directory holding staged uploads under unique names.
    """

    def __init__(self, directory: str, max_file_size: Optional[int] = None):
        """
        Initialize staging area.

        Args:
            directory: Directory for staged files (created if missing)
            max_file_size: Reject files larger than this many bytes
        """
        self.directory = Path(directory)
        self.max_file_size = max_file_size
        self.directory.mkdir(parents=True, exist_ok=True)

    def _new_path(self) -> Path:
        return self.directory / f"upload-{generate_uuid()}"

    def stage_bytes(self, data: bytes, filename: str, content_type: str) -> StagedFile:
        if self.max_file_size is not None and len(data) > self.max_file_size:
            raise PayloadTooLargeError(f"File {filename} exceeds {self.max_file_size} bytes")

        path = self._new_path()
        path.write_bytes(data)
        return StagedFile(
            path=path, filename=filename, content_type=normalize_content_type(content_type), size=len(data)
        )

    async def stage_upload(self, upload: UploadFile) -> StagedFile:
        """
        Stream a multipart upload to disk.

        Raises:
            PayloadTooLargeError: If the body exceeds max_file_size; the
                partial file is removed
        """
        path = self._new_path()
        size = 0
        filename = upload.filename or "file"

        try:
            async with aiofiles.open(path, "wb") as out:
                while True:
                    piece = await upload.read(STAGING_PIECE_SIZE_BYTES)
                    if not piece:
                        break
                    size += len(piece)
                    if self.max_file_size is not None and size > self.max_file_size:
                        raise PayloadTooLargeError(f"File {filename} exceeds {self.max_file_size} bytes")
                    await out.write(piece)
        except BaseException:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to cleanup partial staged file {path}: {e}")
            raise

        return StagedFile(
            path=path,
            filename=filename,
            content_type=normalize_content_type(upload.content_type),
            size=size,
        )
