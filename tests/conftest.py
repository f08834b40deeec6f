"""Shared pytest fixtures for all tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import Dict, List, Optional

import pytest
from PIL import Image

from common.types import FileRecord, ObjectTags, StoredObject
from vault.cleanup_task import OrphanLog
from vault.content_validator import ContentValidator
from vault.exceptions import StorageError
from vault.object_store import ObjectStoreGateway
from vault.repositories.metadata_index import MetadataIndex
from vault.services.upload_pipeline import UploadPipeline
from vault.staging import StagingArea

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< >>\n%%EOF\n"


class FakeObjectStore(ObjectStoreGateway):
    """
    In-memory object store with failure injection.
    """

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.tags: Dict[str, ObjectTags] = {}
        self.deleted: List[str] = []
        self.fail_put = False
        self.fail_put_names: set = set()
        self.fail_delete = False
        self.fail_sign = False
        self.put_delay = 0.0
        self.put_gate: Optional[asyncio.Event] = None
        self.put_started: Optional[asyncio.Event] = None
        self.active_puts = 0
        self.max_active_puts = 0

    async def put(self, key, data, content_type, tags):
        self.active_puts += 1
        self.max_active_puts = max(self.max_active_puts, self.active_puts)
        try:
            if self.put_started is not None:
                self.put_started.set()
            if self.put_gate is not None:
                await self.put_gate.wait()
            if self.put_delay:
                await asyncio.sleep(self.put_delay)
            if self.fail_put or any(key.endswith(name) for name in self.fail_put_names):
                raise StorageError(f"simulated put failure for {key}")
            self.objects[key] = data
            self.content_types[key] = content_type
            self.tags[key] = tags
            return StoredObject(key=key, location=f"http://store.test/bucket/{key}")
        finally:
            self.active_puts -= 1

    async def delete(self, key):
        if self.fail_delete:
            raise StorageError(f"simulated delete failure for {key}")
        self.objects.pop(key, None)
        self.deleted.append(key)
        return True

    async def head_exists(self, key):
        return key in self.objects

    async def signed_read_url(self, key, ttl_seconds, force_download=False):
        if self.fail_sign:
            raise StorageError("simulated signing failure")
        suffix = "&disposition=attachment" if force_download else ""
        return f"http://store.test/bucket/{key}?expires={ttl_seconds}{suffix}"

    async def signed_write_url(self, key, content_type, ttl_seconds):
        if self.fail_sign:
            raise StorageError("simulated signing failure")
        return f"http://store.test/bucket/{key}?upload=1&expires={ttl_seconds}"


def make_image_bytes(width: int, height: int, image_format: str = "PNG", mode: str = "RGB") -> bytes:
    """Render a solid-color image in the given format."""
    image = Image.new(mode, (width, height), color=(200, 30, 30) if mode == "RGB" else 128)
    output = BytesIO()
    image.save(output, format=image_format)
    return output.getvalue()


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def metadata_index():
    return MetadataIndex()


@pytest.fixture
def staging_area(tmp_path):
    return StagingArea(str(tmp_path / "staging"))


@pytest.fixture
def orphan_log(tmp_path):
    return OrphanLog(str(tmp_path / "orphaned_objects.json"))


@pytest.fixture
def pipeline(metadata_index, object_store, orphan_log):
    return UploadPipeline(
        metadata_index=metadata_index,
        object_store=object_store,
        validator=ContentValidator(),
        orphan_log=orphan_log,
    )


@pytest.fixture
def make_record():
    """
    Factory for FileRecords with sensible defaults.
    """
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def factory(**overrides) -> FileRecord:
        counter["n"] += 1
        n = counter["n"]
        uploaded_at = overrides.pop("uploaded_at", base_time + timedelta(minutes=n))
        values = dict(
            file_id=f"00000000-0000-4000-8000-{n:012d}",
            original_name=f"file-{n}.txt",
            mime_type="text/plain",
            size=100,
            storage_key=f"uploads/anonymous/file-{n}",
            owner_id="anonymous",
            uploaded_at=uploaded_at,
            updated_at=uploaded_at,
        )
        values.update(overrides)
        return FileRecord(**values)

    return factory


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES
