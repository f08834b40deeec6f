"""Tests for the single-file upload pipeline."""

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from vault.exceptions import InternalError, StorageError, ValidationError


class TestIngest:
    """Test the happy path and its stored artifacts."""

    @pytest.mark.asyncio
    async def test_plain_text_upload(self, pipeline, staging_area, metadata_index, object_store):
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        result = await pipeline.ingest(staged)

        record = result.record
        assert record.original_name == "notes.txt"
        assert record.mime_type == "text/plain"
        assert record.size == 5
        assert record.owner_id == "anonymous"
        assert record.access_count == 0
        assert record.storage_key == f"uploads/anonymous/{record.file_id}-notes.txt"
        assert object_store.objects[record.storage_key] == b"hello"
        assert result.presigned_url is not None
        assert result.location.endswith(record.storage_key)

        stats = metadata_index.stats()
        assert stats["overview"]["total_files"] == 1
        assert stats["overview"]["total_size"] == 5
        assert stats["distribution"]["by_type"] == {"text": 1}

    @pytest.mark.asyncio
    async def test_staged_file_released_after_success(self, pipeline, staging_area):
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        await pipeline.ingest(staged)

        assert staged.released
        assert not staged.path.exists()

    @pytest.mark.asyncio
    async def test_owner_id_flows_into_key_and_tags(self, pipeline, staging_area, object_store, pdf_bytes):
        staged = staging_area.stage_bytes(pdf_bytes, "report.pdf", "application/pdf")

        result = await pipeline.ingest(staged, owner_id="user-42")

        key = result.record.storage_key
        assert key.startswith("uploads/user-42/")
        tags = object_store.tags[key]
        assert tags.owner_id == "user-42"
        assert tags.file_id == result.record.file_id
        assert tags.as_object_tags("test")["FileId"] == result.record.file_id
        assert object_store.content_types[key] == "application/pdf"

    @pytest.mark.asyncio
    async def test_path_separators_stripped_from_key(self, pipeline, staging_area):
        staged = staging_area.stage_bytes(b"data", "../../etc/passwd", "text/plain")

        result = await pipeline.ingest(staged)

        assert result.record.original_name == "passwd"
        assert ".." not in result.record.storage_key
        assert result.record.storage_key.count("/") == 2

    @pytest.mark.asyncio
    async def test_each_upload_gets_distinct_id(self, pipeline, staging_area, metadata_index):
        first = await pipeline.ingest(staging_area.stage_bytes(b"a", "same.txt", "text/plain"))
        second = await pipeline.ingest(staging_area.stage_bytes(b"b", "same.txt", "text/plain"))

        assert first.record.file_id != second.record.file_id
        assert first.record.storage_key != second.record.storage_key
        assert metadata_index.count() == 2


class TestContentTypeCheck:
    """Test rejection of mislabeled content."""

    @pytest.mark.asyncio
    async def test_png_declared_as_pdf_is_rejected(
        self, pipeline, staging_area, metadata_index, object_store, image_bytes
    ):
        staged = staging_area.stage_bytes(image_bytes(10, 10), "doc.pdf", "application/pdf")

        with pytest.raises(ValidationError):
            await pipeline.ingest(staged)

        assert metadata_index.count() == 0
        assert object_store.objects == {}
        assert staged.released

    @pytest.mark.asyncio
    async def test_pdf_declared_as_png_is_rejected(self, pipeline, staging_area, metadata_index, pdf_bytes):
        before = metadata_index.count()
        staged = staging_area.stage_bytes(pdf_bytes, "picture.png", "image/png")

        with pytest.raises(ValidationError):
            await pipeline.ingest(staged)

        assert metadata_index.count() == before

    @pytest.mark.asyncio
    async def test_unrecognized_content_accepts_declared_type(self, pipeline, staging_area):
        staged = staging_area.stage_bytes(b"id,name\n1,alice\n", "people.csv", "text/csv")

        result = await pipeline.ingest(staged)

        assert result.record.mime_type == "text/csv"


class TestImageHandling:
    """Test image re-encoding inside the pipeline."""

    @pytest.mark.asyncio
    async def test_large_png_is_downscaled(self, pipeline, staging_area, object_store, image_bytes):
        original = image_bytes(3000, 1000)
        staged = staging_area.stage_bytes(original, "wide.png", "image/png")

        result = await pipeline.ingest(staged)

        stored = object_store.objects[result.record.storage_key]
        with Image.open(BytesIO(stored)) as image:
            assert image.format == "PNG"
            assert image.width == 2048
            assert image.height <= 2048
        assert result.record.size == len(original)

    @pytest.mark.asyncio
    async def test_gif_is_stored_unchanged(self, pipeline, staging_area, object_store, image_bytes):
        original = image_bytes(3000, 20, image_format="GIF", mode="L")
        staged = staging_area.stage_bytes(original, "anim.gif", "image/gif")

        result = await pipeline.ingest(staged)

        assert object_store.objects[result.record.storage_key] == original

    @pytest.mark.asyncio
    async def test_corrupt_png_falls_back_to_original_bytes(self, pipeline, staging_area, object_store):
        corrupt = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
        staged = staging_area.stage_bytes(corrupt, "broken.png", "image/png")

        result = await pipeline.ingest(staged)

        assert object_store.objects[result.record.storage_key] == corrupt


class TestFailures:
    """Test failure handling at each stage."""

    @pytest.mark.asyncio
    async def test_storage_failure_leaves_no_record(self, pipeline, staging_area, metadata_index, object_store):
        object_store.fail_put = True
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        with pytest.raises(StorageError):
            await pipeline.ingest(staged)

        assert metadata_index.count() == 0
        assert staged.released

    @pytest.mark.asyncio
    async def test_commit_failure_records_orphan(
        self, pipeline, staging_area, metadata_index, object_store, orphan_log, monkeypatch
    ):
        def broken_create(record):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(metadata_index, "create", broken_create)
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        with pytest.raises(InternalError):
            await pipeline.ingest(staged)

        entries = orphan_log.entries()
        assert len(entries) == 1
        assert entries[0]["storage_key"] in object_store.objects
        assert "index unavailable" in entries[0]["reason"]

    @pytest.mark.asyncio
    async def test_signing_failure_still_succeeds(self, pipeline, staging_area, metadata_index, object_store):
        object_store.fail_sign = True
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        result = await pipeline.ingest(staged)

        assert result.presigned_url is None
        assert metadata_index.exists(result.record.file_id)

    @pytest.mark.asyncio
    async def test_cancel_during_put_still_commits(self, pipeline, staging_area, metadata_index, object_store):
        object_store.put_gate = asyncio.Event()
        object_store.put_started = asyncio.Event()
        staged = staging_area.stage_bytes(b"hello", "notes.txt", "text/plain")

        task = asyncio.create_task(pipeline.ingest(staged))
        await object_store.put_started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert metadata_index.count() == 0
        object_store.put_gate.set()

        for _ in range(100):
            if metadata_index.count() == 1:
                break
            await asyncio.sleep(0.01)

        assert metadata_index.count() == 1
        assert len(object_store.objects) == 1
        assert staged.released
