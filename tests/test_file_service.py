"""Tests for file read, delete, share and stats operations."""

from datetime import timedelta

import pytest

from vault.exceptions import FileRecordNotFoundError, StorageError
from vault.services.file_service import FileService


@pytest.fixture
def file_service(metadata_index, object_store):
    return FileService(metadata_index, object_store)


@pytest.fixture
def stored_record(metadata_index, object_store, make_record):
    record = make_record(original_name="photo.png", mime_type="image/png")
    metadata_index.create(record)
    object_store.objects[record.storage_key] = b"png-bytes"
    return record


class TestGetFileAccess:
    """Test signed read access."""

    @pytest.mark.asyncio
    async def test_signs_url_and_counts_access(self, file_service, metadata_index, stored_record):
        access = await file_service.get_file_access(stored_record.file_id, expires_in=600)

        assert stored_record.storage_key in access.url
        assert "expires=600" in access.url
        assert access.expires_in == 600
        assert access.expires_at - access.record.uploaded_at > timedelta(0)
        assert metadata_index.get(stored_record.file_id).access_count == 1

    @pytest.mark.asyncio
    async def test_download_flag_requests_attachment(self, file_service, stored_record):
        access = await file_service.get_file_access(stored_record.file_id, download=True)

        assert "disposition=attachment" in access.url

    @pytest.mark.asyncio
    async def test_unknown_file(self, file_service):
        with pytest.raises(FileRecordNotFoundError):
            await file_service.get_file_access("missing")

    @pytest.mark.asyncio
    async def test_signing_failure_counts_nothing(self, file_service, metadata_index, object_store, stored_record):
        object_store.fail_sign = True

        with pytest.raises(StorageError):
            await file_service.get_file_access(stored_record.file_id)

        assert metadata_index.get(stored_record.file_id).access_count == 0


class TestDeleteFile:
    """Test deletion ordering."""

    @pytest.mark.asyncio
    async def test_delete_removes_object_and_record(self, file_service, metadata_index, object_store, stored_record):
        deleted = await file_service.delete_file(stored_record.file_id)

        assert deleted.file_id == stored_record.file_id
        assert stored_record.storage_key not in object_store.objects
        assert not metadata_index.exists(stored_record.file_id)

    @pytest.mark.asyncio
    async def test_store_failure_keeps_record(self, file_service, metadata_index, object_store, stored_record):
        object_store.fail_delete = True

        with pytest.raises(StorageError):
            await file_service.delete_file(stored_record.file_id)

        assert metadata_index.exists(stored_record.file_id)

    @pytest.mark.asyncio
    async def test_second_delete_is_not_found(self, file_service, stored_record):
        await file_service.delete_file(stored_record.file_id)

        with pytest.raises(FileRecordNotFoundError):
            await file_service.delete_file(stored_record.file_id)


class TestShareAndUploadUrls:
    """Test share links and direct upload tickets."""

    @pytest.mark.asyncio
    async def test_share_link_logs_activity(self, file_service, metadata_index, stored_record):
        access = await file_service.create_share_link(stored_record.file_id, expires_in=7200)

        assert access.expires_in == 7200
        assert "expires=7200" in access.url
        assert [e.expires_in for e in metadata_index.share_activity(stored_record.file_id)] == [7200]
        assert metadata_index.get(stored_record.file_id).access_count == 0

    @pytest.mark.asyncio
    async def test_share_link_for_unknown_file(self, file_service):
        with pytest.raises(FileRecordNotFoundError):
            await file_service.create_share_link("missing")

    @pytest.mark.asyncio
    async def test_upload_url_creates_no_record(self, file_service, metadata_index):
        ticket = await file_service.create_upload_url("../avatar.png", "image/png", expires_in=900, owner_id="u1")

        assert ticket.key == f"uploads/u1/{ticket.file_id}-avatar.png"
        assert "upload=1" in ticket.upload_url
        assert ticket.expires_in == 900
        assert metadata_index.count() == 0


class TestListAndStats:
    """Test pass-through queries."""

    def test_list_files(self, file_service, stored_record):
        page = file_service.list_files(page=1, limit=10, type_filter="png")

        assert [r.file_id for r in page.items] == [stored_record.file_id]

    def test_get_stats(self, file_service, stored_record):
        stats = file_service.get_stats()

        assert stats["overview"]["total_files"] == 1
        assert stats["distribution"]["by_type"] == {"images": 1}
        assert "timestamp" in stats
