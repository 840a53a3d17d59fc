"""Tests for attachment validation, upload and delete."""

import base64

import pytest

from sheettodo.board.attachments import AttachmentManager, format_size
from sheettodo.board.collection import TaskCollection
from sheettodo.errors import ConfirmationRequired, InvalidInput, RemoteStoreError


@pytest.fixture
def collection(remote):
    return TaskCollection(remote)


@pytest.fixture
def manager(remote, collection):
    return AttachmentManager(
        remote,
        collection,
        allowed_extensions=("pdf", "png", "txt"),
        max_bytes=1024,
    )


@pytest.fixture
async def loaded(anyio_backend, collection, sheet, ctx):
    sheet.seed(title="With files")
    await collection.load(ctx)
    return collection


class TestValidate:
    def test_allowed_file_passes(self, manager):
        manager.validate("report.PDF", 10)

    def test_disallowed_extension_names_allowed_types(self, manager):
        with pytest.raises(InvalidInput, match=r"Allowed types: \.pdf, \.png, \.txt"):
            manager.validate("script.exe", 10)

    def test_missing_extension_is_rejected(self, manager):
        with pytest.raises(InvalidInput):
            manager.validate("README", 10)

    def test_oversized_file_names_limit(self, manager):
        with pytest.raises(InvalidInput, match="Maximum size is 1 KB"):
            manager.validate("big.png", 1025)

    def test_size_at_limit_passes(self, manager):
        manager.validate("edge.png", 1024)

    def test_format_size(self):
        assert format_size(100 * 1024 * 1024) == "100 MB"
        assert format_size(10 * 1024 * 1024) == "10 MB"
        assert format_size(512) == "512 B"


class TestUpload:
    @pytest.mark.anyio
    async def test_upload_appends_metadata(self, manager, loaded, sheet):
        attachment = await manager.upload("1", "notes.txt", b"hello")

        payload = sheet.calls[-1]["payload"]
        assert payload["action"] == "uploadAttachment"
        assert payload["todoId"] == "1"
        assert payload["mimeType"] == "text/plain"
        assert base64.b64decode(payload["fileData"]) == b"hello"
        assert loaded.get("1").attachments == [attachment]

    @pytest.mark.anyio
    async def test_rejected_file_issues_no_call(self, manager, loaded, sheet):
        calls_before = len(sheet.calls)
        with pytest.raises(InvalidInput):
            await manager.upload("1", "virus.exe", b"x")
        with pytest.raises(InvalidInput):
            await manager.upload("1", "huge.png", b"x" * 2048)
        assert len(sheet.calls) == calls_before
        assert loaded.get("1").attachments == []

    @pytest.mark.anyio
    async def test_upload_path_reads_local_file(self, manager, loaded, tmp_path):
        path = tmp_path / "scan.png"
        path.write_bytes(b"\x89PNG....")
        attachment = await manager.upload_path("1", path)
        assert attachment.name == "scan.png"
        assert attachment.mime_type == "image/png"

    @pytest.mark.anyio
    async def test_upload_path_checks_size_before_reading(self, manager, loaded, sheet, tmp_path):
        path = tmp_path / "big.txt"
        path.write_bytes(b"x" * 4096)
        calls_before = len(sheet.calls)
        with pytest.raises(InvalidInput, match="too large"):
            await manager.upload_path("1", path)
        assert len(sheet.calls) == calls_before

    @pytest.mark.anyio
    async def test_failed_upload_leaves_task(self, manager, loaded, sheet):
        sheet.failures["uploadAttachment"] = "Drive quota exceeded"
        with pytest.raises(RemoteStoreError, match="Drive quota exceeded"):
            await manager.upload("1", "a.txt", b"a")
        assert loaded.get("1").attachments == []


class TestDelete:
    @pytest.mark.anyio
    async def test_delete_requires_confirmation(self, manager, loaded, sheet):
        attachment = await manager.upload("1", "a.txt", b"a")
        calls_before = len(sheet.calls)

        with pytest.raises(ConfirmationRequired, match='Delete attachment "a.txt"'):
            await manager.delete("1", attachment.id)
        assert len(sheet.calls) == calls_before
        assert loaded.get("1").attachments == [attachment]

    @pytest.mark.anyio
    async def test_confirmed_delete_removes_by_id(self, manager, loaded, sheet):
        first = await manager.upload("1", "a.txt", b"a")
        second = await manager.upload("1", "b.txt", b"b")

        await manager.delete("1", first.id, confirmed=True)
        assert sheet.calls[-1]["payload"] == {
            "action": "deleteAttachment",
            "todoId": "1",
            "attachmentId": first.id,
        }
        assert loaded.get("1").attachments == [second]
