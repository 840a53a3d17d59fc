"""Tests for the per-user board: error message, busy items, snapshot."""

import asyncio
from datetime import date

import pytest

from sheettodo.board.views import SortOrder, StatusFilter, ViewOptions
from sheettodo.errors import ConfirmationRequired, InvalidInput, ItemBusy, RemoteStoreError, TaskNotFound
from sheettodo.models import TaskDraft


class TestErrorMessage:
    @pytest.mark.anyio
    async def test_failure_becomes_visible_message(self, board, sheet):
        sheet.failures["add"] = "Sheet is full"
        with pytest.raises(RemoteStoreError):
            await board.add(TaskDraft(title="x"))
        assert board.error == "Sheet is full"
        assert board.snapshot()["error"] == "Sheet is full"

        board.dismiss_error()
        assert board.error is None

    @pytest.mark.anyio
    async def test_validation_failure_is_shown_without_call(self, board, sheet):
        with pytest.raises(InvalidInput):
            await board.add(TaskDraft(title="   "))
        assert board.error == "Title cannot be empty"
        assert sheet.calls == []

    @pytest.mark.anyio
    async def test_transport_failure_uses_generic_message(self, board, sheet):
        sheet.unreachable.add("list")
        with pytest.raises(RemoteStoreError):
            await board.load()
        assert board.error == "Failed to fetch todos"

    @pytest.mark.anyio
    async def test_reload_clears_previous_error(self, board, sheet):
        sheet.failures["list"] = "Down"
        with pytest.raises(RemoteStoreError):
            await board.load()
        del sheet.failures["list"]
        await board.load()
        assert board.error is None

    @pytest.mark.anyio
    async def test_confirmation_is_not_an_error(self, board, sheet):
        sheet.seed_deleted(title="old")
        await board.open_trash()
        with pytest.raises(ConfirmationRequired):
            await board.empty_trash()
        assert board.error is None

    @pytest.mark.anyio
    async def test_board_stays_usable_after_failure(self, board, sheet):
        sheet.failures["add"] = "Try later"
        with pytest.raises(RemoteStoreError):
            await board.add(TaskDraft(title="x"))
        del sheet.failures["add"]
        task = await board.add(TaskDraft(title="x"))
        assert [t.id for t in board.collection.tasks] == [task.id]


class TestBusyItems:
    @pytest.mark.anyio
    async def test_second_action_on_same_item_is_rejected(self, board, sheet):
        sheet.seed(title="slow")
        await board.load()

        gate = asyncio.Event()
        original = board.collection._remote.update_task

        async def slow_update(task_id, changes):
            await gate.wait()
            return await original(task_id, changes)

        board.collection._remote.update_task = slow_update
        first = asyncio.create_task(board.toggle("1"))
        await asyncio.sleep(0)
        assert board.is_pending("1")
        assert board.snapshot()["tasks"][0]["loading"] is True

        with pytest.raises(ItemBusy):
            await board.toggle("1")
        assert board.error is None

        gate.set()
        toggled = await first
        assert toggled.completed is True
        assert not board.is_pending("1")

    @pytest.mark.anyio
    async def test_different_items_proceed_independently(self, board, sheet):
        sheet.seed(title="a")
        sheet.seed(title="b")
        await board.load()
        await asyncio.gather(board.toggle("1"), board.toggle("2"))
        assert all(t.completed for t in board.collection.tasks)


class TestSnapshot:
    @pytest.mark.anyio
    async def test_snapshot_applies_view(self, board, sheet):
        sheet.seed(title="Alpha", priority="low", tags=["x"])
        sheet.seed(title="Beta", priority="high", completed=True, dueDate="2024-01-01")
        sheet.seed(title="Gamma", tags=["x", "y"], dueDate="2024-01-01")
        await board.load()

        board.set_view(ViewOptions(sort=SortOrder.priority))
        snap = board.snapshot(today=date(2024, 6, 1))
        assert [t["title"] for t in snap["tasks"]] == ["Beta", "Alpha", "Gamma"]
        assert snap["counts"] == {"total": 3, "completed": 1, "active": 2}
        assert snap["tags"] == ["x", "y"]
        assert snap["view"] == {"status": "all", "sort": "priority", "search": "", "tag": None}
        overdue = {t["title"]: t["overdue"] for t in snap["tasks"]}
        assert overdue == {"Alpha": False, "Beta": False, "Gamma": True}

        board.set_view(ViewOptions(status=StatusFilter.active, tag="y"))
        assert [t["title"] for t in board.snapshot()["tasks"]] == ["Gamma"]

    @pytest.mark.anyio
    async def test_snapshot_uses_wire_names(self, board, sheet):
        sheet.seed(title="Wire", dueDate="2024-02-03")
        await board.load()
        task = board.snapshot()["tasks"][0]
        assert task["dueDate"] == "2024-02-03"
        assert "createdAt" in task
        assert "due_date" not in task

    @pytest.mark.anyio
    async def test_restore_shows_up_in_list(self, board, sheet):
        sheet.seed(title="back again")
        await board.load()
        await board.delete("1")
        assert board.snapshot()["tasks"] == []

        trash = await board.open_trash()
        assert [t.id for t in trash] == ["1"]
        await board.restore("1")
        assert [t["id"] for t in board.snapshot()["tasks"]] == ["1"]
        assert board.trash_snapshot()["count"] == 0


class TestAttachmentUpload:
    @pytest.fixture
    def reader(self):
        reads = []

        async def read():
            reads.append(True)
            return b"hello"

        read.calls = reads
        return read

    @pytest.mark.anyio
    async def test_oversized_file_is_rejected_before_reading(self, board, sheet, reader):
        sheet.seed(title="files")
        await board.load()

        with pytest.raises(InvalidInput, match="too large"):
            await board.upload_attachment("1", "big.pdf", reader, size=10**10)
        assert reader.calls == []
        assert "uploadAttachment" not in sheet.actions()
        assert board.error.startswith("File is too large")
        assert not board.is_pending("attachments:1")

    @pytest.mark.anyio
    async def test_blocked_type_is_rejected_before_reading(self, board, sheet, reader):
        sheet.seed(title="files")
        await board.load()

        with pytest.raises(InvalidInput, match="File type not allowed"):
            await board.upload_attachment("1", "big.exe", reader, size=10)
        assert reader.calls == []

    @pytest.mark.anyio
    async def test_unknown_task_is_rejected_before_reading(self, board, reader):
        with pytest.raises(TaskNotFound):
            await board.upload_attachment("99", "notes.txt", reader, size=5)
        assert reader.calls == []

    @pytest.mark.anyio
    async def test_accepted_file_is_read_once_and_attached(self, board, sheet, reader):
        sheet.seed(title="files")
        await board.load()

        attachment = await board.upload_attachment("1", "notes.txt", reader, size=5)
        assert reader.calls == [True]
        assert board.collection.get("1").attachments == [attachment]

    @pytest.mark.anyio
    async def test_unknown_size_is_checked_after_reading(self, board, sheet, reader):
        sheet.seed(title="files")
        await board.load()

        with pytest.raises(InvalidInput):
            await board.upload_attachment("1", "run.exe", reader)
        assert reader.calls == [True]
        assert "uploadAttachment" not in sheet.actions()
