"""Per-user board: the stateful layer behind every view action.

Owns the active collection, the trash, the attachment manager, the current
view settings, the single dismissible error message, and the per-item
loading flags that stand in for disabled controls.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Awaitable, Callable, Optional

from sheettodo.board.attachments import AttachmentManager
from sheettodo.board.collection import TaskCollection
from sheettodo.board.trash import TrashBin
from sheettodo.board.views import ViewOptions, collect_tags, derive_view, is_overdue, summarize
from sheettodo.config import ALLOWED_EXTENSIONS, MAX_ATTACHMENT_BYTES
from sheettodo.context import UserContext
from sheettodo.errors import ConfirmationRequired, ItemBusy, SheetTodoError
from sheettodo.models import Attachment, Task, TaskDraft, TaskEdit
from sheettodo.remote import RemoteStoreClient

logger = logging.getLogger(__name__)


class TaskBoard:
    """All client-side state of one signed-in user."""

    def __init__(
        self,
        ctx: UserContext,
        remote: RemoteStoreClient,
        *,
        allowed_extensions: tuple[str, ...] = ALLOWED_EXTENSIONS,
        max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    ) -> None:
        self.ctx = ctx
        self.collection = TaskCollection(remote)
        self.trash = TrashBin(remote, self.collection)
        self.attachments = AttachmentManager(
            remote,
            self.collection,
            allowed_extensions=allowed_extensions,
            max_bytes=max_attachment_bytes,
        )
        self._view = ViewOptions()
        self._error: Optional[str] = None
        self._pending: set[str] = set()

    # -- reads ---------------------------------------------------------------

    @property
    def view(self) -> ViewOptions:
        return self._view

    @property
    def error(self) -> Optional[str]:
        return self._error

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def snapshot(self, today: Optional[date] = None) -> dict:
        """Return the rendered list plus everything the page shows around it."""
        today = today or date.today()
        tasks = self.collection.tasks
        visible = derive_view(tasks, self._view)
        return {
            "user": self.ctx.user_id,
            "view": self._view.model_dump(mode="json"),
            "tasks": [self._render(task, today) for task in visible],
            "counts": summarize(tasks),
            "tags": collect_tags(tasks),
            "error": self._error,
            "pending": sorted(self._pending),
        }

    def trash_snapshot(self) -> dict:
        return {
            "tasks": [t.model_dump(by_alias=True, mode="json") for t in self.trash.tasks],
            "count": len(self.trash),
            "error": self._error,
        }

    # -- view settings -------------------------------------------------------

    def set_view(self, options: ViewOptions) -> None:
        self._view = options

    def dismiss_error(self) -> None:
        self._error = None

    # -- task actions --------------------------------------------------------

    async def load(self) -> None:
        """Fetch the active collection; previous contents survive a failure."""
        self._error = None
        async with self._action("load"):
            await self.collection.load(self.ctx)

    async def add(self, draft: TaskDraft) -> Task:
        async with self._action("add"):
            return await self.collection.add(self.ctx, draft)

    async def update(self, task_id: str, edit: TaskEdit) -> Task:
        async with self._action(task_id):
            return await self.collection.update(task_id, edit)

    async def toggle(self, task_id: str) -> Task:
        async with self._action(task_id):
            return await self.collection.toggle(task_id)

    async def rename(self, task_id: str, title: str) -> Task:
        async with self._action(task_id):
            return await self.collection.rename(task_id, title)

    async def add_tag(self, task_id: str, tag: str) -> Task:
        async with self._action(task_id):
            return await self.collection.add_tag(task_id, tag)

    async def remove_tag(self, task_id: str, tag: str) -> Task:
        async with self._action(task_id):
            return await self.collection.remove_tag(task_id, tag)

    async def delete(self, task_id: str) -> None:
        async with self._action(task_id):
            await self.collection.delete(task_id)

    async def clear_completed(self) -> list[str]:
        async with self._action("clear-completed"):
            return await self.collection.clear_completed()

    # -- trash ---------------------------------------------------------------

    async def open_trash(self) -> list[Task]:
        async with self._action("trash"):
            return await self.trash.open(self.ctx)

    async def restore(self, task_id: str) -> Task:
        async with self._action(f"trash:{task_id}"):
            return await self.trash.restore(task_id)

    async def empty_trash(self, confirmed: bool = False) -> int:
        async with self._action("trash"):
            return await self.trash.purge(self.ctx, confirmed)

    # -- attachments ---------------------------------------------------------

    async def upload_attachment(
        self,
        task_id: str,
        name: str,
        read: Callable[[], Awaitable[bytes]],
        size: Optional[int] = None,
    ) -> Attachment:
        """Upload a file whose bytes come from *read*.

        When the caller knows *size* up front, type and size are checked
        before *read* is awaited.
        """
        async with self._action(f"attachments:{task_id}"):
            self.collection.get(task_id)
            if size is not None:
                self.attachments.validate(name, size)
            content = await read()
            return await self.attachments.upload(task_id, name, content)

    async def delete_attachment(
        self, task_id: str, attachment_id: str, confirmed: bool = False
    ) -> None:
        async with self._action(f"attachment:{attachment_id}"):
            await self.attachments.delete(task_id, attachment_id, confirmed)

    # -- private helpers -----------------------------------------------------

    @asynccontextmanager
    async def _action(self, key: str) -> AsyncIterator[None]:
        """Run one user action with its control disabled.

        A failure becomes the board's visible message and is re-raised.
        """
        if key in self._pending:
            raise ItemBusy("That item is still being saved")

        self._pending.add(key)
        try:
            yield
        except ConfirmationRequired:
            raise
        except SheetTodoError as exc:
            logger.info("Action %s failed for %s: %s", key, self.ctx.user_id, exc.message)
            self._error = exc.message
            raise
        finally:
            self._pending.discard(key)

    def _render(self, task: Task, today: date) -> dict:
        return {
            **task.model_dump(by_alias=True, mode="json"),
            "overdue": is_overdue(task, today),
            "loading": task.id in self._pending,
        }
