"""Trash view: soft-deleted tasks, always refetched from the store."""

from __future__ import annotations

import logging

from sheettodo.board.collection import TaskCollection
from sheettodo.context import UserContext
from sheettodo.errors import ConfirmationRequired, TaskNotFound
from sheettodo.models import Task
from sheettodo.remote import RemoteStoreClient

logger = logging.getLogger(__name__)


class TrashBin:
    """Soft-deleted tasks of one user.

    Membership is never derived from local deletes: the store is the only
    source of truth, so :meth:`open` refetches on every call.
    """

    def __init__(self, remote: RemoteStoreClient, collection: TaskCollection) -> None:
        self._remote = remote
        self._collection = collection
        self._tasks: list[Task] = []
        self._opened = False

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    async def open(self, ctx: UserContext) -> list[Task]:
        """Fetch the deleted tasks fresh and return them."""
        self._tasks = list(await self._remote.list_deleted(ctx.user_id))
        self._opened = True
        return self.tasks

    async def restore(self, task_id: str) -> Task:
        """Move a task from the trash back into the active collection."""
        if not any(t.id == task_id for t in self._tasks):
            raise TaskNotFound(f"Task {task_id} is not in the trash")

        restored = await self._remote.restore_task(task_id)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._collection.put(restored)
        logger.info("Restored task %s", task_id)
        return restored

    def confirmation_prompt(self) -> str:
        count = len(self._tasks)
        noun = "task" if count == 1 else "tasks"
        return f"Permanently delete {count} {noun} in the trash? This cannot be undone."

    async def purge(self, ctx: UserContext, confirmed: bool = False) -> int:
        """Empty the trash on the store and clear the local list.

        A trash that was never opened is fetched first, and the prompt for
        its real count is required even if *confirmed* is set.

        Raises:
            ConfirmationRequired: If *confirmed* is false. Nothing is sent.
        """
        if not self._opened:
            await self.open(ctx)
            confirmed = False
        if not self._tasks:
            return 0
        if not confirmed:
            raise ConfirmationRequired(self.confirmation_prompt())

        result = await self._remote.empty_trash(ctx.user_id)
        self._tasks = []
        logger.info("Emptied trash for %s (%d removed)", ctx.user_id, result.deleted_count)
        return result.deleted_count
