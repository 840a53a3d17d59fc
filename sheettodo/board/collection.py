"""In-memory collection of the user's active tasks.

Local state only changes after the remote store confirms a write, and the
record kept is always the one the store echoed back. A failed call leaves the
collection exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging

from sheettodo.board.edits import add_tag, clean_title, diff_task, remove_tag
from sheettodo.context import UserContext
from sheettodo.errors import InvalidInput, TaskNotFound
from sheettodo.models import Task, TaskDraft, TaskEdit
from sheettodo.remote import RemoteStoreClient

logger = logging.getLogger(__name__)


class TaskCollection:
    """Active tasks of one user, mirrored from the remote store."""

    def __init__(self, remote: RemoteStoreClient) -> None:
        self._remote = remote
        self._tasks: list[Task] = []

    # -- reads ---------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        """Return a copy of the collection in insertion order."""
        return list(self._tasks)

    def get(self, task_id: str) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFound(f"Task {task_id} not found")

    def __contains__(self, task_id: object) -> bool:
        return any(task.id == task_id for task in self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    # -- local bookkeeping ---------------------------------------------------

    def put(self, task: Task) -> None:
        """Replace the record with the same id, or append a new one."""
        if task.id in self:
            self._tasks = [task if t.id == task.id else t for t in self._tasks]
        else:
            self._tasks = [*self._tasks, task]

    def _discard(self, task_ids: set[str]) -> None:
        self._tasks = [t for t in self._tasks if t.id not in task_ids]

    # -- remote-backed operations --------------------------------------------

    async def load(self, ctx: UserContext) -> None:
        """Replace the whole collection with the store's current list."""
        tasks = await self._remote.list_tasks(ctx.user_id)
        self._tasks = list(tasks)
        logger.info("Loaded %d tasks for %s", len(tasks), ctx.user_id)

    async def add(self, ctx: UserContext, draft: TaskDraft) -> Task:
        title = clean_title(draft.title)
        created = await self._remote.add_task(
            draft.model_copy(update={"title": title}), ctx.user_id
        )
        self.put(created)
        return created

    async def update(self, task_id: str, edit: TaskEdit) -> Task:
        """Send only the fields *edit* actually changes.

        An edit without effective changes issues no call and returns the
        current record.
        """
        task = self.get(task_id)
        changes = diff_task(task, edit)
        if not changes:
            logger.debug("No changes for task %s, skipping update", task_id)
            return task

        updated = await self._remote.update_task(task_id, changes)
        # The task may have been deleted while the call was in flight.
        if updated.id in self:
            self.put(updated)
        return updated

    async def toggle(self, task_id: str) -> Task:
        task = self.get(task_id)
        return await self.update(task_id, TaskEdit(completed=not task.completed))

    async def rename(self, task_id: str, title: str) -> Task:
        """Inline title edit."""
        return await self.update(task_id, TaskEdit(title=title))

    async def add_tag(self, task_id: str, tag: str) -> Task:
        if not tag.strip():
            raise InvalidInput("Tag cannot be empty")
        task = self.get(task_id)
        return await self.update(task_id, TaskEdit(tags=add_tag(task.tags, tag)))

    async def remove_tag(self, task_id: str, tag: str) -> Task:
        task = self.get(task_id)
        return await self.update(task_id, TaskEdit(tags=remove_tag(task.tags, tag)))

    async def delete(self, task_id: str) -> None:
        """Soft-delete on the store, then drop the record locally."""
        self.get(task_id)
        await self._remote.delete_task(task_id)
        self._discard({task_id})

    async def clear_completed(self) -> list[str]:
        """Delete every completed task, one request each, awaited together.

        Tasks whose delete succeeded are removed locally even when others
        fail; the first failure is then re-raised.
        """
        done = [t for t in self._tasks if t.completed]
        if not done:
            return []

        results = await asyncio.gather(
            *(self._remote.delete_task(t.id) for t in done),
            return_exceptions=True,
        )
        removed = {
            task.id
            for task, result in zip(done, results)
            if not isinstance(result, BaseException)
        }
        self._discard(removed)

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.warning(
                "Clear completed: %d of %d deletes failed", len(failures), len(done)
            )
            raise failures[0]
        return [t.id for t in done]
