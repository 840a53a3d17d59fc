"""Derived view: filter, search and sort the task collection.

Everything here is a pure function of its inputs. Callers get fresh lists and
the collection passed in is never mutated.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from sheettodo.models import Task, TaskPriority


class StatusFilter(str, Enum):
    all = "all"
    active = "active"
    completed = "completed"


class SortOrder(str, Enum):
    newest = "newest"
    oldest = "oldest"
    due_date = "dueDate"
    priority = "priority"


class ViewOptions(BaseModel):
    """Current filter/sort/search settings of the list view."""
    model_config = ConfigDict(frozen=True)

    status: StatusFilter = StatusFilter.all
    sort: SortOrder = SortOrder.newest
    search: str = ""
    tag: Optional[str] = None


PRIORITY_RANK = {
    TaskPriority.high: 0,
    TaskPriority.medium: 1,
    TaskPriority.low: 2,
}
_NO_PRIORITY_RANK = len(PRIORITY_RANK)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created_key(task: Task) -> datetime:
    """Parse ``createdAt``; unparseable stamps sort as the epoch."""
    try:
        parsed = datetime.fromisoformat(task.created_at.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _due_key(task: Task) -> tuple[bool, date]:
    # Missing due dates go after every real one.
    return (task.due_date is None, task.due_date or date.min)


def _priority_key(task: Task) -> int:
    if task.priority is None:
        return _NO_PRIORITY_RANK
    return PRIORITY_RANK[task.priority]


def matches(task: Task, options: ViewOptions) -> bool:
    """Return True when *task* passes every active filter."""
    if options.status is StatusFilter.active and task.completed:
        return False
    if options.status is StatusFilter.completed and not task.completed:
        return False

    if options.tag and options.tag not in task.tags:
        return False

    query = options.search.strip().lower()
    if query:
        haystacks = (task.title, task.description or "")
        if not any(query in text.lower() for text in haystacks):
            return False

    return True


def sort_tasks(tasks: Iterable[Task], order: SortOrder) -> list[Task]:
    """Stable sort by *order*; equal keys keep their input order."""
    if order is SortOrder.newest:
        return sorted(tasks, key=_created_key, reverse=True)
    if order is SortOrder.oldest:
        return sorted(tasks, key=_created_key)
    if order is SortOrder.due_date:
        return sorted(tasks, key=_due_key)
    return sorted(tasks, key=_priority_key)


def derive_view(tasks: Iterable[Task], options: ViewOptions) -> list[Task]:
    """Filter then sort *tasks* for display."""
    return sort_tasks((t for t in tasks if matches(t, options)), options.sort)


def summarize(tasks: Iterable[Task]) -> dict[str, int]:
    tasks = list(tasks)
    completed = sum(1 for t in tasks if t.completed)
    return {
        "total": len(tasks),
        "completed": completed,
        "active": len(tasks) - completed,
    }


def collect_tags(tasks: Iterable[Task]) -> list[str]:
    """Distinct tags across *tasks* in first-seen order."""
    seen: list[str] = []
    for task in tasks:
        for tag in task.tags:
            if tag not in seen:
                seen.append(tag)
    return seen


def is_overdue(task: Task, today: date) -> bool:
    return not task.completed and task.due_date is not None and task.due_date < today
