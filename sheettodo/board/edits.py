"""Title/tag normalisation and the modal diff sent by ``update``."""

from __future__ import annotations

from typing import Any

from sheettodo.errors import InvalidInput
from sheettodo.models import Task, TaskEdit, dedupe_tags


def clean_title(title: str | None) -> str:
    """Return the trimmed title or raise when nothing is left."""
    trimmed = (title or "").strip()
    if not trimmed:
        raise InvalidInput("Title cannot be empty")
    return trimmed


def add_tag(tags: list[str], tag: str) -> list[str]:
    """Return a new tag list with *tag* appended unless already present."""
    return dedupe_tags([*tags, tag])


def remove_tag(tags: list[str], tag: str) -> list[str]:
    return [t for t in tags if t != tag]


def diff_task(task: Task, edit: TaskEdit) -> dict[str, Any]:
    """Compare the fields set on *edit* with *task*.

    Returns only the changed fields, keyed by wire name. Cleared optional
    fields are sent as ``""`` (or ``[]`` for tags), matching what the store
    keeps in an empty cell.

    Raises:
        InvalidInput: If the edit sets an empty title.
    """
    fields_set = edit.model_fields_set
    changes: dict[str, Any] = {}

    if "title" in fields_set:
        title = clean_title(edit.title)
        if title != task.title:
            changes["title"] = title

    if "description" in fields_set:
        description = edit.description or ""
        if description != (task.description or ""):
            changes["description"] = description

    if "completed" in fields_set and edit.completed is not None:
        if edit.completed != task.completed:
            changes["completed"] = edit.completed

    if "due_date" in fields_set:
        due = edit.due_date.isoformat() if edit.due_date else ""
        current = task.due_date.isoformat() if task.due_date else ""
        if due != current:
            changes["dueDate"] = due

    if "priority" in fields_set:
        priority = edit.priority.value if edit.priority else ""
        current = task.priority.value if task.priority else ""
        if priority != current:
            changes["priority"] = priority

    if "tags" in fields_set:
        tags = edit.tags or []
        if tags != task.tags:
            changes["tags"] = tags

    return changes
