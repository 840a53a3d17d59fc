"""Task and attachment records as exchanged with the remote store."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sheettodo.config import SHEET_TIMEZONE

SHEET_TZ = timezone.utc if SHEET_TIMEZONE.upper() == "UTC" else ZoneInfo(SHEET_TIMEZONE)


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown columns ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def dedupe_tags(tags) -> list[str]:
    """Strip labels and drop blanks and exact duplicates, keeping entry order."""
    result: list[str] = []
    for tag in tags:
        label = str(tag).strip()
        if label and label not in result:
            result.append(label)
    return result


def _coerce_tags(value):
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = value.split(",")
    return dedupe_tags(value)


def _coerce_due_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return _sheet_date(value)
    return value


def _sheet_date(value: str):
    """Date of a full timestamp echoed for a date cell.

    The sheet keeps local midnight, so an aware stamp is read in
    ``SHEET_TZ`` before taking its date. Naive stamps are taken as
    sheet-local; unparseable ones keep their first ten characters.
    """
    try:
        stamp = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value[:10]
    if stamp.tzinfo is not None:
        stamp = stamp.astimezone(SHEET_TZ)
    return stamp.date()


def _coerce_priority(value):
    return None if value == "" else value


class Attachment(WireModel):
    """File metadata owned by a single task."""
    id: str
    name: str
    mime_type: str = "application/octet-stream"
    url: str = ""
    size: int = 0
    uploaded_at: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v):
        return str(v)


class Task(WireModel):
    """Canonical task record; always taken from the store's echo."""
    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    created_at: str = ""
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("id", "created_at", mode="before")
    @classmethod
    def _as_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v):
        return _coerce_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        return _coerce_priority(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _coerce_tags(v)

    @field_validator("attachments", mode="before")
    @classmethod
    def _attachments(cls, v):
        return [] if v in (None, "") else v


class TaskDraft(WireModel):
    """Fields entered in the add form. Title is checked by the collection."""
    title: str = ""
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v):
        return _coerce_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        return _coerce_priority(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return _coerce_tags(v)


class TaskEdit(WireModel):
    """Modal edit. Only explicitly set fields are considered; None clears."""
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    tags: Optional[list[str]] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v):
        return _coerce_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v):
        return _coerce_priority(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return None if v is None else _coerce_tags(v)


class DeleteResult(WireModel):
    id: str
    deleted: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v):
        return str(v)


class EmptyTrashResult(WireModel):
    deleted_count: int = 0


class AttachmentDeleteResult(WireModel):
    success: bool = True
    deleted_id: str = ""

    @field_validator("deleted_id", mode="before")
    @classmethod
    def _id_as_text(cls, v):
        return "" if v is None else str(v)
