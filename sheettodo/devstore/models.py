"""Tables of the development store.

Cells are kept the way a spreadsheet row would hold them: plain strings for
dates and priority, empty string for "no value", tags as a JSON list.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, LargeBinary
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class TodoRow(SQLModel, table=True):
    """One task row; ``deleted`` marks it as being in the trash."""
    __tablename__ = "todos"

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    title: str = Field(max_length=500)
    description: str = Field(default="")
    completed: bool = Field(default=False)
    created_at: str = Field(default_factory=now_iso)
    due_date: str = Field(default="")
    priority: str = Field(default="")
    tags: str = Field(default="[]")
    deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[str] = Field(default=None)

    def tag_list(self) -> list[str]:
        return json.loads(self.tags or "[]")


class AttachmentRow(SQLModel, table=True):
    """Uploaded file, stored inline."""
    __tablename__ = "attachments"

    id: str = Field(default_factory=_new_id, primary_key=True)
    todo_id: str = Field(foreign_key="todos.id", index=True)
    name: str
    mime_type: str = Field(default="application/octet-stream")
    size: int = Field(default=0)
    uploaded_at: str = Field(default_factory=now_iso)
    data: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
