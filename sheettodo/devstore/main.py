"""Local stand-in for the spreadsheet web-app store.

Speaks the same protocol as the deployed store: ``GET /exec`` for reads,
``POST /exec`` with a text/plain JSON body ``{"action": ..., ...}`` for
writes, and always answers HTTP 200 with ``{success, data | error}``.
"""

import base64
import binascii
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI, Request, Response
from sqlmodel import Session, select

from sheettodo.devstore.database import create_db_and_tables, get_session
from sheettodo.devstore.models import AttachmentRow, TodoRow, now_iso
from sheettodo.models import dedupe_tags

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Rejected action; reported in the envelope's ``error``."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup via SQLModel create_all."""
    create_db_and_tables()
    yield


app = FastAPI(title="SheetTodo development store", lifespan=lifespan)


def _ok(data: Any) -> dict:
    return {"success": True, "data": data}


def _fail(message: str) -> dict:
    return {"success": False, "error": message}


# -- row <-> wire ------------------------------------------------------------


def _attachment_json(row: AttachmentRow, base_url: str) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "mimeType": row.mime_type,
        "url": f"{base_url}files/{row.id}",
        "size": row.size,
        "uploadedAt": row.uploaded_at,
    }


def _todo_json(session: Session, row: TodoRow, base_url: str) -> dict:
    attachments = session.exec(
        select(AttachmentRow).where(AttachmentRow.todo_id == row.id)
    ).all()
    return {
        "id": row.id,
        "title": row.title,
        "description": row.description,
        "completed": row.completed,
        "createdAt": row.created_at,
        "dueDate": row.due_date,
        "priority": row.priority,
        "tags": row.tag_list(),
        "attachments": [_attachment_json(a, base_url) for a in attachments],
    }


def _list(session: Session, user_id: Optional[str], deleted: bool) -> list[TodoRow]:
    statement = select(TodoRow).where(TodoRow.deleted == deleted)
    if user_id is not None:
        statement = statement.where(TodoRow.user_id == user_id)
    return list(session.exec(statement.order_by(TodoRow.created_at)).all())


def _get_row(session: Session, todo_id: Any, deleted: bool = False) -> TodoRow:
    row = session.get(TodoRow, str(todo_id))
    if row is None or row.deleted != deleted:
        raise StoreError(f"Todo not found: {todo_id}")
    return row


def _apply_fields(row: TodoRow, payload: dict) -> None:
    if "title" in payload:
        title = str(payload["title"] or "").strip()
        if not title:
            raise StoreError("Title is required")
        row.title = title
    if "description" in payload:
        row.description = payload["description"] or ""
    if "completed" in payload:
        row.completed = bool(payload["completed"])
    if "dueDate" in payload:
        row.due_date = payload["dueDate"] or ""
    if "priority" in payload:
        priority = payload["priority"] or ""
        if priority not in ("", "low", "medium", "high"):
            raise StoreError(f"Invalid priority: {priority}")
        row.priority = priority
    if "tags" in payload:
        row.tags = json.dumps(dedupe_tags(payload["tags"] or []))


# -- actions -----------------------------------------------------------------


def add_todo(session: Session, payload: dict, base_url: str) -> dict:
    if not str(payload.get("title") or "").strip():
        raise StoreError("Title is required")
    row = TodoRow(title="", user_id=payload.get("userId"))
    _apply_fields(row, payload)
    session.add(row)
    session.commit()
    session.refresh(row)
    return _todo_json(session, row, base_url)


def update_todo(session: Session, payload: dict, base_url: str) -> dict:
    row = _get_row(session, payload.get("id"))
    _apply_fields(row, payload)
    session.add(row)
    session.commit()
    session.refresh(row)
    return _todo_json(session, row, base_url)


def delete_todo(session: Session, payload: dict, base_url: str) -> dict:
    row = _get_row(session, payload.get("id"))
    row.deleted = True
    row.deleted_at = now_iso()
    session.add(row)
    session.commit()
    return {"id": row.id, "deleted": True}


def restore_todo(session: Session, payload: dict, base_url: str) -> dict:
    row = _get_row(session, payload.get("id"), deleted=True)
    row.deleted = False
    row.deleted_at = None
    session.add(row)
    session.commit()
    session.refresh(row)
    return _todo_json(session, row, base_url)


def empty_trash(session: Session, payload: dict, base_url: str) -> dict:
    rows = _list(session, payload.get("userId"), deleted=True)
    for row in rows:
        for attachment in session.exec(
            select(AttachmentRow).where(AttachmentRow.todo_id == row.id)
        ).all():
            session.delete(attachment)
        session.delete(row)
    session.commit()
    return {"deletedCount": len(rows)}


def upload_attachment(session: Session, payload: dict, base_url: str) -> dict:
    row = _get_row(session, payload.get("todoId"))
    name = str(payload.get("fileName") or "").strip()
    if not name:
        raise StoreError("File name is required")
    try:
        data = base64.b64decode(payload.get("fileData") or "", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise StoreError("Invalid file data") from exc

    attachment = AttachmentRow(
        todo_id=row.id,
        name=name,
        mime_type=payload.get("mimeType") or "application/octet-stream",
        size=len(data),
        data=data,
    )
    session.add(attachment)
    session.commit()
    session.refresh(attachment)
    return _attachment_json(attachment, base_url)


def delete_attachment(session: Session, payload: dict, base_url: str) -> dict:
    attachment = session.get(AttachmentRow, str(payload.get("attachmentId")))
    if attachment is None or attachment.todo_id != str(payload.get("todoId")):
        raise StoreError(f"Attachment not found: {payload.get('attachmentId')}")
    deleted_id = attachment.id
    session.delete(attachment)
    session.commit()
    return {"success": True, "deletedId": deleted_id}


ACTIONS: dict[str, Callable[[Session, dict, str], Any]] = {
    "add": add_todo,
    "update": update_todo,
    "delete": delete_todo,
    "restore": restore_todo,
    "emptyTrash": empty_trash,
    "uploadAttachment": upload_attachment,
    "deleteAttachment": delete_attachment,
}


# -- endpoints ---------------------------------------------------------------


@app.get("/exec")
def read(
    request: Request,
    action: Optional[str] = None,
    userId: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """List active tasks, or deleted ones with ``action=getDeleted``."""
    base_url = str(request.base_url)
    if action in (None, "", "list"):
        rows = _list(session, userId, deleted=False)
    elif action == "getDeleted":
        rows = _list(session, userId, deleted=True)
    else:
        return _fail(f"Unknown action: {action}")
    return _ok([_todo_json(session, row, base_url) for row in rows])


@app.post("/exec")
async def write(request: Request, session: Session = Depends(get_session)):
    """Dispatch a write action from the text/plain JSON body."""
    try:
        payload = json.loads(await request.body())
    except ValueError:
        return _fail("Invalid JSON body")
    if not isinstance(payload, dict):
        return _fail("Invalid JSON body")

    action = payload.get("action")
    handler = ACTIONS.get(action)
    if handler is None:
        return _fail(f"Unknown action: {action}")

    try:
        return _ok(handler(session, payload, str(request.base_url)))
    except StoreError as exc:
        session.rollback()
        logger.info("Rejected %s: %s", action, exc)
        return _fail(str(exc))


@app.get("/files/{attachment_id}")
def download(attachment_id: str, session: Session = Depends(get_session)):
    attachment = session.get(AttachmentRow, attachment_id)
    if attachment is None:
        return Response(content="Not found", status_code=404)
    return Response(content=attachment.data, media_type=attachment.mime_type)
