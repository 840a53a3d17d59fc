"""Task endpoints: CRUD, toggle, inline rename, tags, attachments."""

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from sheettodo.board.state import TaskBoard
from sheettodo.models import TaskDraft, TaskEdit
from sheettodo.sessions import get_board

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class RenameRequest(BaseModel):
    title: str


class TagRequest(BaseModel):
    tag: str


def _task_json(task) -> dict:
    return task.model_dump(by_alias=True, mode="json")


@router.post("/", status_code=201)
async def create_task(body: TaskDraft, board: TaskBoard = Depends(get_board)):
    """Create a task; the stored record comes back from the remote store."""
    task = await board.add(body)
    return {"success": True, "data": _task_json(task)}


@router.post("/clear-completed")
async def clear_completed(board: TaskBoard = Depends(get_board)):
    removed = await board.clear_completed()
    return {"success": True, "data": {"removed": removed}}


@router.patch("/{task_id}")
async def update_task(task_id: str, body: TaskEdit, board: TaskBoard = Depends(get_board)):
    """Apply a modal edit. Only fields that differ are sent on."""
    task = await board.update(task_id, body)
    return {"success": True, "data": _task_json(task)}


@router.put("/{task_id}/title")
async def rename_task(task_id: str, body: RenameRequest, board: TaskBoard = Depends(get_board)):
    task = await board.rename(task_id, body.title)
    return {"success": True, "data": _task_json(task)}


@router.post("/{task_id}/toggle")
async def toggle_task(task_id: str, board: TaskBoard = Depends(get_board)):
    task = await board.toggle(task_id)
    return {"success": True, "data": _task_json(task)}


@router.post("/{task_id}/tags")
async def add_tag(task_id: str, body: TagRequest, board: TaskBoard = Depends(get_board)):
    task = await board.add_tag(task_id, body.tag)
    return {"success": True, "data": _task_json(task)}


@router.delete("/{task_id}/tags/{tag}")
async def remove_tag(task_id: str, tag: str, board: TaskBoard = Depends(get_board)):
    task = await board.remove_tag(task_id, tag)
    return {"success": True, "data": _task_json(task)}


@router.delete("/{task_id}")
async def delete_task(task_id: str, board: TaskBoard = Depends(get_board)):
    """Soft-delete a task; it shows up in the trash afterwards."""
    await board.delete(task_id)
    return {"success": True, "data": {"id": task_id, "deleted": True}}


@router.post("/{task_id}/attachments", status_code=201)
async def upload_attachment(
    task_id: str,
    file: UploadFile = File(...),
    board: TaskBoard = Depends(get_board),
):
    """Attach a file. Type and size are checked before the body is read."""
    attachment = await board.upload_attachment(
        task_id, file.filename or "", file.read, size=file.size
    )
    return {"success": True, "data": attachment.model_dump(by_alias=True, mode="json")}


@router.delete("/{task_id}/attachments/{attachment_id}")
async def delete_attachment(
    task_id: str,
    attachment_id: str,
    confirm: bool = False,
    board: TaskBoard = Depends(get_board),
):
    """Delete an attachment. Without ``confirm=true`` the prompt is returned."""
    await board.delete_attachment(task_id, attachment_id, confirmed=confirm)
    return {"success": True, "data": {"deletedId": attachment_id}}
