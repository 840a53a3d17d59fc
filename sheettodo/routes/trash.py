"""Trash endpoints: open, restore, empty."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sheettodo.board.state import TaskBoard
from sheettodo.sessions import get_board

router = APIRouter(prefix="/api/trash", tags=["trash"])


class EmptyTrashRequest(BaseModel):
    confirm: bool = False


@router.get("/")
async def open_trash(board: TaskBoard = Depends(get_board)):
    """Refetch the deleted tasks from the remote store."""
    await board.open_trash()
    return {"success": True, "data": board.trash_snapshot()}


@router.post("/{task_id}/restore")
async def restore_task(task_id: str, board: TaskBoard = Depends(get_board)):
    task = await board.restore(task_id)
    return {"success": True, "data": task.model_dump(by_alias=True, mode="json")}


@router.post("/empty")
async def empty_trash(body: EmptyTrashRequest, board: TaskBoard = Depends(get_board)):
    """Purge the trash. Without ``confirm`` a count-aware prompt comes back."""
    deleted = await board.empty_trash(confirmed=body.confirm)
    return {"success": True, "data": {"deletedCount": deleted}}
