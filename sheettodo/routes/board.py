"""Board-level endpoints: rendered list, view settings, error, session."""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from sheettodo.board.state import TaskBoard
from sheettodo.board.views import ViewOptions
from sheettodo.config import SIGNIN_URL
from sheettodo.context import UserContext
from sheettodo.sessions import BoardRegistry, current_user, get_board, get_registry

router = APIRouter(prefix="/api", tags=["board"])


@router.get("/board")
async def read_board(board: TaskBoard = Depends(get_board)):
    """Return the derived view of the user's tasks."""
    return {"success": True, "data": board.snapshot()}


@router.put("/board/view")
async def set_view(options: ViewOptions, board: TaskBoard = Depends(get_board)):
    """Replace filter, sort, search and tag settings."""
    board.set_view(options)
    return {"success": True, "data": board.snapshot()}


@router.post("/board/reload")
async def reload_board(board: TaskBoard = Depends(get_board)):
    await board.load()
    return {"success": True, "data": board.snapshot()}


@router.post("/board/error/dismiss")
async def dismiss_error(board: TaskBoard = Depends(get_board)):
    board.dismiss_error()
    return {"success": True, "data": board.snapshot()}


@router.get("/session")
async def read_session(ctx: UserContext = Depends(current_user)):
    return {"success": True, "data": {"userId": ctx.user_id, "displayName": ctx.display_name}}


@router.post("/session/signout")
async def sign_out(
    ctx: UserContext = Depends(current_user),
    registry: BoardRegistry = Depends(get_registry),
):
    """Forget the user's board and send them to the sign-in page."""
    registry.drop(ctx.user_id)
    return RedirectResponse(SIGNIN_URL, status_code=303)
