"""FastAPI service for the SheetTodo task board."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from sheettodo.config import ALLOWED_ORIGINS, LOG_LEVEL, REMOTE_STORE_URL, SIGNIN_URL
from sheettodo.errors import (
    ConfirmationRequired,
    InvalidInput,
    ItemBusy,
    RemoteStoreError,
    SheetTodoError,
    TaskNotFound,
)
from sheettodo.routes.board import router as board_router
from sheettodo.routes.tasks import router as tasks_router
from sheettodo.routes.trash import router as trash_router
from sheettodo.sessions import NotSignedIn, close_remote_client

logger = logging.getLogger(__name__)
logging.basicConfig(level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared remote store client on shutdown."""
    logger.info(f"Remote store: {REMOTE_STORE_URL}")
    yield
    await close_remote_client()


app = FastAPI(title="SheetTodo", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(board_router)
app.include_router(tasks_router)
app.include_router(trash_router)

_STATUS_BY_ERROR = (
    (InvalidInput, 400),
    (TaskNotFound, 404),
    (ConfirmationRequired, 409),
    (ItemBusy, 409),
    (RemoteStoreError, 502),
)


@app.exception_handler(NotSignedIn)
async def redirect_to_signin(request: Request, exc: NotSignedIn):
    return RedirectResponse(SIGNIN_URL, status_code=303)


@app.exception_handler(SheetTodoError)
async def board_error(request: Request, exc: SheetTodoError):
    """Render any board failure as the ``{success: false, error}`` envelope."""
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    content = {"success": False, "error": exc.message}
    if isinstance(exc, ConfirmationRequired):
        content["prompt"] = exc.prompt
    return JSONResponse(content=content, status_code=status_code)


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "sheettodo"}
