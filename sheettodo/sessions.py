"""Signed-in user resolution and the per-user board registry.

Authentication itself happens upstream: the front proxy sets a trusted header
with the user's identifier. Requests without it are sent to the sign-in page.
"""

import logging
from typing import Dict, Optional

from fastapi import Depends, Request

from sheettodo.board.state import TaskBoard
from sheettodo.config import REMOTE_STORE_URL, USER_HEADER, USER_NAME_HEADER
from sheettodo.context import UserContext
from sheettodo.errors import SheetTodoError
from sheettodo.remote import RemoteStoreClient

logger = logging.getLogger(__name__)


class NotSignedIn(Exception):
    """No user identity on the request."""


class BoardRegistry:
    """Creates one board per user and loads it once, on first use."""

    def __init__(self, remote: RemoteStoreClient) -> None:
        self._remote = remote
        self._boards: Dict[str, TaskBoard] = {}

    async def get(self, ctx: UserContext) -> TaskBoard:
        board = self._boards.get(ctx.user_id)
        if board is not None:
            return board

        board = TaskBoard(ctx, self._remote)
        # Register before loading so concurrent first requests share it.
        self._boards[ctx.user_id] = board
        try:
            await board.load()
        except SheetTodoError:
            # Kept on the board as its visible error; the user can reload.
            logger.warning("Initial load failed for %s", ctx.user_id)
        return board

    def drop(self, user_id: str) -> None:
        self._boards.pop(user_id, None)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._boards


_remote: Optional[RemoteStoreClient] = None
_registry: Optional[BoardRegistry] = None


def get_remote_client() -> RemoteStoreClient:
    """Lazy-initialize the shared remote store client."""
    global _remote
    if _remote is None:
        _remote = RemoteStoreClient(REMOTE_STORE_URL)
    return _remote


def get_registry() -> BoardRegistry:
    global _registry
    if _registry is None:
        _registry = BoardRegistry(get_remote_client())
    return _registry


async def close_remote_client() -> None:
    global _remote, _registry
    if _remote is not None:
        await _remote.aclose()
    _remote = None
    _registry = None


def current_user(request: Request) -> UserContext:
    """Resolve the signed-in user from the trusted identity header."""
    user_id = request.headers.get(USER_HEADER, "").strip()
    if not user_id:
        raise NotSignedIn()
    display_name = request.headers.get(USER_NAME_HEADER, "").strip() or None
    return UserContext(user_id=user_id, display_name=display_name)


async def get_board(
    ctx: UserContext = Depends(current_user),
    registry: BoardRegistry = Depends(get_registry),
) -> TaskBoard:
    return await registry.get(ctx)
