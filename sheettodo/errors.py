"""Exception hierarchy surfaced to the board's inline error message."""

from __future__ import annotations


class SheetTodoError(Exception):
    """Base class for every failure a user can see on the board."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RemoteStoreError(SheetTodoError):
    """The remote store answered with ``success: false``."""

    def __init__(self, message: str, action: str | None = None) -> None:
        super().__init__(message)
        self.action = action


class TransportError(RemoteStoreError):
    """The request never produced a decodable envelope."""


class InvalidInput(SheetTodoError):
    """Client-side validation failed; nothing was sent."""


class ConfirmationRequired(SheetTodoError):
    """A destructive action needs an explicit yes from the user."""

    def __init__(self, prompt: str) -> None:
        super().__init__(prompt)
        self.prompt = prompt


class ItemBusy(SheetTodoError):
    """Another call for the same item is still in flight."""


class TaskNotFound(SheetTodoError):
    """No task with the given id in the relevant collection."""
