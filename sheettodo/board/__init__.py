"""Client-side state of the task board."""

from sheettodo.board.state import TaskBoard
from sheettodo.board.views import SortOrder, StatusFilter, ViewOptions, derive_view

__all__ = ["TaskBoard", "SortOrder", "StatusFilter", "ViewOptions", "derive_view"]
