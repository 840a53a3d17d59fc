"""Explicit per-request user context."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserContext:
    """The signed-in user every scoped store call is made on behalf of."""
    user_id: str
    display_name: Optional[str] = None
