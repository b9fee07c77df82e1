"""Common schemas used across the application."""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class CursorPaginatedResponse(BaseModel, Generic[T]):
    """Cursor-based page for large, time-ordered collections.

    The cursor is "{epoch_ms}:{id}" of the last item on the page, so the
    next page starts strictly after it without an OFFSET scan. The total
    is not computed (None) when filters are applied after the query.
    """
    items: list[T]
    limit: int
    next_cursor: str | None = None
    has_more: bool
    total: int | None = None
