from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """Result of a mutation. redirect_to is set for create/update/delete of groups,
    events and announcements; the client navigates there."""
    success: bool = True
    data: Optional[T] = None
    redirect_to: Optional[str] = None


class Page(BaseModel, Generic[T]):
    data: List[T]
    next_cursor: Optional[str] = None
