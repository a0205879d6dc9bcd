"""
Common schema types used across the API.
"""

from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class SuccessResponse(BaseModel):
    """Standard success response."""
    
    message: str
    data: Optional[Any] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""
    
    items: List[T]
    total: int
    page: int = 1
    limit: int = 10
    total_pages: int = 0
    has_more: bool = False
    
    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        page: int = 1,
        limit: int = 10,
    ) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=(total + limit - 1) // limit if total else 0,
            has_more=(page * limit) < total,
        )


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = "ok"
    version: str
    database: str = "connected"
