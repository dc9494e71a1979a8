from __future__ import annotations

import math
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination block returned next to list data."""

    current: int
    pages: int
    total: int
    limit: int

    @classmethod
    def create(cls, *, total: int, page: int, limit: int) -> Pagination:
        return cls(
            current=page,
            pages=math.ceil(total / limit) if total > 0 else 0,
            total=total,
            limit=limit,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Uniform ``{success, message?, data?, pagination?}`` envelope."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[Pagination] = None
