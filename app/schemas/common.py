"""Response envelope shared by every endpoint: {success, data?, error?, pagination?}."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorBody(BaseModel):
    message: str
    stack: str | None = None


class FieldError(BaseModel):
    field: str | None = None
    message: str


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for single-object and list responses."""

    success: bool = True
    data: T | None = None
    error: ErrorBody | None = None
    pagination: Pagination | None = None


class MessageData(BaseModel):
    message: str
