from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Schema readable straight from ORM rows and engine dataclasses."""

    model_config = ConfigDict(from_attributes=True)


class ErrorDetail(BaseSchema):
    field: str | None = None
    message: str


class ApiResponse(BaseSchema, Generic[T]):
    """Envelope for every successful response: {success, data, message}."""

    success: bool = True
    data: T
    message: str | None = None


class ErrorResponse(BaseSchema):
    """Envelope for failures; errors lists the offending fields when known."""

    success: bool = False
    data: None = None
    message: str
    errors: list[ErrorDetail] = []


class PaginatedResponse(BaseSchema, Generic[T]):
    """Paginated list of rows (students, groups, payments tables)."""

    items: list[T]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def create(cls, items: list[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(items=items, total=total, page=page, limit=limit, pages=pages)
