from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class StoreUnavailableError(AppException):
    """Database handle not opened or connection lost."""

    def __init__(self, message: str = "Database is unavailable"):
        super().__init__(message=message, status_code=503)


class MalformedRowError(AppException):
    """A stored value could not be parsed.

    Raised by the row parsers; report builders catch it, log it and skip the row.
    """

    def __init__(self, table: str, row_id: Any, field: str, value: Any):
        message = f"Malformed {field} in {table} row id={row_id}: {value!r}"
        super().__init__(
            message=message,
            status_code=500,
            details={"table": table, "row_id": row_id, "field": field},
        )
        self.table = table
        self.row_id = row_id
        self.field = field
