from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    DuplicateError,
    StoreUnavailableError,
    MalformedRowError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "DuplicateError",
    "StoreUnavailableError",
    "MalformedRowError",
]
