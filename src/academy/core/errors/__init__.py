"""Error handling module with RFC 7807 Problem Details."""

from academy.core.errors.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    LocalStoreError,
    NotFoundError,
    QuotaExceededError,
    RemoteAuthorityError,
    UnauthorizedError,
    ValidationError,
)
from academy.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "ConflictError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "InvalidTransitionError",
    "LocalStoreError",
    "NotFoundError",
    "ProblemDetail",
    "QuotaExceededError",
    "RemoteAuthorityError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
