"""Domain exceptions.

Services raise these; the HTTP layer renders them as RFC 7807 Problem
Details and the CLI prints ``exc.message``. ``details`` ends up as extra
members of the problem body, so keep it JSON-serializable.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================
# Infrastructure
# ============================================================


class LocalStoreError(AppException):
    """The client-local store failed. Never swallowed."""

    message = "Local store operation failed"
    error_code = "local_store_error"
    status_code = 500


class RemoteAuthorityError(AppException):
    """A remote authority binding could not be used.

    Covers transport failures, timeouts, non-2xx responses and malformed
    payloads. Reconciliation absorbs it and reports the remote as unreachable.
    """

    message = "Remote authority unavailable"
    error_code = "remote_authority_unavailable"
    status_code = 503

    def __init__(
        self,
        message: str | None = None,
        backend: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if backend:
            details["backend"] = backend
        super().__init__(message=message, details=details, **kwargs)


# ============================================================
# Client errors
# ============================================================


class NotFoundError(AppException):
    """An account, request or student does not exist (in this partition).

    Example:
        raise NotFoundError(resource="student", resource_id=student_id)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
            message = message or f"{resource.capitalize()} not found"
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """The operation clashes with stored state (taken code, decided request)."""

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class InvalidTransitionError(ConflictError):
    """A subscription state change outside the allowed transitions."""

    error_code = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move subscription from {current} to {target}",
            details={"from": current, "to": target},
        )


class ValidationError(AppException):
    """Input failed validation. No state is mutated.

    Example:
        raise ValidationError(
            "Invalid login details",
            errors=[{"field": "mobile", "message": "Must be 10 digits"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Nobody is logged in."""

    message = "Please log in first"
    error_code = "not_logged_in"
    status_code = 401


class ForbiddenError(AppException):
    """The principal may not do this, or a code did not match.

    Example:
        raise ForbiddenError("Invalid Access Code", error_code="access_code_not_found")
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class QuotaExceededError(ForbiddenError):
    """The institute already holds as many students as its plan allows."""

    error_code = "student_limit_reached"

    def __init__(self, quota: int, count: int) -> None:
        super().__init__(
            f"Student limit reached (Max {quota}). Please Upgrade.",
            details={"quota": quota, "count": count},
        )
