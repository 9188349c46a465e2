"""RFC 7807 Problem Details exception handlers.

Every error leaving the HTTP surface is shaped as a Problem Details body so
the local UI can render ``detail`` directly and branch on ``error_code``.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from academy.config import settings
from academy.core.errors.exceptions import AppException, LocalStoreError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

# Starlette renamed the 422 constant; the numeric code is stable
HTTP_422 = 422


class FieldError(BaseModel):
    """A single field validation error."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        instance: Request path that produced the problem
        error_code: Machine-readable code (``access_code_not_found``, ...)
        errors: Field-level errors for validation problems
        trace_id: Request ID for correlating with logs
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    error_code: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _get_trace_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _get_error_type_uri(error_code: str) -> str:
    return f"{settings.api_docs_base_url}/errors/{error_code}"


def _problem(
    request: Request,
    *,
    error_code: str,
    status_code: int,
    detail: str,
    title: str | None = None,
    errors: list[FieldError] | None = None,
) -> dict[str, Any]:
    return ProblemDetail(
        type=_get_error_type_uri(error_code),
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        instance=str(request.url.path),
        error_code=error_code,
        errors=errors,
        trace_id=_get_trace_id(request),
    ).model_dump(exclude_none=True)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException subclasses to Problem Details responses.

    Local store failures are logged at error level with their details kept
    out of the response body.
    """
    log = logger.error if isinstance(exc, LocalStoreError) else logger.warning
    log(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=str(request.url.path),
        details=exc.details,
    )

    content = _problem(
        request,
        error_code=exc.error_code,
        status_code=exc.status_code,
        detail=exc.message,
    )

    if exc.details and not isinstance(exc, LocalStoreError):
        for key, value in exc.details.items():
            if key not in content:
                content[key] = value

    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request body/query validation failures to Problem Details."""
    errors: list[FieldError] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        # "body" / "query" prefixes are noise for the UI
        field_parts = [str(part) for part in loc if part not in ("body", "query")]
        errors.append(
            FieldError(
                field=".".join(field_parts) if field_parts else "unknown",
                message=error.get("msg", "Invalid value"),
                type=error.get("type"),
            )
        )

    logger.warning(
        "validation_error",
        path=str(request.url.path),
        error_count=len(errors),
    )

    return JSONResponse(
        status_code=HTTP_422,
        content=_problem(
            request,
            error_code="validation_error",
            status_code=HTTP_422,
            title="Validation Error",
            detail="Request validation failed",
            errors=errors,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected exceptions; details are logged, not exposed."""
    logger.exception(
        "unhandled_exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_problem(
            request,
            error_code="internal_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            title="Internal Server Error",
            detail="An unexpected error occurred",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
