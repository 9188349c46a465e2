"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from academy import __version__
from academy.api.router import api_router
from academy.config import settings
from academy.core.errors import register_exception_handlers
from academy.core.logging import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from academy.runtime import Runtime


logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the runtime on startup and release it on shutdown."""
    runtime: Runtime = app.state.runtime
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )
    await runtime.start()

    yield

    logger.info("application_shutdown")
    await runtime.close()


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        runtime: Pre-built runtime (tests); a default one is built from
            settings otherwise

    Returns:
        Configured FastAPI application instance.
    """
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Local-first institute management with remote plan approval",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )
    app.state.runtime = runtime or Runtime()

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Request logging runs inside the request id context
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    return app
