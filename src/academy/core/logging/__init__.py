"""Logging module with structured logging and request tracking."""

from academy.core.logging.config import configure_logging
from academy.core.logging.middleware import RequestIdMiddleware, RequestLoggingMiddleware


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
]
