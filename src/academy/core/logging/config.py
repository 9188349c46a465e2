"""structlog configuration shared by the API server and the CLI."""

import logging

import structlog

from academy.config import settings


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog processors and the level filter.

    Args:
        level: Log level name, defaults to ``settings.log_level``
        json: Render JSON lines, defaults to on in production
    """
    level_name = (level or settings.log_level).upper()
    render_json = settings.is_production if json is None else json

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if render_json
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
