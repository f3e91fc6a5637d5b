"""
Structured logging setup.

structlog is configured once, when the application is created. Development
gets a coloured console renderer; any other LOG_FORMAT renders one JSON
object per line so log shippers can parse it.

Passwords, password hashes and bearer tokens are never passed to a logger.
Log the user id and the failure reason instead.
"""

import logging
import sys

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from colis.config import Settings, settings as default_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger used by uvicorn/SQLAlchemy."""
    settings = settings or default_settings
    level = getattr(logging, settings.LOG_LEVEL)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.LOG_FORMAT == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, SQLAlchemy echo) log through stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name or "colis")
