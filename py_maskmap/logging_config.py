"""
structlog setup.

The library itself never configures logging. Scripts and services that
embed it call configure_logging() once at startup; level and format default
to settings.log_level and settings.log_format.
"""

import logging

import structlog

from .config import settings


def configure_logging(level: str = None, fmt: str = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Args:
        level: Log level name, settings.log_level if omitted
        fmt: "json" or "plain", settings.log_format if omitted
    """
    level = (level or settings.log_level).upper()
    fmt = fmt or settings.log_format

    logging.basicConfig(format="%(message)s", level=level)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "plain"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
