"""
Structured logging setup for the polling machine.

The library only emits events through ``structlog.get_logger``; hosts that
want the bundled rendering call ``setup_logging`` once at startup.
"""

import logging

import structlog

from .config import Settings, get_settings

LOGGER_NAME = "polling_machine"


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging for polling events.

    The level from settings is applied to the ``polling_machine`` logger so
    that a host's own root level is left alone.

    Args:
        settings: Settings providing log level and format
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    logging.basicConfig(format="%(message)s")
    logging.getLogger(LOGGER_NAME).setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
