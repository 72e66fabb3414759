"""
Structured Logging

Every component logs through structlog on top of the stdlib logging module.
Records are event-named (``account_created``, ``access_denied``, ...) with
keyword context, so they can be filtered and aggregated without parsing
message text.

Requests get a correlation id at the facade; it is bound to the logger for
the duration of the call so all records of one request can be traced.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog


_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.

    Safe to call more than once; the last call wins, also for loggers
    that have already been used.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Not cached: create_app_components reconfigures after import
        cache_logger_on_first_use=False,
    )


# Default configuration so imports work before the app configures logging
configure_logging()


def get_logger(name: Optional[str] = None, **initial_values) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, optionally pre-bound with context."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related log records.

    Use this at the start of a request and pass it through.
    """
    return uuid4()
