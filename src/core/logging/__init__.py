"""
Logging configuration module for structured logging.

The application logs through structlog. Production renders JSON lines,
development renders a human-readable console format. Every module obtains
its logger with ``structlog.get_logger(__name__)`` and routes bind a
``correlation_id`` so one request can be followed across services.

Verification codes, admin tokens and passwords are never passed to a logger;
email addresses are masked with ``Email.mask_for_logging``.
"""

import logging
import sys

import structlog

from src.core.config.settings import settings


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    Sets up structlog with ISO timestamps, log level and logger name, and
    either a JSON or a console renderer. The standard library root logger is
    pointed at stdout with the same level so uvicorn and SQLAlchemy records
    share the stream.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()
