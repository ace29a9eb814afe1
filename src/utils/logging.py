"""Structured logging shared by the ingestion pipeline, query pipeline and API.

Every module obtains its logger through :func:`get_logger` so that log lines
come out as single JSON objects with a snake_case event name and key-value
context (lesson ids, chunk counts, error types).
"""

import logging
import os
import sys

import structlog

_configured = False


def _configure() -> None:
    """Configure structlog and the stdlib root handler exactly once."""
    global _configured

    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module).

    Returns:
        Configured structlog logger instance ready for use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("chunks_replaced", lesson_id="abc", count=4)
        >>> logger.exception("query_failed", stage="retrieving")
    """
    _configure()
    return structlog.get_logger(name)
