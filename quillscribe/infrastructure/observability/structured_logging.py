"""Structlog configuration helpers."""
from __future__ import annotations

import logging

import structlog


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.getLogger(__name__).info("structlog configured")


def bind_request_context(**values) -> None:
    """Attach request-scoped values (caller id, endpoint) to structured log lines."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)
