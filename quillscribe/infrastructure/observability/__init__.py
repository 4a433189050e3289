"""Observability utilities (structured logging)."""

from .structured_logging import configure_structlog, bind_request_context

__all__ = [
    "configure_structlog",
    "bind_request_context",
]
