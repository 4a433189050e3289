"""Shared kernel exception hierarchy."""
from typing import Optional, Dict, Any


class DomainException(Exception):
    """Base exception for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, code: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ValidationError(DomainException):
    """Raised when request validation fails before any model call."""


class DocumentLimitError(ValidationError):
    """Raised when a document exceeds the configured word limit."""

    status_code = 413


class EntityNotFoundError(DomainException):
    """Raised when a stored document is not found."""

    status_code = 404


class ModelFormatError(DomainException):
    """Raised when the model answer cannot be parsed into the expected shape."""

    status_code = 502


class ExternalServiceError(DomainException):
    """Raised when an external service fails."""

    status_code = 502
