from .exceptions import (
    DomainException,
    ValidationError,
    DocumentLimitError,
    EntityNotFoundError,
    ModelFormatError,
    ExternalServiceError,
)

__all__ = [
    "DomainException",
    "ValidationError",
    "DocumentLimitError",
    "EntityNotFoundError",
    "ModelFormatError",
    "ExternalServiceError",
]
