"""Document store: typed CRUD over named collections."""

from .interfaces import (
    CHAPTERS,
    CHARACTERS,
    LOCATIONS,
    EVENTS,
    CHAPTER_BEATS,
    CHAPTER_NOTES,
    CHAPTER_ENTITY_CONNECTIONS,
    NOTES,
    Document,
    DocumentStore,
    WriteBatch,
)
from .in_memory import InMemoryDocumentStore

__all__ = [
    "CHAPTERS",
    "CHARACTERS",
    "LOCATIONS",
    "EVENTS",
    "CHAPTER_BEATS",
    "CHAPTER_NOTES",
    "CHAPTER_ENTITY_CONNECTIONS",
    "NOTES",
    "Document",
    "DocumentStore",
    "WriteBatch",
    "InMemoryDocumentStore",
]
