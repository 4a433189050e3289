"""Document store interfaces."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

Document = Dict[str, Any]

CHAPTERS = "chapters"
CHARACTERS = "characters"
LOCATIONS = "locations"
EVENTS = "events"
CHAPTER_BEATS = "chapterBeats"
CHAPTER_NOTES = "chapterNotes"
CHAPTER_ENTITY_CONNECTIONS = "chapterEntityConnections"
NOTES = "notes"


class WriteBatch(ABC):
    """Group of writes that land together or not at all."""

    def __init__(self) -> None:
        self._writes: List[tuple[str, str, Document]] = []
        self._committed = False

    def set(self, collection: str, data: Document, doc_id: Optional[str] = None) -> str:
        if self._committed:
            raise RuntimeError("Batch already committed")
        doc_id = doc_id or new_document_id()
        self._writes.append((collection, doc_id, dict(data)))
        return doc_id

    @property
    def writes(self) -> List[tuple[str, str, Document]]:
        return list(self._writes)

    def __len__(self) -> int:
        return len(self._writes)

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        await self._apply(self._writes)
        self._committed = True

    @abstractmethod
    async def _apply(self, writes: List[tuple[str, str, Document]]) -> None:
        raise NotImplementedError


class DocumentStore(ABC):
    """Typed key-value persistence over named collections.

    Documents are plain dicts. Returned documents always carry their ``id``
    plus server-assigned ``createdAt``/``updatedAt`` timestamps.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        """Fetch several documents, skipping ids that do not exist, in id order."""
        found = []
        for doc_id in doc_ids:
            document = await self.get(collection, doc_id)
            if document is not None:
                found.append(document)
        return found

    @abstractmethod
    async def query(self, collection: str, field: str, value: Any) -> List[Document]:
        """Documents whose ``field`` equals ``value``, in insertion order."""
        raise NotImplementedError

    async def query_ordered(
        self,
        collection: str,
        field: str,
        value: Any,
        order_by: str,
    ) -> List[Document]:
        documents = await self.query(collection, field, value)
        return sorted(documents, key=lambda doc: _numeric(doc.get(order_by)))

    @abstractmethod
    def batch(self) -> WriteBatch:
        raise NotImplementedError

    def new_id(self) -> str:
        return new_document_id()


def new_document_id() -> str:
    return uuid4().hex


def _numeric(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("inf")
