"""In-memory document store for tests and local usage."""
from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interfaces import Document, DocumentStore, WriteBatch


class InMemoryWriteBatch(WriteBatch):
    def __init__(self, store: "InMemoryDocumentStore") -> None:
        super().__init__()
        self._store = store

    async def _apply(self, writes: List[tuple[str, str, Document]]) -> None:
        self._store._apply(writes)


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self.commits = 0

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        document = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def query(self, collection: str, field: str, value: Any) -> List[Document]:
        return [
            copy.deepcopy(document)
            for document in self._collections.get(collection, {}).values()
            if document.get(field) == value
        ]

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def all(self, collection: str) -> List[Document]:
        return [copy.deepcopy(doc) for doc in self._collections.get(collection, {}).values()]

    def _apply(self, writes: List[tuple[str, str, Document]]) -> None:
        now = datetime.now(timezone.utc)
        staged = copy.deepcopy(self._collections)
        for collection, doc_id, data in writes:
            bucket = staged.setdefault(collection, {})
            previous = bucket.get(doc_id)
            bucket[doc_id] = {
                **copy.deepcopy(data),
                "id": doc_id,
                "createdAt": previous["createdAt"] if previous else now,
                "updatedAt": now,
            }
        self._collections = staged
        self.commits += 1
