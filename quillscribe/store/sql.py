"""SQLAlchemy-backed document store."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quillscribe.models.stored_document import StoredDocument, utc_now
from .interfaces import Document, DocumentStore, WriteBatch

logger = logging.getLogger(__name__)


def _to_document(row: StoredDocument) -> Document:
    return {
        **(row.data or {}),
        "id": row.id,
        "createdAt": row.created_at,
        "updatedAt": row.updated_at,
    }


def _strip_reserved(data: Document) -> Document:
    return {key: value for key, value in data.items() if key not in {"id", "createdAt", "updatedAt"}}


class SqlWriteBatch(WriteBatch):
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def _apply(self, writes: List[tuple[str, str, Document]]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                for collection, doc_id, data in writes:
                    row = await session.get(StoredDocument, (collection, doc_id))
                    if row is None:
                        session.add(StoredDocument(collection=collection, id=doc_id, data=_strip_reserved(data)))
                    else:
                        row.data = _strip_reserved(data)
                        row.updated_at = utc_now()
        logger.debug("Committed batch of %s writes", len(writes))


class SqlDocumentStore(DocumentStore):
    """Stores every collection in a single JSON document table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self._session_factory() as session:
            row = await session.get(StoredDocument, (collection, doc_id))
            return _to_document(row) if row is not None else None

    async def query(self, collection: str, field: str, value: Any) -> List[Document]:
        column = StoredDocument.data[field]
        if isinstance(value, bool):
            condition = column.as_boolean() == value
        elif isinstance(value, int):
            condition = column.as_integer() == value
        elif isinstance(value, float):
            condition = column.as_float() == value
        else:
            condition = column.as_string() == str(value)
        async with self._session_factory() as session:
            result = await session.execute(
                select(StoredDocument)
                .where(StoredDocument.collection == collection, condition)
                .order_by(StoredDocument.created_at.asc())
            )
            return [_to_document(row) for row in result.scalars().all()]

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self._session_factory)
