"""Generic JSON document row backing the document store."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quillscribe.db.base import Base


def utc_now():
    """Return current UTC time - compatible with SQLAlchemy default"""
    # Timezone-naive UTC for TIMESTAMP WITHOUT TIME ZONE columns
    return datetime.utcnow()


class StoredDocument(Base):
    """One document of one collection (chapters, characters, notes, ...)."""
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (Index("ix_documents_collection", "collection"),)

    def __repr__(self):
        return f"<StoredDocument {self.collection}/{self.id}>"
