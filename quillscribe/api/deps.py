"""Shared FastAPI dependencies."""
from functools import lru_cache

from quillscribe.core.config import settings
from quillscribe.services.llm_client import LLMClient
from quillscribe.store import DocumentStore, InMemoryDocumentStore


@lru_cache(maxsize=1)
def _memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


def get_document_store() -> DocumentStore:
    if settings.DOCUMENT_STORE_BACKEND == "memory":
        return _memory_store()
    from quillscribe.db.session import AsyncSessionLocal
    from quillscribe.store.sql import SqlDocumentStore

    return SqlDocumentStore(AsyncSessionLocal)


def get_llm_client() -> LLMClient:
    return LLMClient()
