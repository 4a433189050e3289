import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quillscribe.db.base import Base
from quillscribe.models import stored_document  # noqa: F401
from quillscribe.store import CHAPTER_BEATS, CHARACTERS, NOTES, InMemoryDocumentStore
from quillscribe.store.sql import SqlDocumentStore


@pytest.mark.asyncio
async def test_in_memory_batch_assigns_ids_and_timestamps():
    store = InMemoryDocumentStore()
    batch = store.batch()
    generated_id = batch.set(CHARACTERS, {"name": "Sarah"})
    batch.set(NOTES, {"content": "note"}, doc_id="note-1")
    await batch.commit()

    character = await store.get(CHARACTERS, generated_id)
    note = await store.get(NOTES, "note-1")

    assert character["name"] == "Sarah"
    assert character["id"] == generated_id
    assert character["createdAt"] is not None
    assert character["updatedAt"] is not None
    assert note["content"] == "note"
    assert store.commits == 1


@pytest.mark.asyncio
async def test_in_memory_nothing_lands_before_commit():
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(CHARACTERS, {"name": "Sarah"}, doc_id="c1")

    assert await store.get(CHARACTERS, "c1") is None
    assert len(batch) == 1


@pytest.mark.asyncio
async def test_batch_cannot_commit_twice():
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(CHARACTERS, {"name": "Sarah"})
    await batch.commit()

    with pytest.raises(RuntimeError):
        await batch.commit()
    with pytest.raises(RuntimeError):
        batch.set(CHARACTERS, {"name": "Tom"})


@pytest.mark.asyncio
async def test_in_memory_query_and_ordered_query():
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(CHAPTER_BEATS, {"chapterId": "ch1", "title": "third", "order": 3})
    batch.set(CHAPTER_BEATS, {"chapterId": "ch1", "title": "first", "order": 1})
    batch.set(CHAPTER_BEATS, {"chapterId": "ch2", "title": "other", "order": 0})
    batch.set(CHAPTER_BEATS, {"chapterId": "ch1", "title": "unordered"})
    await batch.commit()

    beats = await store.query_ordered(CHAPTER_BEATS, "chapterId", "ch1", order_by="order")

    assert [beat["title"] for beat in beats] == ["first", "third", "unordered"]
    assert len(await store.query(CHAPTER_BEATS, "chapterId", "ch2")) == 1


@pytest.mark.asyncio
async def test_get_many_skips_missing_ids():
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(CHARACTERS, {"name": "Sarah"}, doc_id="a")
    batch.set(CHARACTERS, {"name": "Tom"}, doc_id="b")
    await batch.commit()

    found = await store.get_many(CHARACTERS, ["b", "missing", "a"])

    assert [doc["name"] for doc in found] == ["Tom", "Sarah"]


@pytest.mark.asyncio
async def test_in_memory_returns_copies():
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(CHARACTERS, {"name": "Sarah", "aliases": []}, doc_id="a")
    await batch.commit()

    document = await store.get(CHARACTERS, "a")
    document["aliases"].append("Red")

    assert (await store.get(CHARACTERS, "a"))["aliases"] == []


async def _sql_store():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, SqlDocumentStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))


@pytest.mark.asyncio
async def test_sql_store_round_trip():
    engine, sql_store = await _sql_store()
    batch = sql_store.batch()
    batch.set(CHAPTER_BEATS, {"chapterId": "ch1", "title": "second", "order": 2}, doc_id="b2")
    batch.set(CHAPTER_BEATS, {"chapterId": "ch1", "title": "first", "order": 1}, doc_id="b1")
    batch.set(CHAPTER_BEATS, {"chapterId": "ch2", "title": "elsewhere", "order": 1}, doc_id="b3")
    await batch.commit()

    beat = await sql_store.get(CHAPTER_BEATS, "b1")
    ordered = await sql_store.query_ordered(CHAPTER_BEATS, "chapterId", "ch1", order_by="order")

    assert beat["title"] == "first"
    assert beat["id"] == "b1"
    assert beat["createdAt"] is not None
    assert [item["id"] for item in ordered] == ["b1", "b2"]
    assert await sql_store.get(CHAPTER_BEATS, "missing") is None
    await engine.dispose()


@pytest.mark.asyncio
async def test_sql_store_overwrites_existing_document():
    engine, sql_store = await _sql_store()
    batch = sql_store.batch()
    batch.set(CHARACTERS, {"name": "Sarah"}, doc_id="c1")
    await batch.commit()

    batch = sql_store.batch()
    batch.set(CHARACTERS, {"name": "Sarah Vance", "id": "ignored"}, doc_id="c1")
    await batch.commit()

    character = await sql_store.get(CHARACTERS, "c1")
    assert character["name"] == "Sarah Vance"
    assert character["id"] == "c1"
    await engine.dispose()


def test_store_dependency_follows_configured_backend(monkeypatch):
    from quillscribe.api import deps
    from quillscribe.core.config import settings
    from quillscribe.db.session import AsyncSessionLocal

    monkeypatch.setattr(settings, "DOCUMENT_STORE_BACKEND", "memory")
    assert deps.get_document_store() is deps.get_document_store()
    assert isinstance(deps.get_document_store(), InMemoryDocumentStore)

    monkeypatch.setattr(settings, "DOCUMENT_STORE_BACKEND", "sql")
    store = deps.get_document_store()
    assert isinstance(store, SqlDocumentStore)
    assert store._session_factory is AsyncSessionLocal
