"""Chapter context builder for generation prompts."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from quillscribe.core.config import settings
from quillscribe.schemas.entities import (
    Beat,
    ChapterContext,
    CharacterSummary,
    Note,
    PlotPointSummary,
    SettingSummary,
)
from quillscribe.shared_kernel.exceptions import EntityNotFoundError, ValidationError
from quillscribe.store import (
    CHAPTERS,
    CHARACTERS,
    LOCATIONS,
    EVENTS,
    CHAPTER_BEATS,
    CHAPTER_NOTES,
    CHAPTER_ENTITY_CONNECTIONS,
    DocumentStore,
)

logger = logging.getLogger(__name__)

NONE_SPECIFIED = "None specified"
NO_DESCRIPTION = "No description"

# Connection entityType -> backing collection
ENTITY_COLLECTIONS = {
    "character": CHARACTERS,
    "setting": LOCATIONS,
    "plotPoint": EVENTS,
}


class ChapterContextService:
    """Gather a chapter and its linked entities into one context pack.

    Built fresh on every call; entity edits must show up in the very next
    prompt, so nothing here is cached.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def build_chapter_context(self, chapter_id: str) -> ChapterContext:
        if not chapter_id:
            raise ValidationError("chapterId is required", code="missing_chapter_id")

        chapter = await self.store.get(CHAPTERS, chapter_id)
        if chapter is None:
            raise EntityNotFoundError("Chapter not found", code="chapter_not_found", details={"chapterId": chapter_id})

        connections = await self.store.query(CHAPTER_ENTITY_CONNECTIONS, "chapterId", chapter_id)
        buckets: Dict[str, List[str]] = {entity_type: [] for entity_type in ENTITY_COLLECTIONS}
        for connection in connections:
            entity_type = connection.get("entityType")
            entity_id = connection.get("entityId")
            if entity_type not in buckets or not entity_id:
                logger.debug("Skipping connection %s with type %r", connection.get("id"), entity_type)
                continue
            if entity_id not in buckets[entity_type]:
                buckets[entity_type].append(str(entity_id))

        characters, settings_docs, plot_docs, beat_docs, note_docs = await asyncio.gather(
            self.store.get_many(CHARACTERS, buckets["character"]),
            self.store.get_many(LOCATIONS, buckets["setting"]),
            self.store.get_many(EVENTS, buckets["plotPoint"]),
            self.store.query_ordered(CHAPTER_BEATS, "chapterId", chapter_id, order_by="order"),
            self.store.query(CHAPTER_NOTES, "chapterId", chapter_id),
        )

        return ChapterContext(
            chapterId=chapter_id,
            chapterTitle=str(chapter.get("title") or "Untitled"),
            chapterText=_tail(str(chapter.get("content") or ""), settings.CONTEXT_CHAPTER_TEXT_MAX_CHARS),
            characters=[CharacterSummary.from_document(doc) for doc in characters],
            settings=[SettingSummary.from_document(doc) for doc in settings_docs],
            plotPoints=[PlotPointSummary.from_document(doc) for doc in plot_docs],
            beats=[
                Beat(
                    id=str(doc.get("id", "")),
                    title=str(doc.get("title") or ""),
                    content=str(doc.get("content") or ""),
                    order=_order_value(doc.get("order")),
                )
                for doc in beat_docs
            ],
            notes=[
                Note(
                    id=str(doc.get("id", "")),
                    title=str(doc.get("title") or ""),
                    content=str(doc.get("content") or ""),
                )
                for doc in note_docs
            ],
        )

    async def build_context_block(self, chapter_id: str) -> str:
        context = await self.build_chapter_context(chapter_id)
        block = render_context_block(context)
        logger.debug("Context block for chapter %s: %s chars", chapter_id, len(block))
        return block


def _tail(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return "..." + text[-max_chars:].lstrip()


def _order_value(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _join(items: List[str]) -> str:
    return ", ".join(items) if items else NONE_SPECIFIED


def _format_character(character: CharacterSummary) -> str:
    if character.relationships:
        relationships = ", ".join(
            f"{rel.targetName} ({rel.type}): {rel.description}" for rel in character.relationships
        )
    else:
        relationships = NONE_SPECIFIED
    return (
        f"- {character.name}\n"
        f"  Description: {character.description or NO_DESCRIPTION}\n"
        f"  Personality: {_join(character.personality)}\n"
        f"  Appearance: {_join(character.appearance)}\n"
        f"  Background: {_join(character.background)}\n"
        f"  Relationships: {relationships}"
    )


def _format_setting(setting: SettingSummary) -> str:
    return (
        f"- {setting.name}\n"
        f"  Description: {setting.description or NO_DESCRIPTION}\n"
        f"  Type: {setting.setting_type or 'Unspecified'}\n"
        f"  Features: {_join(setting.features)}\n"
        f"  Significance: {_join(setting.significance)}"
    )


def _format_plot_point(plot: PlotPointSummary) -> str:
    return (
        f"- {plot.name}\n"
        f"  Description: {plot.description or NO_DESCRIPTION}\n"
        f"  Events: {_join(plot.events)}\n"
        f"  Impact: {_join(plot.impact)}\n"
        f"  Character Connections: {_join(plot.connections)}"
    )


def _section(title: str, entries: List[str]) -> str:
    body = "\n\n".join(entries) if entries else NONE_SPECIFIED
    return f"{title}:\n{body}"


def render_context_block(context: ChapterContext) -> str:
    """Serialize a chapter context in fixed section order.

    Sections are always present; an empty section reads "None specified" so
    prompt templates can rely on every heading being there.
    """
    sections = [
        f"Chapter Title: {context.chapterTitle}\nCurrent Chapter Text: {context.chapterText}",
        _section("Connected Characters", [_format_character(item) for item in context.characters]),
        _section("Connected Settings", [_format_setting(item) for item in context.settings]),
        _section("Connected Plot Points", [_format_plot_point(item) for item in context.plotPoints]),
        _section("Chapter Beats", [f"- {beat.title}: {beat.content}" for beat in context.beats]),
        _section("Chapter Notes", [f"- {note.title}: {note.content}" for note in context.notes]),
    ]
    return "\n\n".join(sections)
