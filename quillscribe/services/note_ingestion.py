"""Two-phase note ingestion orchestrated with LangGraph.

classify -> filter -> enrich_characters -> enrich_locations -> enrich_events -> persist

Characters are enriched first so their resolved names can be handed to the
location and event prompts. Nothing is written until ``persist``, which
commits every entity and the note in one batch.
"""
from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypedDict, TypeVar

from langgraph.graph import StateGraph, END
from pydantic import BaseModel, ValidationError as PydanticValidationError

from quillscribe.core.config import settings
from quillscribe.schemas.entities import (
    Classification,
    ExtractedCharacter,
    ExtractedEvent,
    ExtractedLocation,
    SectionsToProcess,
)
from quillscribe.services.llm_client import LLMClient
from quillscribe.shared_kernel.exceptions import ModelFormatError, ValidationError
from quillscribe.shared_kernel.text import parse_json_object
from quillscribe.store import CHARACTERS, EVENTS, LOCATIONS, NOTES, DocumentStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class IngestionStage(str, Enum):
    RECEIVED = "received"
    CLASSIFYING = "classifying"
    FILTERED = "filtered"
    ENRICHING_CHARACTERS = "enriching-characters"
    ENRICHING_LOCATIONS = "enriching-locations"
    ENRICHING_EVENTS = "enriching-events"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class NoteIngestionState(TypedDict, total=False):
    content: str
    stage: IngestionStage
    classification: Classification
    sections: SectionsToProcess
    characters: List[ExtractedCharacter]
    locations: List[ExtractedLocation]
    events: List[ExtractedEvent]
    note_id: str
    result: Dict[str, Any]


CLASSIFY_PROMPT = """You are a JSON-only response API. Analyze this note and identify relevant sections for processing.
Note content: "{content}"

Respond with only valid JSON matching this structure:
{{
  "category": "category_name",
  "confidence": 0.95,
  "tags": ["tag1", "tag2"],
  "sectionsToProcess": {{
    "characters": [
      {{"relevantText": "text about character", "characterName": "name", "confidence": 0.9}}
    ],
    "locations": [
      {{"relevantText": "text about location", "locationName": "name", "confidence": 0.9}}
    ],
    "events": [
      {{"relevantText": "text about event", "eventName": "name", "confidence": 0.9}}
    ]
  }}
}}"""

CHARACTER_PROMPT = """Analyze these character sections and extract detailed information. Be thorough in extracting all attributes and relationships, even if they are implied or the character is unnamed.

Important extraction rules:
1. For unnamed characters, use their relationship or role as their name (e.g., "Sarah's younger brother")
2. Extract ALL personality traits mentioned (e.g., brave, resourceful)
3. Extract ALL physical attributes (e.g., hair color, eye color)
4. Extract ALL background information (e.g., hometown, upbringing)
5. Create relationships for any mentioned connections between characters

Sections to analyze: {sections}

Respond with only valid JSON in this format:
{{
  "characters": [
    {{
      "name": "string (use role/relationship if unnamed)",
      "aliases": ["string (other ways the character is referenced)"],
      "attributes": {{
        "personality": ["string (all personality traits)"],
        "appearance": ["string (all physical attributes)"],
        "background": ["string (all background details)"]
      }},
      "relationships": [
        {{
          "targetName": "string (name or role of related character)",
          "type": "string (e.g., sibling, friend, antagonist)",
          "description": "string (detailed relationship description)"
        }}
      ]
    }}
  ]
}}"""

LOCATION_PROMPT = """Analyze these location sections and extract detailed information. Be thorough in extracting all attributes and significance.

Known characters in the story: {known_characters}

Important extraction rules:
1. Extract the full description of the location
2. Note any historical or cultural significance
3. Identify any notable features or characteristics
4. Use SPECIFIC character names when mentioning characters (e.g., "Sarah grew up here" instead of "the character grew up here")
5. Note any events that occurred here, using specific character names

Sections to analyze: {sections}

Respond with only valid JSON in this format:
{{
  "locations": [
    {{
      "name": "string",
      "description": "string (detailed description using specific character names)",
      "attributes": {{
        "type": "string (e.g., town, building, region)",
        "features": ["string (notable characteristics)"],
        "significance": ["string (historical/cultural importance, using specific character names)"],
        "associatedCharacters": ["string (exact names of characters connected to this location)"]
      }},
      "characterConnections": [
        {{
          "characterName": "string (exact character name)",
          "connection": "string (how this character is connected to the location)"
        }}
      ]
    }}
  ]
}}"""

EVENT_PROMPT = """Analyze these event sections and extract detailed information. Be thorough in extracting all details and connections.

Known characters in the story: {known_characters}

Important extraction rules:
1. Extract the full description of the event using specific character names
2. Use EXACT character names for all involved characters (e.g., "Sarah" and "Sarah's younger brother")
3. Note all locations where the event occurs
4. Track any temporal information (when it happens)
5. Note the significance or impact of the event, using specific character names

Sections to analyze: {sections}

Respond with only valid JSON in this format:
{{
  "events": [
    {{
      "name": "string (descriptive name of the event, including character names)",
      "description": "string (detailed description using specific character names)",
      "involvedCharacters": [
        {{"name": "string (exact character name)", "role": "string (their role in the event)"}}
      ],
      "locations": ["string (all involved locations)"],
      "timing": {{"period": "string (when it occurs)", "duration": "string (how long it lasts)"}},
      "significance": "string (impact or importance of the event, using specific character names)"
    }}
  ]
}}"""


def filter_sections(sections: SectionsToProcess, threshold: float) -> SectionsToProcess:
    """Keep only sub-items whose confidence reaches ``threshold``."""
    return SectionsToProcess(
        characters=[item for item in sections.characters if item.confidence >= threshold],
        locations=[item for item in sections.locations if item.confidence >= threshold],
        events=[item for item in sections.events if item.confidence >= threshold],
    )


class NoteIngestionPipeline:
    """One instance per request; holds no state between calls."""

    def __init__(
        self,
        store: DocumentStore,
        llm_client: Optional[LLMClient] = None,
        confidence_threshold: Optional[float] = None,
    ) -> None:
        self.store = store
        self.llm_client = llm_client or LLMClient()
        self.confidence_threshold = (
            settings.EXTRACTION_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold
        )
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(NoteIngestionState)
        graph.add_node("classify", self.classify)
        graph.add_node("filter", self.filter)
        graph.add_node("enrich_characters", self.enrich_characters)
        graph.add_node("enrich_locations", self.enrich_locations)
        graph.add_node("enrich_events", self.enrich_events)
        graph.add_node("persist", self.persist)

        graph.set_entry_point("classify")
        graph.add_edge("classify", "filter")
        graph.add_conditional_edges(
            "filter",
            self._route_after_filter,
            {
                "enrich": "enrich_characters",
                "persist": "persist",
            },
        )
        graph.add_edge("enrich_characters", "enrich_locations")
        graph.add_edge("enrich_locations", "enrich_events")
        graph.add_edge("enrich_events", "persist")
        graph.add_edge("persist", END)
        return graph.compile()

    async def process(self, content: str) -> Dict[str, Any]:
        if not content or not isinstance(content, str) or not content.strip():
            raise ValidationError("Invalid content provided", code="invalid_note_content")

        logger.info("Note ingestion started (%s chars)", len(content))
        start = time.perf_counter()
        try:
            state = await self.graph.ainvoke(
                {
                    "content": content,
                    "stage": IngestionStage.RECEIVED,
                    "characters": [],
                    "locations": [],
                    "events": [],
                }
            )
        except Exception:
            logger.exception("Note ingestion %s", IngestionStage.FAILED.value)
            raise
        logger.info("Note ingestion %s in %.2fs", IngestionStage.DONE.value, time.perf_counter() - start)
        return state["result"]

    # Graph nodes

    async def classify(self, state: NoteIngestionState) -> Dict[str, Any]:
        logger.info("Stage: %s", IngestionStage.CLASSIFYING.value)
        raw = await self.llm_client.generate_content(CLASSIFY_PROMPT.format(content=state["content"]))
        classification = self._parse(raw, Classification, key=None, phase="classify")
        return {"stage": IngestionStage.CLASSIFYING, "classification": classification}

    async def filter(self, state: NoteIngestionState) -> Dict[str, Any]:
        sections = filter_sections(state["classification"].sectionsToProcess, self.confidence_threshold)
        logger.info(
            "Stage: %s (characters=%s, locations=%s, events=%s)",
            IngestionStage.FILTERED.value,
            len(sections.characters),
            len(sections.locations),
            len(sections.events),
        )
        return {"stage": IngestionStage.FILTERED, "sections": sections}

    def _route_after_filter(self, state: NoteIngestionState) -> str:
        return "persist" if state["sections"].is_empty() else "enrich"

    async def enrich_characters(self, state: NoteIngestionState) -> Dict[str, Any]:
        sections = state["sections"].characters
        if not sections:
            return {"characters": []}
        logger.info("Stage: %s", IngestionStage.ENRICHING_CHARACTERS.value)
        prompt = CHARACTER_PROMPT.format(sections=_dump_sections(sections))
        characters = await self._enrich(prompt, "characters", ExtractedCharacter)
        return {"stage": IngestionStage.ENRICHING_CHARACTERS, "characters": characters}

    async def enrich_locations(self, state: NoteIngestionState) -> Dict[str, Any]:
        sections = state["sections"].locations
        if not sections:
            return {"locations": []}
        logger.info("Stage: %s", IngestionStage.ENRICHING_LOCATIONS.value)
        prompt = LOCATION_PROMPT.format(
            known_characters=_known_characters(state.get("characters", [])),
            sections=_dump_sections(sections),
        )
        locations = await self._enrich(prompt, "locations", ExtractedLocation)
        return {"stage": IngestionStage.ENRICHING_LOCATIONS, "locations": locations}

    async def enrich_events(self, state: NoteIngestionState) -> Dict[str, Any]:
        sections = state["sections"].events
        if not sections:
            return {"events": []}
        logger.info("Stage: %s", IngestionStage.ENRICHING_EVENTS.value)
        prompt = EVENT_PROMPT.format(
            known_characters=_known_characters(state.get("characters", [])),
            sections=_dump_sections(sections),
        )
        events = await self._enrich(prompt, "events", ExtractedEvent)
        return {"stage": IngestionStage.ENRICHING_EVENTS, "events": events}

    async def persist(self, state: NoteIngestionState) -> Dict[str, Any]:
        logger.info("Stage: %s", IngestionStage.PERSISTING.value)
        classification = state["classification"]
        characters = state.get("characters", [])
        locations = state.get("locations", [])
        events = state.get("events", [])

        note_id = self.store.new_id()
        batch = self.store.batch()
        for character in characters:
            batch.set(CHARACTERS, _entity_document(character, note_id))
        for location in locations:
            batch.set(LOCATIONS, _entity_document(location, note_id))
        for event in events:
            batch.set(EVENTS, _entity_document(event, note_id))

        relationships = {
            "characters": [item.name for item in characters],
            "locations": [item.name for item in locations],
            "events": [item.name for item in events],
        }
        batch.set(
            NOTES,
            {
                "content": state["content"],
                "category": classification.category,
                "tags": classification.tags,
                "entities": relationships,
            },
            doc_id=note_id,
        )
        await batch.commit()
        logger.info("Stored note %s with %s entities", note_id, len(batch) - 1)

        result = {
            "noteId": note_id,
            "category": classification.category,
            "confidence": classification.confidence,
            "tags": classification.tags,
            "relationships": relationships,
            "extractedEntities": {
                "characters": [_public(item) for item in characters],
                "locations": [_public(item) for item in locations],
                "events": [_public(item) for item in events],
            },
        }
        return {"stage": IngestionStage.DONE, "note_id": note_id, "result": result}

    # Helpers

    async def _enrich(self, prompt: str, key: str, model: Type[ModelT]) -> List[ModelT]:
        raw = await self.llm_client.generate_content(prompt)
        return self._parse(raw, model, key=key, phase=key)

    def _parse(self, raw: str, model: Type[ModelT], key: Optional[str], phase: str) -> Any:
        try:
            payload = parse_json_object(raw)
        except ValueError as exc:
            logger.error("Unparseable %s response: %s", phase, (raw or "")[:500])
            raise ModelFormatError(
                f"Model returned invalid JSON during {phase}",
                code="invalid_model_json",
                details={"phase": phase},
            ) from exc

        try:
            if key is None:
                return model.model_validate(payload)
            items = payload.get(key)
            if not isinstance(items, list):
                raise ModelFormatError(
                    f"Model response is missing '{key}'",
                    code="missing_model_key",
                    details={"phase": phase},
                )
            return [model.model_validate(item) for item in items]
        except PydanticValidationError as exc:
            logger.error("Malformed %s response: %s", phase, exc)
            raise ModelFormatError(
                f"Model returned malformed data during {phase}",
                code="malformed_model_data",
                details={"phase": phase},
            ) from exc


def _dump_sections(sections: List[BaseModel]) -> str:
    return json.dumps([section.model_dump() for section in sections])


def _known_characters(characters: List[ExtractedCharacter]) -> str:
    return json.dumps([{"name": item.name, "aliases": item.aliases} for item in characters])


def _public(entity: BaseModel) -> Dict[str, Any]:
    return entity.model_dump(exclude={"kind"})


def _entity_document(entity: BaseModel, note_id: str) -> Dict[str, Any]:
    return {**_public(entity), "noteReferences": [note_id]}
