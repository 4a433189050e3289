"""Typed views over stored entity documents and extraction results.

Store documents are loosely shaped dicts. Everything read from the store or
from the model passes through these models so downstream code sees one
shape per entity kind.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


def _str_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _attributes(data: Dict[str, Any]) -> Dict[str, Any]:
    attributes = data.get("attributes")
    return attributes if isinstance(attributes, dict) else {}


# Context summaries (read side)

class Relationship(BaseModel):
    targetName: str = "Unknown"
    type: str = "Unknown"
    description: str = "No description"

    @classmethod
    def from_raw(cls, raw: Any) -> "Relationship":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            targetName=_opt_str(raw.get("targetName")) or "Unknown",
            type=_opt_str(raw.get("type")) or "Unknown",
            description=_opt_str(raw.get("description")) or "No description",
        )


class CharacterSummary(BaseModel):
    kind: Literal["character"] = "character"
    id: str
    name: str
    description: Optional[str] = None
    personality: List[str] = Field(default_factory=list)
    appearance: List[str] = Field(default_factory=list)
    background: List[str] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "CharacterSummary":
        attributes = _attributes(data)
        relationships = data.get("relationships")
        return cls(
            id=str(data.get("id", "")),
            name=_opt_str(data.get("name")) or "Unnamed Character",
            description=_opt_str(data.get("description")),
            personality=_str_list(attributes.get("personality")),
            appearance=_str_list(attributes.get("appearance")),
            background=_str_list(attributes.get("background")),
            relationships=[
                Relationship.from_raw(item)
                for item in (relationships if isinstance(relationships, list) else [])
            ],
        )


class SettingSummary(BaseModel):
    kind: Literal["setting"] = "setting"
    id: str
    name: str
    description: Optional[str] = None
    setting_type: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    significance: List[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "SettingSummary":
        attributes = _attributes(data)
        return cls(
            id=str(data.get("id", "")),
            name=_opt_str(data.get("name")) or "Unnamed Setting",
            description=_opt_str(data.get("description")),
            setting_type=_opt_str(attributes.get("type")),
            features=_str_list(attributes.get("features")),
            significance=_str_list(attributes.get("significance")),
        )


class PlotPointSummary(BaseModel):
    kind: Literal["plotPoint"] = "plotPoint"
    id: str
    name: str
    description: Optional[str] = None
    events: List[str] = Field(default_factory=list)
    impact: List[str] = Field(default_factory=list)
    connections: List[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "PlotPointSummary":
        attributes = _attributes(data)
        return cls(
            id=str(data.get("id", "")),
            name=_opt_str(data.get("name")) or "Unnamed Plot Point",
            description=_opt_str(data.get("description")),
            events=_str_list(attributes.get("events")),
            impact=_str_list(attributes.get("impact")),
            connections=_str_list(attributes.get("connections")),
        )


EntitySummary = Union[CharacterSummary, SettingSummary, PlotPointSummary]


class Beat(BaseModel):
    id: str = ""
    title: str = ""
    content: str = ""
    order: float = 0


class Note(BaseModel):
    id: str = ""
    title: str = ""
    content: str = ""


class ChapterContext(BaseModel):
    chapterId: str
    chapterTitle: str
    chapterText: str
    characters: List[CharacterSummary] = Field(default_factory=list)
    settings: List[SettingSummary] = Field(default_factory=list)
    plotPoints: List[PlotPointSummary] = Field(default_factory=list)
    beats: List[Beat] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)


# Note ingestion (write side)

class CharacterSection(BaseModel):
    relevantText: str = ""
    characterName: str = ""
    confidence: float = 0.0


class LocationSection(BaseModel):
    relevantText: str = ""
    locationName: str = ""
    confidence: float = 0.0


class EventSection(BaseModel):
    relevantText: str = ""
    eventName: str = ""
    confidence: float = 0.0


class SectionsToProcess(BaseModel):
    characters: List[CharacterSection] = Field(default_factory=list)
    locations: List[LocationSection] = Field(default_factory=list)
    events: List[EventSection] = Field(default_factory=list)

    @field_validator("characters", "locations", "events", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or []

    def is_empty(self) -> bool:
        return not (self.characters or self.locations or self.events)


class Classification(BaseModel):
    category: str = "uncategorized"
    confidence: float = 0.0
    tags: List[str] = Field(default_factory=list)
    sectionsToProcess: SectionsToProcess = Field(default_factory=SectionsToProcess)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return _str_list(value)

    @field_validator("sectionsToProcess", mode="before")
    @classmethod
    def none_as_default(cls, value):
        return value or {}


class CharacterAttributes(BaseModel):
    personality: List[str] = Field(default_factory=list)
    appearance: List[str] = Field(default_factory=list)
    background: List[str] = Field(default_factory=list)

    @field_validator("personality", "appearance", "background", mode="before")
    @classmethod
    def as_list(cls, value):
        return _str_list(value)


class CharacterRelationship(BaseModel):
    targetName: str = ""
    type: str = ""
    description: str = ""


class ExtractedCharacter(BaseModel):
    kind: Literal["character"] = "character"
    name: str
    aliases: List[str] = Field(default_factory=list)
    attributes: CharacterAttributes = Field(default_factory=CharacterAttributes)
    relationships: List[CharacterRelationship] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("character name must not be empty")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def aliases_list(cls, value):
        return _str_list(value)

    @field_validator("attributes", mode="before")
    @classmethod
    def attributes_default(cls, value):
        return value or {}

    @field_validator("relationships", mode="before")
    @classmethod
    def relationships_default(cls, value):
        return value or []


class LocationAttributes(BaseModel):
    type: str = ""
    features: List[str] = Field(default_factory=list)
    significance: List[str] = Field(default_factory=list)
    associatedCharacters: List[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def type_text(cls, value):
        return _opt_str(value) or ""

    @field_validator("features", "significance", "associatedCharacters", mode="before")
    @classmethod
    def as_list(cls, value):
        return _str_list(value)


class CharacterConnection(BaseModel):
    characterName: str = ""
    connection: str = ""


class ExtractedLocation(BaseModel):
    kind: Literal["location"] = "location"
    name: str
    description: str = ""
    attributes: LocationAttributes = Field(default_factory=LocationAttributes)
    characterConnections: List[CharacterConnection] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def description_text(cls, value):
        return _opt_str(value) or ""

    @field_validator("attributes", mode="before")
    @classmethod
    def attributes_default(cls, value):
        return value or {}

    @field_validator("characterConnections", mode="before")
    @classmethod
    def connections_default(cls, value):
        return value or []


class InvolvedCharacter(BaseModel):
    name: str = ""
    role: str = ""


class EventTiming(BaseModel):
    period: str = ""
    duration: str = ""


class ExtractedEvent(BaseModel):
    kind: Literal["event"] = "event"
    name: str
    description: str = ""
    involvedCharacters: List[InvolvedCharacter] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    timing: EventTiming = Field(default_factory=EventTiming)
    significance: str = ""

    @field_validator("description", "significance", mode="before")
    @classmethod
    def text_default(cls, value):
        return _opt_str(value) or ""

    @field_validator("involvedCharacters", mode="before")
    @classmethod
    def involved_default(cls, value):
        return value or []

    @field_validator("locations", mode="before")
    @classmethod
    def locations_list(cls, value):
        return _str_list(value)

    @field_validator("timing", mode="before")
    @classmethod
    def timing_default(cls, value):
        return value or {}


ExtractedEntity = Union[ExtractedCharacter, ExtractedLocation, ExtractedEvent]
