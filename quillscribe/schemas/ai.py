"""Schemas for the AI endpoints."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TransformAction(str, Enum):
    EXPAND = "expand"
    SUMMARIZE = "summarize"
    REPHRASE = "rephrase"
    REVISE = "revise"


class ContentKind(str, Enum):
    NOTE = "note"
    BEAT = "beat"
    TEXT = "text"


class TransformRequest(BaseModel):
    """Transformation of one selected span."""
    text: str = ""
    action: Optional[TransformAction] = None
    additionalInstructions: Optional[str] = None
    fullDocument: Optional[str] = None


class TransformResponse(BaseModel):
    success: bool
    transformedText: str


class GenerateContentRequest(BaseModel):
    """Freeform generation grounded in a chapter's context block."""
    type: ContentKind
    chapterId: str = ""
    projectId: str = ""
    currentContent: Optional[str] = None


class GenerateContentResponse(BaseModel):
    generatedContent: str


class ProcessNoteRequest(BaseModel):
    content: str = ""


class NoteRelationships(BaseModel):
    characters: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)


class ExtractedEntitiesPayload(BaseModel):
    characters: List[Dict[str, Any]] = Field(default_factory=list)
    locations: List[Dict[str, Any]] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)


class ProcessNoteResponse(BaseModel):
    noteId: str
    category: str
    confidence: float
    tags: List[str] = Field(default_factory=list)
    relationships: NoteRelationships
    extractedEntities: ExtractedEntitiesPayload
