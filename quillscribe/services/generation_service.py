"""Context-grounded generation of notes, beats and prose."""
from __future__ import annotations

import json
import logging
from typing import Optional

from quillscribe.schemas.ai import ContentKind, GenerateContentRequest
from quillscribe.services.context_service import ChapterContextService
from quillscribe.services.llm_client import LLMClient
from quillscribe.shared_kernel.exceptions import ModelFormatError, ValidationError
from quillscribe.shared_kernel.text import parse_title_content
from quillscribe.store import DocumentStore

logger = logging.getLogger(__name__)

_NOTE_TEMPLATE = """You are a creative writing assistant. Based on the following context about this chapter, generate a note that could help develop the story further. The note should be insightful and relate to the existing content and metadata.

Context:
{context}

Generate a note with both a title and content. The content should be 2-3 sentences that provide a unique insight or idea related to this chapter.

Format your response EXACTLY like this, including the exact labels:
TITLE: [A short, specific title for the note]
CONTENT: [The actual note content without any prelude or explanation]"""

_BEAT_TEMPLATE = """You are a creative writing assistant. Based on the following context about this chapter, generate a logical next story beat that would help move the narrative forward. Consider the existing beats and story elements.

Context:
{context}

Generate a new story beat with both a title and description. The description should be specific and actionable, helping to move the story forward in a meaningful way.

Format your response EXACTLY like this, including the exact labels:
TITLE: [A short, specific title for the beat]
CONTENT: [The beat description without any prelude or explanation]"""

_TEXT_TEMPLATE = """You are a creative writing assistant. Based on the following context about this chapter, generate a new paragraph that naturally fits into the current narrative. Consider all the existing story elements, character relationships, and plot points.

Context:
{context}

Current Location in Text: {current_content}

Generate a new paragraph (3-5 sentences) that flows naturally from the current content while considering all the chapter's metadata. The paragraph should maintain consistent tone and style with the existing text while advancing the story in a meaningful way."""


def build_generation_prompt(kind: ContentKind, context_block: str, current_content: Optional[str]) -> str:
    if kind == ContentKind.NOTE:
        return _NOTE_TEMPLATE.format(context=context_block)
    if kind == ContentKind.BEAT:
        return _BEAT_TEMPLATE.format(context=context_block)
    if kind == ContentKind.TEXT:
        return _TEXT_TEMPLATE.format(
            context=context_block,
            current_content=current_content or "Start of chapter",
        )
    raise ValidationError("Invalid generation type", code="invalid_generation_type")


class GenerationService:
    def __init__(self, store: DocumentStore, llm_client: Optional[LLMClient] = None) -> None:
        self.context_service = ChapterContextService(store)
        self.llm_client = llm_client or LLMClient()

    async def generate(self, request: GenerateContentRequest) -> str:
        """Return prose for ``text`` or a JSON ``{title, content}`` string for notes and beats."""
        if not request.chapterId:
            raise ValidationError("chapterId is required", code="missing_chapter_id")

        context_block = await self.context_service.build_context_block(request.chapterId)
        prompt = build_generation_prompt(request.type, context_block, request.currentContent)
        generated = (await self.llm_client.generate_content(prompt)).strip()

        if request.type == ContentKind.TEXT:
            if not generated:
                raise ModelFormatError("Model returned no text", code="empty_generation")
            return generated

        parsed = parse_title_content(generated)
        if parsed is None:
            logger.warning("Unlabelled %s generation: %s", request.type.value, generated[:200])
            raise ModelFormatError(
                "Generated content did not match expected format",
                code="unexpected_generation_format",
            )
        return json.dumps(parsed)
