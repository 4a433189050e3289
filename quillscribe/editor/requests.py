"""Request values sent to the AI service."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from quillscribe.schemas.ai import ContentKind, TransformAction
from quillscribe.shared_kernel.text import count_words


@dataclass(frozen=True)
class TransformationRequest:
    text: str
    action: TransformAction
    additional_instructions: Optional[str] = None
    full_document: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": self.text, "action": self.action.value}
        if self.additional_instructions:
            payload["additionalInstructions"] = self.additional_instructions
        if self.full_document is not None:
            payload["fullDocument"] = self.full_document
        return payload


@dataclass(frozen=True)
class GenerationRequest:
    content_kind: ContentKind
    chapter_id: str
    project_id: str
    current_content: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.content_kind.value,
            "chapterId": self.chapter_id,
            "projectId": self.project_id,
            "currentContent": self.current_content,
        }


def build_transformation_request(
    text: str,
    action: Union[str, TransformAction],
    additional_instructions: Optional[str] = None,
    full_document: Optional[str] = None,
) -> TransformationRequest:
    """Package one of the four actions for a selection.

    An action outside the fixed set is a programming error and raises
    ``ValueError``.
    """
    try:
        action = TransformAction(action)
    except ValueError:
        raise ValueError(f"Unknown transform action: {action!r}") from None
    instructions = (additional_instructions or "").strip() or None
    return TransformationRequest(
        text=text,
        action=action,
        additional_instructions=instructions,
        full_document=full_document,
    )


def build_generation_request(
    content_kind: Union[str, ContentKind],
    chapter_id: str,
    project_id: str,
    current_content: str = "",
) -> GenerationRequest:
    return GenerationRequest(
        content_kind=ContentKind(content_kind),
        chapter_id=chapter_id,
        project_id=project_id,
        current_content=current_content,
    )


def exceeds_word_limit(document: Optional[str], limit: int) -> bool:
    return document is not None and count_words(document) > limit
