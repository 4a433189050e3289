"""Selected-text transformation (expand, summarize, rephrase, revise)."""
from __future__ import annotations

import logging
import time
from typing import Optional

from quillscribe.core.config import settings
from quillscribe.schemas.ai import TransformAction, TransformRequest
from quillscribe.services.llm_client import LLMClient
from quillscribe.shared_kernel.exceptions import DocumentLimitError, ModelFormatError, ValidationError
from quillscribe.shared_kernel.text import clean_transformed_text, count_words

logger = logging.getLogger(__name__)

ACTION_INSTRUCTIONS = {
    TransformAction.EXPAND: (
        "Action: Expand this text with more details and context while maintaining "
        "consistency with the surrounding document."
    ),
    TransformAction.SUMMARIZE: (
        "Action: Summarize this text concisely while preserving the key points."
    ),
    TransformAction.REPHRASE: (
        "Action: Rephrase this text while preserving its meaning. Use the surrounding "
        "document context to ensure consistent tone and terminology."
    ),
    TransformAction.REVISE: (
        "Action: Correct any factual errors, inconsistencies, or inaccuracies in this text. "
        "Maintain the original style and tone while fixing only the problematic content."
    ),
}


def build_transform_prompt(request: TransformRequest) -> str:
    if request.action is None:
        raise ValidationError("Text and action are required.", code="missing_action")
    parts = ["IMPORTANT: Return ONLY the transformed text without any explanations, introductions, or commentary."]
    if request.fullDocument:
        parts.append(
            "Below is the full document for context. You'll be asked to transform only a "
            f"specific part of it:\n\n{request.fullDocument}"
        )
        parts.append(
            "Now, please focus ONLY on transforming the following specific text "
            f"(marked between triple backticks):\n\n```\n{request.text}\n```"
        )
    else:
        parts.append(f'Transform the following text:\n\n"{request.text}"')

    parts.append(ACTION_INSTRUCTIONS[request.action])

    if request.additionalInstructions:
        parts.append(f"Additional instructions/information: {request.additionalInstructions}")

    parts.append(
        "Remember to return ONLY the transformed text with no explanations or additional text. "
        'Do not include phrases like "Here is the revised text:" or any other introductory or explanatory text.'
    )
    return "\n\n".join(parts)


class TransformService:
    def __init__(self, llm_client: Optional[LLMClient] = None) -> None:
        self.llm_client = llm_client or LLMClient()

    def validate(self, request: TransformRequest) -> None:
        """Reject bad input before anything is sent to the model."""
        if not request.text or not request.text.strip() or request.action is None:
            raise ValidationError("Text and action are required.", code="missing_text_or_action")
        if request.fullDocument:
            document_words = count_words(request.fullDocument)
            if document_words > settings.WORD_LIMIT:
                raise DocumentLimitError(
                    f"Document exceeds the word limit ({document_words} > {settings.WORD_LIMIT}). "
                    "Please reduce the document size.",
                    code="document_too_long",
                    details={"words": document_words, "limit": settings.WORD_LIMIT},
                )

    async def transform(self, request: TransformRequest) -> str:
        self.validate(request)
        logger.info(
            "Transform %s: %s selected words, document %s",
            request.action.value,
            count_words(request.text),
            "attached" if request.fullDocument else "absent",
        )
        start = time.perf_counter()
        raw = await self.llm_client.generate_content(build_transform_prompt(request))
        logger.info("Transform %s took %.2fs", request.action.value, time.perf_counter() - start)

        transformed = clean_transformed_text(raw)
        if not transformed:
            raise ModelFormatError("Model returned an empty transformation", code="empty_transformation")
        return transformed
