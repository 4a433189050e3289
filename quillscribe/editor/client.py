"""HTTP client for the AI endpoints, used by the editor session."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from quillscribe.editor.requests import GenerationRequest, TransformationRequest
from quillscribe.shared_kernel.text import parse_title_content

logger = logging.getLogger(__name__)


class AIClientError(Exception):
    """A call to the AI service failed; ``cause`` keeps the original error."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransformFailed(AIClientError):
    pass


class GenerationFailed(AIClientError):
    pass


class NoteIngestionFailed(AIClientError):
    pass


@dataclass(frozen=True)
class GeneratedContent:
    content: str
    title: Optional[str] = None

    @property
    def structured(self) -> bool:
        return self.title is not None


def parse_generated_content(raw: str) -> GeneratedContent:
    """JSON first, then ``TITLE:``/``CONTENT:`` labels, else opaque prose."""
    parsed = parse_title_content(raw)
    if parsed is None:
        return GeneratedContent(content=(raw or "").strip())
    return GeneratedContent(content=parsed["content"], title=parsed["title"])


class AIServiceClient:
    def __init__(self, base_url: str, token: str, timeout: float = 60.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    async def transform(self, request: TransformationRequest) -> str:
        try:
            body = await self._post("/ai/transform", request.to_payload())
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Transform request failed: %s", exc)
            raise TransformFailed("Transformation failed", cause=exc) from exc
        if not isinstance(body, dict) or not body.get("success"):
            raise TransformFailed("Transformation was not successful")
        text = body.get("transformedText")
        if not isinstance(text, str) or not text.strip():
            raise TransformFailed("Transformation returned no text")
        return text

    async def generate(self, request: GenerationRequest) -> GeneratedContent:
        try:
            body = await self._post("/ai/generate-content", request.to_payload())
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Generate request failed: %s", exc)
            raise GenerationFailed("Generation failed", cause=exc) from exc
        raw = body.get("generatedContent") if isinstance(body, dict) else None
        if not isinstance(raw, str) or not raw.strip():
            raise GenerationFailed("Generation returned no content")
        return parse_generated_content(raw)

    async def process_note(self, content: str) -> Dict[str, Any]:
        try:
            body = await self._post("/ai/process-note", {"content": content})
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Note ingestion request failed: %s", exc)
            raise NoteIngestionFailed("Note ingestion failed", cause=exc) from exc
        if not isinstance(body, dict):
            raise NoteIngestionFailed("Note ingestion returned an unexpected body")
        return body

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.token}"}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
