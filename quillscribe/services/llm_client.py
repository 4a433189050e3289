"""LLM client wrapper for OpenAI-compatible chat completion APIs."""
from typing import List, Dict, Optional, Any
import logging

import httpx
from httpx import ReadTimeout

from quillscribe.core.config import settings
from quillscribe.shared_kernel.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class LLMClient:
    """Async client for chat completions.

    The rest of the service only needs ``generate_content(prompt) -> text``;
    everything model-specific stays behind this class.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.base_url = (base_url or settings.LLM_API_BASE).rstrip("/")
        self.model = model or settings.LLM_MODEL

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Call chat completions and return the assistant content."""
        payload = {
            "model": model or self.model,
            "messages": messages,
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or settings.LLM_MAX_TOKENS,
        }
        if response_format:
            payload["response_format"] = response_format
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        timeout = httpx.Timeout(settings.LLM_TIMEOUT, read=settings.LLM_TIMEOUT)
        async with httpx.AsyncClient(timeout=timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                )
            except ReadTimeout:
                raise
            except httpx.HTTPError as exc:
                logger.error("LLM connection error: %s", exc)
                raise ExternalServiceError(
                    "Model connection error. Please retry in a moment.",
                    code="llm_unavailable",
                ) from exc
            if response.status_code != 200:
                logger.error("LLM API error %s: %s", response.status_code, response.text[:500])
                raise ExternalServiceError(
                    "Model API error",
                    code="llm_error",
                    details={"status_code": response.status_code},
                )

            result = response.json()
            try:
                message = result["choices"][0]["message"]
            except (KeyError, IndexError, TypeError) as exc:
                raise ExternalServiceError("Model returned no choices", code="llm_empty") from exc
            return message.get("content") or ""

    async def generate_content(self, prompt: str) -> str:
        """Single-prompt generation, the only capability the pipelines rely on."""
        return await self.chat(messages=[{"role": "user", "content": prompt}])
