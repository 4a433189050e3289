"""Text helpers shared by the editor engine and the service."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

_HTML_TAG = re.compile(r"<[^>]*>")
_JSON_FENCE_OPEN = re.compile(r"^```(?:json)?[ \t]*\n")
_JSON_FENCE_CLOSE = re.compile(r"\n?```$")
_INTRO_PHRASE = re.compile(r"^Here is the .+?:\s*", re.IGNORECASE)
_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")
_TITLE_LABEL = re.compile(r"TITLE:\s*(.+?)(?=\n|$)")
_CONTENT_LABEL = re.compile(r"CONTENT:\s*(.+?)(?=\n|$)")


def count_words(text: str) -> int:
    """Word count used for document limits; HTML tags count as separators."""
    without_html = _HTML_TAG.sub(" ", text or "")
    return len([word for word in without_html.split() if word])


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapping a whole answer."""
    cleaned = (text or "").strip()
    cleaned = _JSON_FENCE_OPEN.sub("", cleaned)
    cleaned = _JSON_FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a model answer as a JSON object after removing its fence.

    Raises ``ValueError`` (``json.JSONDecodeError`` included) when the answer
    is not a JSON object.
    """
    payload = json.loads(strip_code_fence(text))
    if not isinstance(payload, dict):
        raise ValueError("Expected a JSON object")
    return payload


def clean_transformed_text(text: str) -> str:
    """Drop a leading "Here is the ...:" phrase and unwrap backtick blocks."""
    cleaned = _INTRO_PHRASE.sub("", text or "")
    cleaned = _FENCED_BLOCK.sub(lambda match: match.group(0).replace("```", "").strip(), cleaned)
    return cleaned.strip()


def parse_title_content(text: str) -> Optional[Dict[str, str]]:
    """Read a ``{title, content}`` pair from JSON or ``TITLE:``/``CONTENT:`` labels.

    Returns None when neither format is present.
    """
    raw = (text or "").strip()
    try:
        payload = parse_json_object(raw)
    except ValueError:
        payload = None
    if payload is not None:
        title = payload.get("title")
        content = payload.get("content")
        if isinstance(title, str) and isinstance(content, str):
            return {"title": title.strip(), "content": content.strip()}

    title_match = _TITLE_LABEL.search(raw)
    content_match = _CONTENT_LABEL.search(raw)
    if not title_match or not content_match:
        return None
    return {"title": title_match.group(1).strip(), "content": content_match.group(1).strip()}
