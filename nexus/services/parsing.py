"""JSON extraction from LLM text responses."""

from __future__ import annotations

import json
from typing import Any


def strip_code_fence(text: str) -> str:
    """Return the body of the first ``` fenced block, or the text unchanged."""
    text = text.strip()
    if "```" not in text:
        return text
    parts = text.split("```")
    body = parts[1] if len(parts) > 1 else text
    if body.startswith("json"):
        body = body[4:]
    return body.strip()


def loads_llm_json(text: str) -> Any:
    """
    Parse JSON from a model response, tolerating markdown fences.

    Raises:
        ValueError: Empty response.
        json.JSONDecodeError: Not valid JSON after fence removal.
    """
    if not text or not text.strip():
        raise ValueError("Received empty JSON response from the model")
    return json.loads(strip_code_fence(text))
