from __future__ import annotations

import json
import re
from typing import Any

from oppbrief.errors import ProviderParseError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_object(text: str) -> dict[str, Any]:
    """Pull a JSON object out of model output.

    A fenced code block wins; otherwise the greedy outermost ``{...}`` span is
    used, so prose before or after the object is ignored.
    """
    if not text or not text.strip():
        raise ProviderParseError("Empty response body")

    fenced = _FENCE_RE.search(text)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        match = _OBJECT_RE.search(text)
        if not match:
            raise ProviderParseError(f"No JSON object found in response: {text[:200]!r}")
        candidate = match.group(0)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ProviderParseError(f"Malformed JSON in response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ProviderParseError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
