"""Shared utilities for the content extraction package."""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

_WHITESPACE_RE = re.compile(r"\s+")
_FENCE_RE = re.compile(r"^```[\w-]*\s*\n?|\n?```\s*$")


def _as_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_llm_json(response_text: str) -> Dict[str, Any]:
    """
    Parse a completion's text into the JSON object it carries.

    Accepts a bare object, an object wrapped in a ```json fence, or an
    object embedded in prose (outermost braces). Only objects count: a
    top-level array or scalar is rejected like unparseable text, since
    every caller maps fields by name.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    text = _FENCE_RE.sub("", (response_text or "").strip()).strip()

    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        parsed = _as_object(candidate)
        if parsed is not None:
            return parsed

    raise ValueError(f"No JSON object in completion: {text[:200]!r}")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def dedupe_capped(items: Iterable[str], cap: int) -> List[str]:
    """Keep first occurrences (case-insensitive), in order, up to ``cap``."""
    seen = set()
    result: List[str] = []
    for item in items:
        if len(result) >= cap:
            break
        key = collapse_whitespace(item).lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result
