"""JSON array extraction and shape checks for TT model responses."""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from .errors import MalformedResponse, ShapeMismatch
from .models import ImprovementResult, Mode, RewriteWithReason

LEADING_THINK_RE = re.compile(r"^\s*(?:<think>.*?</think>\s*)+", re.DOTALL | re.IGNORECASE)
OPENING_FENCE_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
CLOSING_FENCE_RE = re.compile(r"\n?```\s*$")

IMPROVEMENT_FIELDS = ("original", "improved", "reason")

_decoder = json.JSONDecoder()


def _strip_wrappers(text: str) -> str:
    """Drop a leading ``<think>`` block and code fences at the edges only."""
    cleaned = LEADING_THINK_RE.sub("", text)
    cleaned = OPENING_FENCE_RE.sub("", cleaned)
    cleaned = CLOSING_FENCE_RE.sub("", cleaned)
    return cleaned.strip()


def _decode_array_at(text: str, start: int) -> Optional[List[Any]]:
    try:
        value, _ = _decoder.raw_decode(text, start)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, list) else None


def extract_json_array(text: str) -> List[Any]:
    """Return the first well-formed top-level JSON array found in ``text``.

    A reply that already starts with an array is decoded as is, so fences or
    tags inside string values survive. Otherwise a leading ``<think>`` block,
    edge ```json fences and surrounding prose are skipped.
    Raises ``MalformedResponse`` when no array can be decoded.
    """
    stripped = (text or "").strip()
    if stripped.startswith("["):
        value = _decode_array_at(stripped, 0)
        if value is not None:
            return value

    cleaned = _strip_wrappers(stripped)
    start = cleaned.find("[")
    while start != -1:
        value = _decode_array_at(cleaned, start)
        if value is not None:
            return value
        start = cleaned.find("[", start + 1)
    raise MalformedResponse(f"No JSON array found in response: {cleaned[:200]!r}")


def validate_shape(parsed: Any, expected_len: int, mode: Mode) -> List[Any]:
    """Check ``parsed`` against the request and convert reason-mode objects."""
    if not isinstance(parsed, list):
        raise ShapeMismatch(f"Expected a JSON array, got {type(parsed).__name__}")
    if len(parsed) != expected_len:
        raise ShapeMismatch(f"Expected {expected_len} elements, got {len(parsed)}")

    if isinstance(mode, RewriteWithReason):
        results: List[ImprovementResult] = []
        for index, element in enumerate(parsed):
            if not isinstance(element, dict) or not all(
                isinstance(element.get(key), str) for key in IMPROVEMENT_FIELDS
            ):
                raise ShapeMismatch(
                    f"Element {index} is not an object with string original/improved/reason"
                )
            results.append(
                ImprovementResult(
                    original=element["original"],
                    improved=element["improved"],
                    reason=element["reason"],
                )
            )
        return results

    for index, element in enumerate(parsed):
        if not isinstance(element, str):
            raise ShapeMismatch(f"Element {index} is {type(element).__name__}, expected string")
    return list(parsed)
