"""Deterministic placeholder output used when the backend cannot be used."""

from __future__ import annotations

from typing import Any, List, Sequence

from .config import FALLBACK_REASON, FALLBACK_TAGS, IMPROVEMENT_FAILED_SUFFIX
from .models import ImprovementResult, Mode, RewriteWithReason, Translate


def mock_translate(text: str, target_language: str) -> str:
    tag = FALLBACK_TAGS.get(target_language, target_language.upper())
    return f"[{tag}] {text}"


def mock_improve(text: str) -> str:
    return text + IMPROVEMENT_FAILED_SUFFIX


def mock_improvement(text: str) -> ImprovementResult:
    return ImprovementResult(original=text, improved=mock_improve(text), reason=FALLBACK_REASON)


def fallback_results(texts: Sequence[str], mode: Mode) -> List[Any]:
    """One degraded result per input text, shaped like a real response for ``mode``."""
    if isinstance(mode, Translate):
        return [mock_translate(text, mode.target_language) for text in texts]
    if isinstance(mode, RewriteWithReason):
        return [mock_improvement(text) for text in texts]
    return [mock_improve(text) for text in texts]
