"""Typed models used by the Text Transformation (TT) module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union


@dataclass(frozen=True)
class TextItem:
    id: str
    content: str


@dataclass(frozen=True)
class Translate:
    target_language: str

    name = "translate"


@dataclass(frozen=True)
class Rewrite:
    tone: str = "friendly"
    target: Optional[str] = None

    name = "rewrite"


@dataclass(frozen=True)
class RewriteWithReason:
    tone: str = "friendly"
    target: Optional[str] = None

    name = "rewrite_with_reason"


Mode = Union[Translate, Rewrite, RewriteWithReason]

MODE_NAMES = (Translate.name, Rewrite.name, RewriteWithReason.name)


def parse_mode(
    name: str,
    target_language: Optional[str] = None,
    tone: Optional[str] = None,
    target: Optional[str] = None,
) -> Mode:
    """Build a mode from its wire name and options."""
    for option, value in (("target_language", target_language), ("tone", tone), ("target", target)):
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{option} must be a string")
    if name == Translate.name:
        if not target_language or not target_language.strip():
            raise ValueError("target_language is required for translate mode")
        return Translate(target_language=target_language)
    if name == Rewrite.name:
        return Rewrite(tone=tone or "friendly", target=target)
    if name == RewriteWithReason.name:
        return RewriteWithReason(tone=tone or "friendly", target=target)
    raise ValueError(f"Unknown mode: {name!r}")


@dataclass
class Chunk:
    chunk_id: str
    index: int
    items: List[Any]
    token_estimate: int

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ImprovementResult:
    original: str
    improved: str
    reason: str


@dataclass(frozen=True)
class BackendRequest:
    system_instruction: str
    user_payload: str
    temperature: float
    max_output_tokens: int


@dataclass(frozen=True)
class JobProgress:
    current_chunk_index: int
    total_chunks: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current_chunk_index,
            "total": self.total_chunks,
            "message": self.message,
        }


@dataclass
class ChunkRun:
    results: List[Any]
    attempts: int
    degraded: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class OutcomeEntry:
    content: str
    transformed_content: str
    reason: Optional[str] = None
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "content": self.content,
            "transformed_content": self.transformed_content,
            "degraded": self.degraded,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class PipelineOutcome:
    """Per-item results of one pipeline run, in input order."""

    entries: Dict[str, OutcomeEntry] = field(default_factory=dict)
    cancelled: bool = False

    def add(self, item_id: str, entry: OutcomeEntry) -> None:
        if item_id in self.entries:
            raise ValueError(f"Outcome already has an entry for {item_id!r}")
        self.entries[item_id] = entry

    def __getitem__(self, item_id: str) -> OutcomeEntry:
        return self.entries[item_id]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def transformed(self) -> Dict[str, str]:
        return {item_id: entry.transformed_content for item_id, entry in self.entries.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cancelled": self.cancelled,
            "entries": [
                {"id": item_id, **entry.to_dict()} for item_id, entry in self.entries.items()
            ],
        }
