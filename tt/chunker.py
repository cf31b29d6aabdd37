"""Item-level chunking for TT requests."""

from __future__ import annotations

import math
from typing import Callable, List, Sequence, TypeVar

from .config import CHARS_PER_TOKEN, ChunkConfig
from .models import Chunk

T = TypeVar("T")

DEFAULT_CHUNK_CONFIG = ChunkConfig()


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _make_chunk(buffer: List[T], token_estimate: int, chunk_index: int) -> Chunk:
    return Chunk(
        chunk_id=f"tt_{chunk_index + 1:04d}",
        index=chunk_index,
        items=list(buffer),
        token_estimate=token_estimate,
    )


def divide_into_chunks(
    items: Sequence[T],
    size_of: Callable[[T], str],
    config: ChunkConfig = DEFAULT_CHUNK_CONFIG,
) -> List[Chunk]:
    """Split ``items`` into ordered chunks bounded by count and token estimate.

    Items are never split or dropped; one whose estimate alone exceeds
    ``config.max_tokens`` ends up in a chunk of its own.
    """
    if not items:
        return []

    chunks: List[Chunk] = []
    buffer: List[T] = []
    buffer_tokens = 0

    for item in items:
        item_tokens = estimate_tokens(size_of(item))

        if buffer and (
            buffer_tokens + item_tokens > config.max_tokens
            or len(buffer) >= config.max_items
        ):
            chunks.append(_make_chunk(buffer, buffer_tokens, len(chunks)))
            buffer = []
            buffer_tokens = 0

        buffer.append(item)
        buffer_tokens += item_tokens

    if buffer:
        chunks.append(_make_chunk(buffer, buffer_tokens, len(chunks)))

    return chunks
