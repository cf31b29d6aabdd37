"""End-to-end TT job: chunk, request with retries, map results back to items."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .chunker import divide_into_chunks
from .config import BackendConfig, ChunkConfig, RetryConfig
from .errors import DuplicateItemError
from .fallback import fallback_results
from .llm import BatchRequestClient
from .models import (
    Chunk,
    ChunkRun,
    ImprovementResult,
    JobProgress,
    Mode,
    OutcomeEntry,
    PipelineOutcome,
    Rewrite,
    RewriteWithReason,
    TextItem,
    Translate,
)
from .retry import RetryDriver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[JobProgress], None]
ChunkCallback = Callable[[Chunk, Dict[str, OutcomeEntry]], None]
CancelCheck = Callable[[], bool]


def _check_unique_ids(items: Sequence[TextItem]) -> None:
    seen = set()
    for item in items:
        if item.id in seen:
            raise DuplicateItemError(f"Duplicate item id: {item.id!r}")
        seen.add(item.id)


def _to_entry(item: TextItem, result: Any, degraded: bool) -> OutcomeEntry:
    if isinstance(result, ImprovementResult):
        return OutcomeEntry(
            content=item.content,
            transformed_content=result.improved,
            reason=result.reason,
            degraded=degraded,
        )
    return OutcomeEntry(content=item.content, transformed_content=result, degraded=degraded)


def _verb(mode: Mode) -> str:
    return "Translating" if isinstance(mode, Translate) else "Improving"


class PipelineOrchestrator:
    """Drives one job over a list of ``TextItem``s.

    Chunks are processed one after another; results are appended to the
    outcome in input order. Backend failures never escape ``run``.
    """

    def __init__(
        self,
        client: BatchRequestClient,
        chunk_config: Optional[ChunkConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.chunk_config = chunk_config or ChunkConfig()
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self.driver = RetryDriver(self.retry_config, sleep=sleep)

    @classmethod
    def from_env(cls, client: Any = None) -> "PipelineOrchestrator":
        return cls(
            BatchRequestClient(BackendConfig.from_env(), client=client),
            chunk_config=ChunkConfig.from_env(),
            retry_config=RetryConfig.from_env(),
        )

    async def run(
        self,
        items: Sequence[TextItem],
        mode: Mode,
        on_progress: Optional[ProgressCallback] = None,
        on_chunk: Optional[ChunkCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> PipelineOutcome:
        _check_unique_ids(items)
        outcome = PipelineOutcome()
        if not items:
            return outcome

        def emit(current: int, total: int, message: str) -> None:
            if on_progress:
                on_progress(JobProgress(current, total, message))

        def cancelled() -> bool:
            return bool(should_cancel and should_cancel())

        chunks = divide_into_chunks(items, lambda item: item.content, self.chunk_config)
        total = len(chunks)
        logger.info("Starting %s job: %d items in %d chunks", mode.name, len(items), total)

        for chunk in chunks:
            if cancelled():
                return self._cancel(outcome, chunk.index, total, emit)

            emit(
                chunk.index,
                total,
                f"{_verb(mode)} chunk {chunk.index + 1}/{total} ({len(chunk)} texts)...",
            )
            run = await self._run_chunk(chunk, total, mode)

            if cancelled():
                logger.info("Discarding result of %s after cancellation", chunk.chunk_id)
                return self._cancel(outcome, chunk.index, total, emit)

            entries = {
                item.id: _to_entry(item, result, run.degraded)
                for item, result in zip(chunk.items, run.results)
            }
            for item_id, entry in entries.items():
                outcome.add(item_id, entry)
            if on_chunk:
                on_chunk(chunk, entries)

            if chunk.index < total - 1:
                await self._sleep(self.retry_config.chunk_delay)

        emit(total, total, "Done!")
        logger.info("Finished %s job: %d entries", mode.name, len(outcome))
        return outcome

    async def _run_chunk(self, chunk: Chunk, total: int, mode: Mode) -> ChunkRun:
        texts = [item.content for item in chunk.items]
        return await self.driver.execute(
            chunk.index,
            total,
            texts,
            lambda batch: self.client.request(batch, mode),
            lambda batch: fallback_results(batch, mode),
        )

    @staticmethod
    def _cancel(
        outcome: PipelineOutcome,
        completed: int,
        total: int,
        emit: Callable[[int, int, str], None],
    ) -> PipelineOutcome:
        outcome.cancelled = True
        logger.info("Job cancelled after %d/%d chunks", completed, total)
        emit(completed, total, "Cancelled")
        return outcome

    async def translate_texts(self, texts: Sequence[str], target_language: str) -> List[str]:
        return await self._run_texts(texts, Translate(target_language=target_language))

    async def improve_many(
        self,
        texts: Sequence[str],
        tone: str = "friendly",
        target: Optional[str] = None,
        with_reasons: bool = False,
    ) -> List[Any]:
        """Rewrite ``texts``; with ``with_reasons`` returns ``ImprovementResult``s."""
        if with_reasons:
            mode: Mode = RewriteWithReason(tone=tone, target=target)
        else:
            mode = Rewrite(tone=tone, target=target)
        return await self._run_texts(texts, mode)

    async def improve_one(self, text: str, tone: str = "friendly", target: Optional[str] = None) -> str:
        results = await self.improve_many([text], tone=tone, target=target)
        return results[0]

    async def _run_texts(self, texts: Sequence[str], mode: Mode) -> List[Any]:
        items = [TextItem(id=str(index), content=text) for index, text in enumerate(texts)]
        outcome = await self.run(items, mode)
        if isinstance(mode, RewriteWithReason):
            return [
                ImprovementResult(
                    original=entry.content,
                    improved=entry.transformed_content,
                    reason=entry.reason or "",
                )
                for entry in outcome.entries.values()
            ]
        return [entry.transformed_content for entry in outcome.entries.values()]
