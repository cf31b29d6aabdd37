"""Bounded retries with placeholder fallback for TT chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Sequence

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from .config import RetryConfig
from .errors import TransformError
from .models import ChunkRun

logger = logging.getLogger(__name__)

Operation = Callable[[Sequence[str]], Awaitable[List[Any]]]
Fallback = Callable[[Sequence[str]], List[Any]]


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TransformError) and exc.retryable


class RetryDriver:
    """Runs a chunk request until it succeeds or attempts run out.

    ``execute`` never raises for ``TransformError``: after the last failed
    attempt, or straight away for a non-retryable failure such as a missing
    credential, it returns ``fallback(texts)`` marked as degraded. Any other
    exception is not retried and propagates.
    """

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._sleep = sleep

    def _retrying(self, label: str, max_attempts: int) -> AsyncRetrying:
        def log_failure(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception()
            logger.warning(
                "%s attempt %d/%d failed: %s: %s",
                label,
                retry_state.attempt_number,
                max_attempts,
                type(exc).__name__,
                exc,
            )

        return AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(self.config.retry_delay),
            retry=retry_if_exception(is_retryable),
            sleep=self._sleep,
            after=log_failure,
            reraise=True,
        )

    async def execute(
        self,
        chunk_index: int,
        total_chunks: int,
        texts: Sequence[str],
        operation: Operation,
        fallback: Fallback,
    ) -> ChunkRun:
        label = f"chunk {chunk_index + 1}/{total_chunks}"
        max_attempts = max(1, self.config.max_attempts)
        attempts = 0

        try:
            async for attempt in self._retrying(label, max_attempts):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    results = await operation(texts)
                logger.info("%s succeeded on attempt %d/%d", label, attempts, max_attempts)
                return ChunkRun(results=list(results), attempts=attempts)
        except TransformError as exc:
            if not exc.retryable:
                # Nothing was sent; the attempt does not count.
                attempts -= 1
                logger.warning("%s skipped: %s", label, exc)
            logger.warning("%s falling back to placeholder output", label)
            return ChunkRun(
                results=fallback(texts),
                attempts=attempts,
                degraded=True,
                error=f"{type(exc).__name__}: {exc}",
            )
