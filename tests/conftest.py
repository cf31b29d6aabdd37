"""Shared fixtures for TT tests."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Callable, List

import pytest

from tt.config import BackendConfig, ChunkConfig, RetryConfig
from tt.llm import BatchRequestClient
from tt.pipeline import PipelineOrchestrator


def payload_texts(kwargs: dict) -> List[str]:
    """Texts sent in a chat.completions.create call."""
    user_message = kwargs["messages"][1]["content"]
    return json.loads(user_message.split("Input:\n", 1)[1])


class FakeChatClient:
    """Stands in for AsyncOpenAI; replies are consumed in order.

    A reply may be a string, ``None`` (empty content), an exception to raise,
    or a callable receiving the request kwargs and returning one of those.
    The last reply repeats once the list is exhausted.
    """

    def __init__(self, replies: List[Any]):
        self.replies = list(replies)
        self.calls: List[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if callable(reply) and not isinstance(reply, type):
            reply = reply(kwargs)
        if isinstance(reply, BaseException):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


def echo(transform: Callable[[str], Any]):
    def reply(kwargs):
        return json.dumps([transform(text) for text in payload_texts(kwargs)], ensure_ascii=False)

    return reply


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def backend_config() -> BackendConfig:
    return BackendConfig(api_key="test-key", model="test-model")


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(backend_config, sleep):
    def factory(
        fake: Any = None,
        max_items: int = 10,
        max_tokens: int = 1500,
        max_attempts: int = 3,
        config: BackendConfig = None,
    ) -> PipelineOrchestrator:
        client = BatchRequestClient(config or backend_config, client=fake)
        return PipelineOrchestrator(
            client,
            chunk_config=ChunkConfig(max_items=max_items, max_tokens=max_tokens),
            retry_config=RetryConfig(max_attempts=max_attempts, retry_delay=0.5, chunk_delay=0.25),
            sleep=sleep,
        )

    return factory
