"""Backend requests for TT chunks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from .config import BackendConfig
from .errors import BackendUnavailable, EmptyResponse, MissingCredential
from .models import BackendRequest, Mode
from .prompt import build_request
from .sanitize import extract_json_array, validate_shape

logger = logging.getLogger(__name__)


def create_openai_client(config: BackendConfig) -> Optional[AsyncOpenAI]:
    if not config.has_credential:
        return None
    return AsyncOpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.request_timeout,
        max_retries=0,
    )


class BatchRequestClient:
    """Sends one chunk of texts to the model and validates the reply.

    ``client`` is anything exposing ``chat.completions.create`` as a
    coroutine; by default an ``AsyncOpenAI`` built from ``config``.
    Retries are left to the caller, so the SDK's own retries are off.
    """

    def __init__(self, config: BackendConfig, client: Any = None) -> None:
        self.config = config
        self._client = client if client is not None else create_openai_client(config)

    @property
    def available(self) -> bool:
        return self._client is not None

    async def request(self, texts: Sequence[str], mode: Mode) -> List[Any]:
        if not self.available:
            raise MissingCredential("No backend credential configured (OPENAI_API_KEY)")

        backend_request = build_request(texts, mode, self.config)
        logger.debug("Sending %d texts to %s (%s)", len(texts), self.config.model, mode.name)
        raw_text = await self._send(backend_request)
        if not raw_text or not raw_text.strip():
            raise EmptyResponse("Model returned an empty response")

        parsed = extract_json_array(raw_text)
        return validate_shape(parsed, len(texts), mode)

    async def _send(self, backend_request: BackendRequest) -> Optional[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": backend_request.system_instruction},
                    {"role": "user", "content": backend_request.user_payload},
                ],
                temperature=backend_request.temperature,
                max_tokens=backend_request.max_output_tokens,
                timeout=self.config.request_timeout,
            )
        except (openai.APIError, asyncio.TimeoutError, OSError) as exc:
            raise BackendUnavailable(f"{type(exc).__name__}: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)
