# chat_session_manager/providers/openai_provider.py
"""
OpenAI adapters for the completion and moderation capabilities.

Thin pass-through wrappers around ``openai.AsyncOpenAI``: they build no
retries, timeouts or history logic of their own; ChatSession owns all of that.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from chat_session_manager.config import OPENAI_API_KEY, OPENAI_BASE_URL
from chat_session_manager.exceptions import ConfigurationError
from chat_session_manager.models.completion_request import CompletionRequest

logger = logging.getLogger(__name__)

MODERATION_MODEL = "omni-moderation-latest"


def create_openai_client(api_key: str | None = None, base_url: str | None = None) -> AsyncOpenAI:
    """Build an AsyncOpenAI client; an API key is mandatory."""
    api_key = api_key or OPENAI_API_KEY
    if not api_key:
        raise ConfigurationError("An OpenAI API key must be provided (api_key or OPENAI_API_KEY)")
    # The SDK's own retries are disabled; ChatSession retries with its policy.
    return AsyncOpenAI(api_key=api_key, base_url=base_url or OPENAI_BASE_URL, max_retries=0)


class OpenAICompletionBackend:
    """CompletionBackend backed by the chat completions endpoint."""

    def __init__(self, client: AsyncOpenAI):
        self._client = client

    async def complete(self, request: CompletionRequest) -> str:
        response = await self._client.chat.completions.create(**request.model_copy(update={"stream": False}).to_kwargs())
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        response = await self._client.chat.completions.create(**request.model_copy(update={"stream": True}).to_kwargs())
        return self._iter_chunks(response)

    async def _iter_chunks(self, response) -> AsyncIterator[str]:
        try:
            async for event in response:
                if not event.choices:
                    continue
                content = event.choices[0].delta.content
                if content:
                    yield content
        finally:
            await response.close()


class OpenAIModerationBackend:
    """ModerationBackend backed by the moderations endpoint."""

    def __init__(self, client: AsyncOpenAI, model: str = MODERATION_MODEL):
        self._client = client
        self._model = model

    async def moderate(self, text: str) -> bool:
        result = await self._client.moderations.create(input=text, model=self._model)
        flagged = bool(result.results and result.results[0].flagged)
        if flagged:
            logger.info("Moderation flagged content")
        return flagged
