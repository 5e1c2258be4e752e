# tests/test_openai_provider.py
"""Tests for the OpenAI adapters using mocked clients."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chat_session_manager.exceptions import ConfigurationError
from chat_session_manager.models.completion_request import CompletionRequest
from chat_session_manager.providers.openai_provider import (
    MODERATION_MODEL,
    OpenAICompletionBackend,
    OpenAIModerationBackend,
    create_openai_client,
)


def _request(**kwargs) -> CompletionRequest:
    return CompletionRequest(model="gpt-4", messages=[{"role": "user", "content": "hi"}], **kwargs)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _event(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class _FakeStream:
    def __init__(self, events):
        self._events = list(events)
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._events:
            raise StopAsyncIteration
        return self._events.pop(0)


def _client(create_result=None, moderation_result=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=create_result)
    client.moderations.create = AsyncMock(return_value=moderation_result)
    return client


class TestClientFactory:
    def test_missing_key(self):
        with patch("chat_session_manager.providers.openai_provider.OPENAI_API_KEY", ""):
            with pytest.raises(ConfigurationError):
                create_openai_client()

    def test_sdk_retries_disabled(self):
        client = create_openai_client(api_key="sk-test", base_url="http://localhost:1234/v1")
        assert client.max_retries == 0
        assert str(client.base_url).startswith("http://localhost:1234/v1")


class TestCompletionBackend:
    @pytest.mark.asyncio
    async def test_complete(self):
        client = _client(create_result=_completion("hello"))
        backend = OpenAICompletionBackend(client)

        assert await backend.complete(_request(temperature=0.3, extra_params={"top_p": 0.5})) == "hello"
        client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0.3,
            top_p=0.5,
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [_completion(None), SimpleNamespace(choices=[])])
    async def test_complete_empty(self, result):
        backend = OpenAICompletionBackend(_client(create_result=result))
        assert await backend.complete(_request()) == ""

    @pytest.mark.asyncio
    async def test_stream_yields_content_and_closes(self):
        upstream = _FakeStream([_event("Hel"), _event(None), SimpleNamespace(choices=[]), _event("lo")])
        client = _client(create_result=upstream)
        backend = OpenAICompletionBackend(client)

        chunks = [chunk async for chunk in await backend.stream(_request())]

        assert chunks == ["Hel", "lo"]
        assert client.chat.completions.create.await_args.kwargs["stream"] is True
        upstream.close.assert_awaited_once()


class TestModerationBackend:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("flagged", [True, False])
    async def test_moderate(self, flagged):
        result = SimpleNamespace(results=[SimpleNamespace(flagged=flagged)])
        client = _client(moderation_result=result)

        assert await OpenAIModerationBackend(client).moderate("text") is flagged
        client.moderations.create.assert_awaited_once_with(input="text", model=MODERATION_MODEL)

    @pytest.mark.asyncio
    async def test_no_results_is_not_flagged(self):
        client = _client(moderation_result=SimpleNamespace(results=[]))
        assert await OpenAIModerationBackend(client).moderate("text") is False

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        client = _client()
        client.moderations.create.side_effect = RuntimeError("down")
        with pytest.raises(RuntimeError):
            await OpenAIModerationBackend(client).moderate("text")
