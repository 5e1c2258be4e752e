# tests/conftest.py
"""
Shared pytest fixtures for chat_session_manager tests.

No test touches the network: completion and moderation backends are scripted
fakes and the tokenizer counts whitespace-separated words.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from chat_session_manager.models.client_config import ClientConfig, SessionSettings
from chat_session_manager.models.completion_request import CompletionRequest
from chat_session_manager.session_manager import ChatSession

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("chat_session_manager").setLevel(logging.DEBUG)


class WordTokenizer:
    """Deterministic tokenizer: one token per whitespace-separated word."""

    def encode(self, text: str) -> list[int]:
        return list(range(len(text.split())))

    def count_tokens(self, text: str) -> int:
        return len(self.encode(text))


class FakeUpstream:
    """Async iterator replaying a scripted list of chunks and exceptions."""

    def __init__(self, items, delay: float = 0.0):
        self._items = list(items)
        self._delay = delay
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        if not self._items:
            raise StopAsyncIteration
        await asyncio.sleep(self._delay)
        item = self._items.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class ScriptedBackend:
    """
    CompletionBackend replaying scripted results.

    ``replies`` items are returned (str) or raised (exception) one per call.
    ``streams`` items are either an exception raised when opening the stream
    or a list of chunks/exceptions replayed by a FakeUpstream.
    """

    def __init__(self, replies=None, streams=None, delay: float = 0.0, chunk_delay: float = 0.0):
        self.replies = list(replies or [])
        self.streams = list(streams or [])
        self.delay = delay
        self.chunk_delay = chunk_delay
        self.requests: list[CompletionRequest] = []
        self.upstreams: list[FakeUpstream] = []

    async def complete(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.replies.pop(0) if self.replies else "ok"
        if isinstance(item, BaseException):
            raise item
        return item

    async def stream(self, request: CompletionRequest) -> FakeUpstream:
        self.requests.append(request)
        script = self.streams.pop(0) if self.streams else ["ok"]
        if isinstance(script, BaseException):
            raise script
        upstream = FakeUpstream(script, delay=self.chunk_delay)
        self.upstreams.append(upstream)
        return upstream


class FakeModerator:
    """ModerationBackend flagging texts containing a marker word."""

    def __init__(self, marker: str = "FORBIDDEN", error: BaseException | None = None):
        self.marker = marker
        self.error = error
        self.calls: list[str] = []

    async def moderate(self, text: str) -> bool:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.marker in text


@pytest.fixture
def tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def moderator() -> FakeModerator:
    return FakeModerator()


@pytest.fixture
def make_session(backend, tokenizer, moderator):
    """Factory building a ChatSession from ClientConfig keyword arguments."""

    def _make(**config) -> ChatSession:
        config.setdefault("model", "gpt-3.5-turbo")
        settings = SessionSettings.from_config(ClientConfig(**config))
        return ChatSession(
            backend=backend,
            tokenizer=tokenizer,
            moderator=moderator,
            settings=settings,
        )

    return _make
