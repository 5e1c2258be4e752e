# chat_session_manager/capabilities.py
"""
Collaborators a ChatSession depends on.

Sessions never talk to the network or run a tokenizer themselves; they are
handed objects satisfying these protocols. ``providers.openai_provider`` and
``tokenizer`` ship concrete implementations.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from chat_session_manager.models.completion_request import CompletionRequest


@runtime_checkable
class Tokenizer(Protocol):
    def count_tokens(self, text: str) -> int: ...

    def encode(self, text: str) -> list[int]: ...


@runtime_checkable
class CompletionBackend(Protocol):
    async def complete(self, request: CompletionRequest) -> str:
        """Return the reply text of a blocking completion."""
        ...

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Open a streaming completion and return an iterator of text chunks."""
        ...


@runtime_checkable
class ModerationBackend(Protocol):
    async def moderate(self, text: str) -> bool:
        """Return True when ``text`` is flagged; raise on capability failure."""
        ...
