# chat_session_manager/providers/__init__.py
"""Adapters plugging remote services into the session capabilities."""

from chat_session_manager.providers.openai_provider import (
    OpenAICompletionBackend,
    OpenAIModerationBackend,
    create_openai_client,
)

__all__ = [
    "OpenAICompletionBackend",
    "OpenAIModerationBackend",
    "create_openai_client",
]
