# chat_session_manager/models/__init__.py
"""
Core models for the chat session manager.
"""

from chat_session_manager.models.budget import RetryPolicy, TokenBudgetConfig
from chat_session_manager.models.client_config import ClientConfig, SessionSettings
from chat_session_manager.models.completion_request import CompletionRequest
from chat_session_manager.models.message import Message
from chat_session_manager.models.message_role import MessageRole
from chat_session_manager.models.model_spec import (
    INSTRUCTION_TOKEN_BUFFER,
    ModelFamily,
    ModelSpec,
)
from chat_session_manager.models.session_stats import SessionStats
from chat_session_manager.models.stream_chunk import StreamChunk

__all__ = [
    "ClientConfig",
    "CompletionRequest",
    "INSTRUCTION_TOKEN_BUFFER",
    "Message",
    "MessageRole",
    "ModelFamily",
    "ModelSpec",
    "RetryPolicy",
    "SessionSettings",
    "SessionStats",
    "StreamChunk",
    "TokenBudgetConfig",
]
