# chat_session_manager/__init__.py
"""
chat_session_manager - bounded conversational sessions for LLM completion APIs.

Quick start:
    from chat_session_manager import ChatSession, ClientConfig

    session = ChatSession.create(ClientConfig(model="gpt-4", limit_memory_by_token=True, memory_token_size=2000))
    session.set_instruction("You are a helpful assistant.")
    reply = await session.prompt("Hello!")
"""

from chat_session_manager.exceptions import (
    ChatSessionError,
    ConfigurationError,
    InstructionTooLong,
    ModelNotFound,
    ModelOutputRejected,
    ModerationRejected,
    ModerationStage,
    StreamTransportError,
    TransientTransportError,
    UserInputRejected,
)
from chat_session_manager.model_registry import available_models, is_known_model, lookup_model
from chat_session_manager.models import (
    ClientConfig,
    CompletionRequest,
    Message,
    MessageRole,
    ModelFamily,
    ModelSpec,
    RetryPolicy,
    SessionSettings,
    SessionStats,
    StreamChunk,
    TokenBudgetConfig,
)
from chat_session_manager.retry import RetryController, compute_backoff
from chat_session_manager.session_manager import ChatSession, ExchangeState
from chat_session_manager.streaming import ChunkStream
from chat_session_manager.token_accountant import TokenAccountant
from chat_session_manager.transcript import Transcript

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__


__all__ = [
    # Session
    "ChatSession",
    "ExchangeState",
    "ChunkStream",
    # Building blocks
    "RetryController",
    "TokenAccountant",
    "Transcript",
    "available_models",
    "compute_backoff",
    "is_known_model",
    "lookup_model",
    # Models
    "ClientConfig",
    "CompletionRequest",
    "Message",
    "MessageRole",
    "ModelFamily",
    "ModelSpec",
    "RetryPolicy",
    "SessionSettings",
    "SessionStats",
    "StreamChunk",
    "TokenBudgetConfig",
    # Errors
    "ChatSessionError",
    "ConfigurationError",
    "InstructionTooLong",
    "ModelNotFound",
    "ModelOutputRejected",
    "ModerationRejected",
    "ModerationStage",
    "StreamTransportError",
    "TransientTransportError",
    "UserInputRejected",
    # Version
    "__version__",
    "get_version",
]
