# chat_session_manager/exceptions.py
"""
Exception hierarchy for chat sessions.

Configuration and moderation errors are terminal and never retried.
Transport errors raised for a single attempt are retried by the session's
RetryController and only reach the caller once retries are exhausted.
"""

from __future__ import annotations

from enum import Enum


class ChatSessionError(Exception):
    """Base class for every error raised by chat_session_manager."""


class ConfigurationError(ChatSessionError):
    """Invalid or missing configuration (unknown model, missing API key...)."""


class ModelNotFound(ConfigurationError):
    """The model name is not present in the model registry."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"Unknown model: {model!r}")


class ModerationStage(str, Enum):
    """Where a moderation check rejected the exchange."""

    INPUT = "input"
    OUTPUT = "output"


class ModerationRejected(ChatSessionError):
    """Content was flagged by the moderation capability."""

    def __init__(self, stage: ModerationStage, message: str | None = None):
        self.stage = stage
        super().__init__(message or f"{stage.value} is potentially harmful")


class UserInputRejected(ModerationRejected):
    """The user's prompt was flagged."""

    def __init__(self) -> None:
        super().__init__(ModerationStage.INPUT)


class ModelOutputRejected(ModerationRejected):
    """The model's reply was flagged."""

    def __init__(self) -> None:
        super().__init__(ModerationStage.OUTPUT)


class TransientTransportError(ChatSessionError):
    """A single remote call attempt failed (network, timeout, server error)."""


class StreamTransportError(ChatSessionError):
    """The remote stream failed after it was opened."""


class InstructionTooLong(ChatSessionError):
    """The system instruction does not fit the model's instruction budget."""

    def __init__(self, tokens: int, limit: int):
        self.tokens = tokens
        self.limit = limit
        super().__init__(f"Instruction is {tokens} tokens, limit is {limit}")
