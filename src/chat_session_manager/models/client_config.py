# chat_session_manager/models/client_config.py
"""
User-facing configuration and the resolved settings a session runs with.

``ClientConfig`` fields default to ``None`` meaning "not given": a new session
fills them from the defaults in ``chat_session_manager.config``, a clone keeps
the source session's value.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chat_session_manager.config import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_FORWARD_TIMEOUT,
    DEFAULT_MODEL,
    DEFAULT_STREAM_BUFFER,
)
from chat_session_manager.models.budget import RetryPolicy, TokenBudgetConfig


class ClientConfig(BaseModel):
    """Optional overrides for a chat session."""

    # Credentials, only used when the session builds its own backends
    api_key: str | None = None
    api_url: str | None = None

    model: str | None = None
    api_timeout: float | None = Field(default=None, gt=0, description="Seconds per remote attempt")
    temperature: float | None = Field(default=None, ge=0, le=2)
    extra_params: dict[str, Any] | None = None

    # Memory
    limit_memory_by_token: bool | None = None
    memory_token_size: int | None = Field(default=None, ge=0)
    limit_memory_by_message: bool | None = None
    memory_message_size: int | None = Field(default=None, ge=0)
    memorize_assistant_messages: bool | None = None

    # Moderation
    moderate_prompt_message: bool | None = None
    moderate_response: bool | None = None

    # Retries
    max_retries: int | None = Field(default=None, ge=0)
    max_retry_delay: float | None = Field(default=None, ge=0, description="Seconds")

    # Streaming
    forward_timeout: float | None = Field(default=None, ge=0)
    stream_buffer_size: int | None = Field(default=None, ge=0)


class SessionSettings(BaseModel):
    """Fully resolved, immutable settings of one session."""

    model_config = ConfigDict(frozen=True)

    model: str = DEFAULT_MODEL
    api_timeout: float = Field(default=DEFAULT_API_TIMEOUT, gt=0)
    temperature: float | None = None
    extra_params: dict[str, Any] = Field(default_factory=dict)
    budget: TokenBudgetConfig = Field(default_factory=TokenBudgetConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    moderate_input: bool = False
    moderate_output: bool = False
    forward_timeout: float = Field(default=DEFAULT_FORWARD_TIMEOUT, ge=0)
    stream_buffer_size: int = Field(default=DEFAULT_STREAM_BUFFER, ge=0)

    @classmethod
    def from_config(cls, config: ClientConfig | None = None) -> SessionSettings:
        """Build settings for a new session, filling gaps with defaults."""
        return cls().merged(config or ClientConfig())

    def merged(self, config: ClientConfig) -> SessionSettings:
        """Return a copy with every field given in ``config`` applied."""
        update: dict[str, Any] = {}
        if config.model:
            update["model"] = config.model.strip()
        if config.api_timeout is not None:
            update["api_timeout"] = config.api_timeout
        if config.temperature is not None:
            update["temperature"] = config.temperature
        if config.extra_params is not None:
            update["extra_params"] = dict(config.extra_params)
        if config.moderate_prompt_message is not None:
            update["moderate_input"] = config.moderate_prompt_message
        if config.moderate_response is not None:
            update["moderate_output"] = config.moderate_response
        if config.forward_timeout is not None:
            update["forward_timeout"] = config.forward_timeout
        if config.stream_buffer_size is not None:
            update["stream_buffer_size"] = config.stream_buffer_size

        budget_update = {
            key: value
            for key, value in {
                "limit_by_token": config.limit_memory_by_token,
                "token_limit": config.memory_token_size,
                "limit_by_message_count": config.limit_memory_by_message,
                "message_count_limit": config.memory_message_size,
                "memorize_assistant_replies": config.memorize_assistant_messages,
            }.items()
            if value is not None
        }
        if budget_update:
            update["budget"] = self.budget.model_copy(update=budget_update)

        retry_update = {
            key: value
            for key, value in {
                "max_retries": config.max_retries,
                "max_delay": config.max_retry_delay,
            }.items()
            if value is not None
        }
        if retry_update:
            update["retry"] = self.retry.model_copy(update=retry_update)

        return self.model_copy(update=update)
