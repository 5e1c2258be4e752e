# chat_session_manager/models/budget.py
"""Trimming and retry policies."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenBudgetConfig(BaseModel):
    """
    How much of the transcript is remembered between exchanges.

    When both limits are enabled only the token limit is applied.
    """

    model_config = ConfigDict(frozen=True)

    limit_by_token: bool = False
    token_limit: int = Field(default=0, ge=0)
    limit_by_message_count: bool = False
    message_count_limit: int = Field(default=0, ge=0)
    memorize_assistant_replies: bool = True


class RetryPolicy(BaseModel):
    """Bounded retries; ``max_delay`` is in seconds and 0 disables sleeping."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=0, ge=0)
    max_delay: float = Field(default=0.0, ge=0)
