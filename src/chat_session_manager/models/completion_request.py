# chat_session_manager/models/completion_request.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CompletionRequest(BaseModel):
    """Request handed to a CompletionBackend.

    ``extra_params`` (penalties, stop sequences, top_p, max_tokens...) is
    passed through untouched.
    """

    model: str
    messages: list[dict[str, Any]]
    stream: bool = False
    temperature: float | None = None
    extra_params: dict[str, Any] = Field(default_factory=dict)

    def to_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {**self.extra_params, "model": self.model, "messages": self.messages}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.stream:
            kwargs["stream"] = True
        return kwargs
