# chat_session_manager/models/message.py
"""A single transcript message."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict

from chat_session_manager.base_models import DictCompatModel
from chat_session_manager.models.message_role import MessageRole


class Message(DictCompatModel):
    """One message of a conversation.

    Messages are frozen; the transcript replaces the system message
    instead of mutating it.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    role: MessageRole
    content: str
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str, name: str | None = None) -> Message:
        return cls(role=MessageRole.USER, content=content, name=name)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content)

    @property
    def is_system(self) -> bool:
        return self.role == MessageRole.SYSTEM

    def to_dict(self) -> dict[str, Any]:
        """Wire form used by chat completion APIs."""
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.name:
            data["name"] = self.name
        return data
