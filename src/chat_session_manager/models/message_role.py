# chat_session_manager/models/message_role.py
from __future__ import annotations

from enum import Enum


class MessageRole(str, Enum):
    """Role of a transcript message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
