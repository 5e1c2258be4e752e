# chat_session_manager/models/session_stats.py
"""Session statistics model."""

from __future__ import annotations

from chat_session_manager.base_models import DictCompatModel


class SessionStats(DictCompatModel):
    """Snapshot of a chat session."""

    session_id: str = ""
    model: str = ""
    has_instruction: bool = False
    total_messages: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    transcript_tokens: int = 0
    total_tokens: int = 0
    exchanges: int = 0
    failed_exchanges: int = 0
    created_at: str = ""
    last_update: str = ""
