# tests/test_base_models.py
"""Tests for dict-style access on messages and session stats."""

import pytest

from chat_session_manager.models.message import Message
from chat_session_manager.models.session_stats import SessionStats


class TestMessageAsWireDict:
    """Messages stand in for the plain dicts chat completion APIs use."""

    def test_equals_wire_dict(self):
        assert Message.user("hi") == {"role": "user", "content": "hi"}
        assert Message.system("rules") == {"role": "system", "content": "rules"}

    def test_name_only_compared_when_set(self):
        named = Message.user("hi", name="alice")
        assert named != {"role": "user", "content": "hi"}
        assert named == {"role": "user", "content": "hi", "name": "alice"}

    def test_different_content_not_equal(self):
        assert Message.assistant("yes") != {"role": "assistant", "content": "no"}

    def test_round_trips_through_to_dict(self):
        message = Message.user("hi", name="bob")
        assert message == message.to_dict()

    def test_bracket_access(self):
        message = Message.assistant("hello")
        assert message["role"] == "assistant"
        assert message["content"] == "hello"
        assert message["name"] is None

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            Message.user("hi")["tool_calls"]


class TestSessionStatsAccess:
    def test_getitem_and_get(self):
        stats = SessionStats(session_id="abc", total_tokens=42, exchanges=2)
        assert stats["total_tokens"] == 42
        assert stats.get("exchanges") == 2
        assert stats.get("cost", 0.0) == 0.0

    def test_contains(self):
        stats = SessionStats()
        assert "failed_exchanges" in stats
        assert "cost" not in stats
        assert 42 not in stats

    def test_equality(self):
        assert SessionStats(session_id="a") == SessionStats(session_id="a")
        assert SessionStats(session_id="a") != SessionStats(session_id="b")
