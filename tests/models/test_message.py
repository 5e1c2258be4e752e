import pytest
from pydantic import ValidationError

from chat_session_manager.models.message import Message
from chat_session_manager.models.message_role import MessageRole
from chat_session_manager.models.stream_chunk import StreamChunk


def test_factories_set_roles():
    assert Message.system("s").role == MessageRole.SYSTEM
    assert Message.user("u").role == MessageRole.USER
    assert Message.assistant("a").role == MessageRole.ASSISTANT
    assert Message.system("s").is_system
    assert not Message.user("u").is_system


def test_to_dict_wire_form():
    assert Message.user("hi").to_dict() == {"role": "user", "content": "hi"}
    assert Message.user("hi", name="bob").to_dict() == {"role": "user", "content": "hi", "name": "bob"}


def test_dict_compat_access():
    message = Message.assistant("hello")
    assert message["content"] == "hello"
    assert message["role"] == "assistant"
    assert "name" in message
    assert message == {"role": "assistant", "content": "hello"}


def test_validate_from_dict():
    message = Message.model_validate({"role": "user", "content": "hi"})
    assert message == Message.user("hi")


def test_invalid_role_rejected():
    with pytest.raises(ValidationError):
        Message.model_validate({"role": "tool", "content": "x"})


def test_messages_are_frozen_and_hashable():
    message = Message.user("hi")
    with pytest.raises(ValidationError):
        message.content = "changed"
    assert len({Message.user("hi"), Message.user("hi")}) == 1


def test_stream_chunk():
    assert not StreamChunk(chunk="abc").is_error
    error = RuntimeError("boom")
    item = StreamChunk(error=error)
    assert item.is_error
    assert item.error is error
    assert item.chunk == ""
