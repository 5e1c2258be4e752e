# chat_session_manager/transcript.py
"""
Transcript - the ordered conversation history of a chat session.

A conversation is formatted with an optional system message first, followed by
user and assistant messages in the order they happened. The system message,
when present, always sits at position 0 and is never removed by trimming.

Trimming policies:
- Token budget: drop the oldest non-system messages until the serialized
  history fits the token limit.
- Message count: keep only the most recent N non-system messages.
- Safety trim: after either policy, force the history under the model's
  context length so a request is never rejected for size alone.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from typing import Any

from chat_session_manager.capabilities import Tokenizer
from chat_session_manager.exceptions import InstructionTooLong
from chat_session_manager.models.budget import TokenBudgetConfig
from chat_session_manager.models.message import Message
from chat_session_manager.models.message_role import MessageRole
from chat_session_manager.models.model_spec import ModelSpec

logger = logging.getLogger(__name__)

# Rough inverse of the tokenizer used when cutting an instruction down
CHARS_PER_TOKEN = 3


class Transcript:
    """Ordered list of messages with at most one leading system message."""

    def __init__(self, tokenizer: Tokenizer):
        self._tokenizer = tokenizer
        self._messages: list[Message] = []

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __repr__(self) -> str:
        return f"Transcript(messages={len(self._messages)}, instruction={self.has_instruction})"

    @property
    def has_instruction(self) -> bool:
        return bool(self._messages) and self._messages[0].is_system

    @property
    def instruction(self) -> str | None:
        """Content of the system message, if any."""
        if self.has_instruction:
            return self._messages[0].content
        return None

    @property
    def _offset(self) -> int:
        # index of the first non-system message
        return 1 if self.has_instruction else 0

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def conversation(self) -> list[Message]:
        """Every message except the system message."""
        return self._messages[self._offset :]

    def serialize(self) -> str:
        """Canonical string form of the non-system messages."""
        return json.dumps([m.to_dict() for m in self.conversation()], ensure_ascii=False)

    def count_tokens(self) -> int:
        """Tokens in the serialized non-system history."""
        if not self.conversation():
            return 0
        return self._tokenizer.count_tokens(self.serialize())

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def set_instruction(self, text: str, model: ModelSpec | None = None) -> None:
        """
        Insert or replace the system message.

        When ``model`` is given the instruction must fit
        ``model.max_instruction_length`` or InstructionTooLong is raised.
        """
        if model is not None:
            tokens = self._tokenizer.count_tokens(text)
            if tokens > model.max_instruction_length:
                raise InstructionTooLong(tokens, model.max_instruction_length)
        self._put_instruction(text)

    def set_instruction_with_truncation(self, text: str, model: ModelSpec) -> str:
        """
        Insert or replace the system message, cutting it to fit the model.

        Returns the instruction actually stored.
        """
        limit = model.max_instruction_length
        tokens = self._tokenizer.count_tokens(text)
        while tokens > limit:
            excess = tokens - limit
            text = text[: max(0, len(text) - excess * CHARS_PER_TOKEN)]
            tokens = self._tokenizer.count_tokens(text)
            logger.debug(f"Truncated instruction to {len(text)} chars ({tokens} tokens, limit {limit})")
        self._put_instruction(text)
        return text

    def _put_instruction(self, text: str) -> None:
        message = Message.system(text)
        if self.has_instruction:
            self._messages[0] = message
        else:
            self._messages.insert(0, message)

    def append_user(self, text: str, name: str | None = None) -> Message:
        message = Message.user(text, name=name)
        self._messages.append(message)
        return message

    def append_assistant(self, text: str) -> Message:
        message = Message.assistant(text)
        self._messages.append(message)
        return message

    def clear(self, keep_instruction: bool = True) -> None:
        """Forget the conversation, optionally keeping the system message."""
        if keep_instruction and self.has_instruction:
            self._messages = self._messages[:1]
        else:
            self._messages = []

    # ------------------------------------------------------------------ #
    # Trimming
    # ------------------------------------------------------------------ #

    def trim(self, budget: TokenBudgetConfig, model: ModelSpec) -> int:
        """
        Apply the configured memory policy, then the context-length safety trim.

        The token policy has priority: when it is enabled the message-count
        policy is skipped. Returns the number of messages removed.
        """
        before = len(self._messages)
        if budget.limit_by_token:
            self.trim_to_token_limit(budget.token_limit)
        elif budget.limit_by_message_count:
            self.trim_to_message_limit(budget.message_count_limit)

        self.trim_to_token_limit(model.context_length)

        removed = before - len(self._messages)
        if removed:
            logger.debug(f"Trimmed {removed} messages, {len(self._messages)} remain")
        return removed

    def trim_to_token_limit(self, limit: int) -> None:
        """Drop the oldest non-system messages until the history fits ``limit``."""
        # The last remaining message is dropped too when it alone exceeds the
        # limit; the loop ends once only the system message is left.
        while self.conversation() and self.count_tokens() > limit:
            del self._messages[self._offset]

    def trim_to_message_limit(self, limit: int) -> None:
        """Keep only the most recent ``limit`` non-system messages."""
        conversation = self.conversation()
        if len(conversation) <= limit:
            return
        kept = conversation[len(conversation) - limit :]
        self._messages = self._messages[: self._offset] + kept

    # ------------------------------------------------------------------ #
    # Import / export
    # ------------------------------------------------------------------ #

    def export(self, include_system: bool = True) -> list[Message]:
        """Copy of the history, with or without the system message."""
        if include_system:
            return list(self._messages)
        return list(self.conversation())

    def import_messages(
        self,
        messages: Iterable[Message | dict[str, Any]],
        budget: TokenBudgetConfig,
        model: ModelSpec,
    ) -> None:
        """
        Append ``messages`` and trim.

        A system message in the input replaces the instruction rather than
        being appended, so the transcript keeps a single leading system message.
        """
        for item in messages:
            message = item if isinstance(item, Message) else Message.model_validate(item)
            if message.role == MessageRole.SYSTEM:
                self._put_instruction(message.content)
            else:
                self._messages.append(message)
        self.trim(budget, model)
