# chat_session_manager/token_accountant.py
"""
Token accounting for chat transcripts.

After every completed exchange the whole transcript is re-measured and the
result added to a running total, following the OpenAI cookbook recipe:
https://github.com/openai/openai-cookbook/blob/main/examples/How_to_count_tokens_with_tiktoken.ipynb

Accounting is best effort: an unrecognized model family is logged and skipped,
never raised.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from chat_session_manager.capabilities import Tokenizer
from chat_session_manager.models.message import Message
from chat_session_manager.models.model_spec import ModelFamily

logger = logging.getLogger(__name__)

# every reply is primed with <|start|>assistant<|message|>
REPLY_PRIMING_TOKENS = 3


class MessageOverhead(BaseModel):
    """Framing tokens added around each message."""

    model_config = ConfigDict(frozen=True)

    tokens_per_message: int
    tokens_per_name: int


FAMILY_OVERHEAD: dict[ModelFamily, MessageOverhead] = {
    ModelFamily.GPT35: MessageOverhead(tokens_per_message=3, tokens_per_name=1),
    ModelFamily.GPT4: MessageOverhead(tokens_per_message=3, tokens_per_name=1),
}


class TokenAccountant:
    """Computes transcript cost and keeps the session's consumption counter."""

    def __init__(self, tokenizer: Tokenizer):
        self._tokenizer = tokenizer
        self._total = 0
        self._lock = threading.Lock()

    @property
    def total(self) -> int:
        """Total tokens billed so far. Safe to read from any thread."""
        with self._lock:
            return self._total

    def count(self, messages: Iterable[Message], family: ModelFamily) -> int | None:
        """Token cost of ``messages`` for ``family``, or None when unknown."""
        overhead = FAMILY_OVERHEAD.get(family)
        if overhead is None:
            return None

        num_tokens = 0
        for message in messages:
            num_tokens += overhead.tokens_per_message
            num_tokens += len(self._tokenizer.encode(message.content))
            num_tokens += len(self._tokenizer.encode(message.role.value))
            if message.name:
                num_tokens += len(self._tokenizer.encode(message.name))
                num_tokens += overhead.tokens_per_name
        num_tokens += REPLY_PRIMING_TOKENS
        return num_tokens

    def bill(self, messages: Iterable[Message], family: ModelFamily) -> int:
        """Add the cost of ``messages`` to the total and return it.

        Returns 0 (and bills nothing) when the family has no overhead table.
        """
        num_tokens = self.count(messages, family)
        if num_tokens is None:
            logger.warning(f"Token accounting is not implemented for model family {family.value!r}; skipping")
            return 0

        with self._lock:
            self._total += num_tokens
        logger.debug(f"Billed {num_tokens} tokens")
        return num_tokens
