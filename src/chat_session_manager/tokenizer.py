# chat_session_manager/tokenizer.py
"""tiktoken-backed tokenizer."""

from __future__ import annotations

import logging

import tiktoken

from chat_session_manager.config import DEFAULT_TOKEN_ENCODING

logger = logging.getLogger(__name__)


class TiktokenTokenizer:
    """
    Counts tokens with a tiktoken encoding.

    tiktoken encodings are immutable and thread-safe, so a single instance
    can be shared by a session and all of its clones.
    """

    def __init__(self, encoding_name: str = DEFAULT_TOKEN_ENCODING):
        self._encoding_name = encoding_name
        self._encoding = tiktoken.get_encoding(encoding_name)
        logger.debug(f"Loaded tiktoken encoding {encoding_name}")

    @classmethod
    def for_model(cls, model: str) -> TiktokenTokenizer:
        """Use the encoding tiktoken associates with ``model``."""
        try:
            encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            logger.warning(f"No tiktoken encoding registered for {model}, using {DEFAULT_TOKEN_ENCODING}")
            return cls()
        return cls(encoding.name)

    @property
    def encoding_name(self) -> str:
        return self._encoding_name

    def encode(self, text: str) -> list[int]:
        if not text:
            return []
        return self._encoding.encode(text, disallowed_special=())

    def count_tokens(self, text: str) -> int:
        return len(self.encode(text))
