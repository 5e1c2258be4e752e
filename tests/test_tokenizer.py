# tests/test_tokenizer.py
"""Tests for TiktokenTokenizer with tiktoken patched out."""

from unittest.mock import MagicMock, patch

from chat_session_manager.capabilities import Tokenizer
from chat_session_manager.config import DEFAULT_TOKEN_ENCODING
from chat_session_manager.tokenizer import TiktokenTokenizer


def _encoding(name: str = "cl100k_base") -> MagicMock:
    encoding = MagicMock()
    encoding.name = name
    encoding.encode.side_effect = lambda text, disallowed_special=(): list(range(len(text)))
    return encoding


class TestTiktokenTokenizer:
    def test_counts_with_encoding(self):
        with patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=_encoding()) as get:
            tokenizer = TiktokenTokenizer()
        get.assert_called_once_with(DEFAULT_TOKEN_ENCODING)
        assert tokenizer.count_tokens("abcd") == 4
        assert tokenizer.encode("ab") == [0, 1]

    def test_empty_text_is_zero_tokens(self):
        encoding = _encoding()
        with patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=encoding):
            tokenizer = TiktokenTokenizer()
        assert tokenizer.count_tokens("") == 0
        encoding.encode.assert_not_called()

    def test_special_tokens_are_plain_text(self):
        encoding = _encoding()
        with patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=encoding):
            TiktokenTokenizer().encode("<|endoftext|>")
        encoding.encode.assert_called_once_with("<|endoftext|>", disallowed_special=())

    def test_for_model(self):
        with (
            patch("chat_session_manager.tokenizer.tiktoken.encoding_for_model", return_value=_encoding("o200k_base")),
            patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=_encoding("o200k_base")) as get,
        ):
            tokenizer = TiktokenTokenizer.for_model("gpt-4o")
        get.assert_called_once_with("o200k_base")
        assert tokenizer.encoding_name == "o200k_base"

    def test_for_unknown_model_falls_back(self):
        with (
            patch("chat_session_manager.tokenizer.tiktoken.encoding_for_model", side_effect=KeyError("x")),
            patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=_encoding()),
        ):
            tokenizer = TiktokenTokenizer.for_model("mystery-model")
        assert tokenizer.encoding_name == DEFAULT_TOKEN_ENCODING

    def test_satisfies_protocol(self):
        with patch("chat_session_manager.tokenizer.tiktoken.get_encoding", return_value=_encoding()):
            assert isinstance(TiktokenTokenizer(), Tokenizer)
