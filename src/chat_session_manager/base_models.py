# chat_session_manager/base_models.py
"""Base model with dict-style access."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DictCompatModel(BaseModel):
    """Base for models that support dict-style access.

    Allows ``obj["key"]`` and ``"key" in obj`` so messages and stats can be
    handed to code that expects the plain ``{"role": ..., "content": ...}``
    dicts used by chat completion APIs.
    """

    def __getitem__(self, key: str) -> Any:
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in type(self).model_fields
        return False

    def get(self, key: str, default: Any = None) -> Any:
        if key in self:
            return getattr(self, key)
        return default

    def __eq__(self, other: object) -> bool:
        if isinstance(other, dict):
            return self.model_dump(exclude_none=True) == other
        return super().__eq__(other)
