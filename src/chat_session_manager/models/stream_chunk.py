# chat_session_manager/models/stream_chunk.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StreamChunk(BaseModel):
    """One item delivered to a stream consumer: a text fragment or an error."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    chunk: str = ""
    error: BaseException | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None
