# chat_session_manager/streaming.py
"""
Consumer side of a streaming exchange.

The producer task (owned by ChatSession) pushes StreamChunk items into a
bounded queue and closes it when the exchange ends. Backpressure policy: a
text chunk that cannot be queued within the forward timeout is dropped for
the consumer but still accumulated for the transcript commit. Errors and
end-of-stream are always delivered.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from chat_session_manager.models.stream_chunk import StreamChunk

logger = logging.getLogger(__name__)

_CLOSED = object()


class ChunkStream:
    """
    Async iterator of StreamChunk items produced by a background task.

    ``maxsize`` bounds the text chunks waiting for the consumer. The queue
    keeps two extra slots for the error and end-of-stream items, so the
    producer can always finish without waiting on the consumer.
    """

    def __init__(self, maxsize: int = 0):
        self._limit = maxsize
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize + 2 if maxsize > 0 else 0)
        self._room = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._finished = False
        self.dropped = 0

    # ------------------------------------------------------------------ #
    # Producer side
    # ------------------------------------------------------------------ #

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def _has_room(self) -> bool:
        return self._limit <= 0 or self._queue.qsize() < self._limit

    async def _wait_for_room(self) -> None:
        while not self._has_room():
            self._room.clear()
            await self._room.wait()

    async def forward(self, chunk: str, timeout: float) -> bool:
        """Queue a text chunk, giving up after ``timeout`` seconds."""
        item = StreamChunk(chunk=chunk)
        if self._has_room():
            self._queue.put_nowait(item)
            return True

        if timeout > 0:
            try:
                await asyncio.wait_for(self._wait_for_room(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
            else:
                self._queue.put_nowait(item)
                return True

        self.dropped += 1
        logger.warning(f"Consumer did not accept chunk within {timeout}s; dropped ({self.dropped} so far)")
        return False

    def fail(self, error: BaseException) -> None:
        self._queue.put_nowait(StreamChunk(error=error))

    def close(self) -> None:
        self._queue.put_nowait(_CLOSED)

    # ------------------------------------------------------------------ #
    # Consumer side
    # ------------------------------------------------------------------ #

    def __aiter__(self) -> ChunkStream:
        return self

    async def __anext__(self) -> StreamChunk:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        self._room.set()
        if item is _CLOSED:
            self._finished = True
            raise StopAsyncIteration
        assert isinstance(item, StreamChunk)
        return item

    async def collect(self) -> str:
        """Read the whole stream and return its text; raise the first error."""
        parts: list[str] = []
        async for item in self:
            if item.error is not None:
                await self.wait_closed()
                raise item.error
            parts.append(item.chunk)
        return "".join(parts)

    async def wait_closed(self) -> None:
        """Drain remaining items and wait for the producer task to finish."""
        async for _ in self:
            pass
        if self._task is not None:
            await self._task

    async def aclose(self) -> None:
        """Stop consuming; cancels the producer if it is still running."""
        self._finished = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
