# chat_session_manager/retry.py
"""
Bounded retries with capped exponential backoff and jitter.

The controller knows nothing about what it retries. Callers decide which
exceptions are worth another attempt (``retry_on``) and may observe each
failure through ``on_retry``.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import threading
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from chat_session_manager.models.budget import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Shared by every controller in the process; callers take the lock per draw.
_rng = random.SystemRandom()
_rng_lock = threading.Lock()


def compute_backoff(attempt: int, max_delay: float) -> float:
    """
    Seconds to sleep after the failed attempt ``attempt`` (0-based).

    ``base = min(2**attempt, max_delay)``; the delay is centered on
    ``base / 2`` plus a uniform jitter in ``[0, base / 2]``, capped at
    ``max_delay``.
    """
    if max_delay <= 0:
        return 0.0

    # 2**attempt overflows a float long before it matters; past log2(max_delay) the cap wins
    if attempt >= math.log2(max_delay):
        base = float(max_delay)
    else:
        base = min(2.0**attempt, max_delay)
    center = base / 2
    with _rng_lock:
        jitter = _rng.uniform(0, center)
    return min(abs(center + jitter), max_delay)


async def _sleep(delay: float) -> None:
    if delay > 0:
        await asyncio.sleep(delay)


class RetryController:
    """Runs an async zero-argument operation up to ``max_retries + 1`` times."""

    def __init__(
        self,
        policy: RetryPolicy,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ):
        self.policy = policy
        self.retry_on = retry_on

    @property
    def max_attempts(self) -> int:
        return self.policy.max_retries + 1

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """
        Await ``operation`` until it succeeds or attempts run out.

        Exceptions outside ``retry_on`` propagate immediately. After the last
        attempt the final exception is re-raised. ``on_retry(attempt, exc)`` is
        called for every failure that will be retried.
        """

        def before_sleep(retry_state: RetryCallState) -> None:
            if on_retry is not None and retry_state.outcome is not None:
                on_retry(retry_state.attempt_number - 1, retry_state.outcome.exception())

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep,
            sleep=_sleep,
            reraise=True,
        )
        return await retrying(operation)

    def _wait(self, retry_state: RetryCallState) -> float:
        attempt = retry_state.attempt_number - 1
        delay = compute_backoff(attempt, self.policy.max_delay)
        if delay > 0:
            logger.debug(f"Backing off {delay:.2f}s before attempt {attempt + 2}/{self.max_attempts}")
        return delay
