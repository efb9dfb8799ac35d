"""Bounded exponential-backoff retry for non-streaming calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from evergreen_ai.errors import GenerationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[object]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000

    def delay_ms(self, attempt: int, error: GenerationError) -> int:
        delay = self.base_delay_ms * (2**attempt)
        if error.retry_after:
            delay = int(error.retry_after * 1000)
        return max(0, min(delay, self.max_delay_ms))


@dataclass(slots=True)
class RetryState:
    attempt: int = 0
    delay_ms: int = 0


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds, fails non-retryably, or retries run out.

    Only GenerationError with ``retryable=True`` is retried; any other
    exception propagates on the first attempt.
    """
    state = RetryState()
    while True:
        try:
            return await operation()
        except GenerationError as exc:
            if not exc.retryable or state.attempt >= policy.max_retries:
                raise
            state.delay_ms = policy.delay_ms(state.attempt, exc)
            state.attempt += 1
            logger.info(
                "retrying generation request",
                extra={
                    "attempt": state.attempt,
                    "max_retries": policy.max_retries,
                    "delay_ms": state.delay_ms,
                    "error_kind": exc.kind.value,
                },
            )
            await sleep(state.delay_ms / 1000)
