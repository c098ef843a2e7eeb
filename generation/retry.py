"""
Retry-with-backoff helper for async calls to the generation service.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Tuple, Type, TypeVar

T = TypeVar("T")

log = logging.getLogger("generation.retry")


@dataclass(frozen=True)
class RetryPolicy:
    """max_attempts calls in total; waits base_delay, base_delay*multiplier, ... between them."""
    max_attempts: int = int(os.getenv("MCQ_MAX_ATTEMPTS", "3"))
    base_delay: float = float(os.getenv("MCQ_BASE_DELAY", "2.0"))
    multiplier: float = 2.0

    def delays(self) -> List[float]:
        """Sleep durations between consecutive attempts (len = max_attempts - 1)."""
        return [self.base_delay * (self.multiplier ** i) for i in range(max(self.max_attempts - 1, 0))]


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RetryPolicy(),
    *,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "call",
) -> T:
    """
    Await fn() until it succeeds or the policy runs out of attempts.
    Exceptions outside retry_on propagate immediately; the last retryable one is re-raised.
    """
    if policy.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delays = policy.delays()
    for attempt in range(policy.max_attempts):
        try:
            return await fn()
        except retry_on as e:
            if attempt == policy.max_attempts - 1:
                log.warning(f"[RETRY] {label}: attempt {attempt + 1}/{policy.max_attempts} failed, giving up: {e}")
                raise
            delay = delays[attempt]
            log.warning(
                f"[RETRY] {label}: attempt {attempt + 1}/{policy.max_attempts} failed ({e}); retrying in {delay:.1f}s"
            )
            await sleep(delay)

    raise AssertionError("unreachable")
