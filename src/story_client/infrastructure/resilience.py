"""Retry with exponential backoff and jitter.

Usage example:
    from story_client.infrastructure.resilience import RetryPolicy, with_retry

    policy = RetryPolicy(max_retries=3, initial_delay_seconds=1.0)
    story = await with_retry(lambda: api.get("/stories/abc"), policy)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import override

import requests

from ..exceptions import ApiError
from ..observability import get_logger
from ..protocols import RetryPolicy as RetryPolicyProtocol
from ..protocols import RetryPredicate, SleepFn

logger = get_logger("story_client.infrastructure.resilience")

_TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (
    requests.ConnectionError,
    requests.Timeout,
)


def is_retryable(error: BaseException, attempt: int = 0) -> bool:
    """Default retryability classifier.

    Transport failures are always retryable, classified API errors carry their
    own flag, and everything else is treated as permanent.
    """
    _ = attempt
    if isinstance(error, ApiError):
        return error.retryable
    return isinstance(error, _TRANSPORT_EXCEPTIONS)


@dataclass(frozen=True)
class RetryPolicy(RetryPolicyProtocol):
    """Retry policy for transient failures.

    The delay before retry `attempt` (0-based) is
    `min(initial_delay_seconds * backoff_factor ** attempt, max_delay_seconds)`
    scaled by a uniform jitter factor in [0.5, 1.0).
    """

    max_retries: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    backoff_factor: float = 2.0
    retry_predicate: RetryPredicate = is_retryable

    @override
    def should_retry(self, error: BaseException, attempt: int) -> bool:
        return self.retry_predicate(error, attempt)

    def base_delay(self, attempt: int) -> float:
        """Return the un-jittered delay for an attempt."""
        return min(
            self.initial_delay_seconds * (self.backoff_factor**attempt),
            self.max_delay_seconds,
        )

    @override
    def compute_backoff(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        """Compute a jittered backoff delay in seconds."""
        delay = self.base_delay(attempt)
        return delay * (0.5 + rng() * 0.5)


async def with_retry[T](
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicyProtocol | None = None,
    *,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run `operation`, retrying transient failures with backoff.

    Attempts are strictly sequential. The operation is attempted at most
    `policy.max_retries + 1` times.

    Raises:
        Exception: The last error, unchanged, once retries are exhausted or the
            policy declines to retry it.
    """
    retry_policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= retry_policy.max_retries or not retry_policy.should_retry(exc, attempt):
                logger.debug("Giving up after %s attempt(s): %r", attempt + 1, exc)
                raise
            delay = retry_policy.compute_backoff(attempt)
            logger.warning(
                "Attempt %s failed (%s); retrying in %.2fs",
                attempt + 1,
                exc,
                delay,
            )
            await sleep(delay)
            attempt += 1
