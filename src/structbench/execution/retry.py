"""Rate-limit retry with exponential backoff.

The retry loop never raises: it returns a RetryOutcome holding either
the value or the last error, so callers decide how an exhausted or
non-retryable failure is recorded. Which errors are retryable is an
injected predicate.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

BACKOFF_BASE_DELAY = 5.0
BACKOFF_MAX_RETRIES = 4

RATE_LIMIT_MARKERS: tuple[str, ...] = ("429", "rate limit", "too many requests")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class RetryOutcome(Generic[T]):
    """Result of retry_with_backoff: a value or the error that ended the loop."""

    value: T | None = None
    error: BaseException | None = None
    retries_used: int = 0
    exhausted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def is_rate_limit_error(exc: BaseException) -> bool:
    """Check if an exception is a rate-limit signal.

    Matches HTTP 429 on the status attributes SDK exceptions set, then
    falls back to the message text.
    """
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status == 429:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def backoff_delays(
    base_delay: float = BACKOFF_BASE_DELAY, max_retries: int = BACKOFF_MAX_RETRIES
) -> list[float]:
    """Delay before each retry: base_delay doubled per retry."""
    return [base_delay * (2**attempt) for attempt in range(max_retries)]


async def retry_with_backoff(
    coro_factory: Callable[[], Awaitable[T]],
    is_retryable: Callable[[BaseException], bool] = is_rate_limit_error,
    max_retries: int = BACKOFF_MAX_RETRIES,
    base_delay: float = BACKOFF_BASE_DELAY,
    sleep: Sleep = asyncio.sleep,
) -> RetryOutcome[T]:
    """Execute a coroutine, retrying retryable errors with exponential backoff.

    Args:
        coro_factory: Callable that creates a new awaitable each call.
        is_retryable: Predicate deciding whether an error is worth retrying.
        max_retries: Maximum number of retries (total calls = max_retries + 1).
        base_delay: Delay in seconds before the first retry; doubles each retry.
        sleep: Awaitable sleep function, replaceable in tests.

    Returns:
        RetryOutcome with value set on success. On failure, error holds the
        last exception and exhausted is True when it was retryable but the
        retry ceiling was reached.
    """
    delays = backoff_delays(base_delay, max_retries)
    retries_used = 0

    for attempt in range(max_retries + 1):
        try:
            value = await coro_factory()
        except Exception as exc:
            if not is_retryable(exc):
                return RetryOutcome(error=exc, retries_used=retries_used)
            if attempt == max_retries:
                return RetryOutcome(error=exc, retries_used=retries_used, exhausted=True)

            delay = delays[attempt]
            logger.warning(
                "retry.backing_off",
                delay_seconds=delay,
                retry=attempt + 1,
                max_retries=max_retries,
                error=str(exc),
            )
            retries_used += 1
            await sleep(delay)
        else:
            return RetryOutcome(value=value, retries_used=retries_used)

    # Unreachable, but satisfies type checker
    raise RuntimeError("Retry loop exited unexpectedly")  # pragma: no cover
