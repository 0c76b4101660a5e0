"""Tests for structbench.execution.retry - rate-limit backoff."""

from __future__ import annotations

import pytest

from conftest import RateLimitError
from structbench.execution.retry import (
    backoff_delays,
    is_rate_limit_error,
    retry_with_backoff,
)


class TestIsRateLimitError:
    def test_status_code_429(self):
        assert is_rate_limit_error(RateLimitError()) is True

    def test_status_attribute_429(self):
        exc = Exception("slow down")
        exc.status = 429  # type: ignore[attr-defined]
        assert is_rate_limit_error(exc) is True

    def test_message_marker(self):
        assert is_rate_limit_error(Exception("Rate limit reached for requests")) is True

    def test_server_error_is_not_rate_limit(self):
        exc = Exception("internal error")
        exc.status_code = 500  # type: ignore[attr-defined]
        assert is_rate_limit_error(exc) is False

    def test_plain_error(self):
        assert is_rate_limit_error(ValueError("bad input")) is False


def test_backoff_delays_double():
    assert backoff_delays(5.0, 4) == [5.0, 10.0, 20.0, 40.0]


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_success_no_retry(self):
        sleeps: list[float] = []

        async def factory():
            return "ok"

        async def sleep(delay):
            sleeps.append(delay)

        outcome = await retry_with_backoff(factory, sleep=sleep)
        assert outcome.ok
        assert outcome.value == "ok"
        assert outcome.retries_used == 0
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        sleeps: list[float] = []
        errors = [RateLimitError(), RateLimitError()]

        async def factory():
            if errors:
                raise errors.pop(0)
            return "ok"

        async def sleep(delay):
            sleeps.append(delay)

        outcome = await retry_with_backoff(factory, base_delay=5.0, sleep=sleep)
        assert outcome.value == "ok"
        assert outcome.retries_used == 2
        assert sleeps == [5.0, 10.0]

    @pytest.mark.asyncio
    async def test_non_retryable_returns_immediately(self):
        calls = 0

        async def factory():
            nonlocal calls
            calls += 1
            raise ValueError("bad request")

        async def sleep(delay):
            raise AssertionError("should not sleep")

        outcome = await retry_with_backoff(factory, sleep=sleep)
        assert not outcome.ok
        assert isinstance(outcome.error, ValueError)
        assert outcome.exhausted is False
        assert calls == 1

    @pytest.mark.asyncio
    async def test_exhausted(self):
        calls = 0

        async def factory():
            nonlocal calls
            calls += 1
            raise RateLimitError()

        async def sleep(delay):
            pass

        outcome = await retry_with_backoff(factory, max_retries=2, sleep=sleep)
        assert outcome.exhausted is True
        assert outcome.retries_used == 2
        assert calls == 3

    @pytest.mark.asyncio
    async def test_custom_predicate(self):
        async def factory():
            raise KeyError("x")

        async def sleep(delay):
            pass

        outcome = await retry_with_backoff(
            factory, is_retryable=lambda exc: True, max_retries=1, sleep=sleep
        )
        assert outcome.exhausted is True
