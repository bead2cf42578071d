"""
Tests for RetryPolicy.
"""

from unittest.mock import AsyncMock, patch

import pytest

from src.common.errors import FetchError, LaunchFailure, NavigationError, ParseFailure
from src.common.retry import RetryPolicy
from src.config.settings import Settings


def flaky(failures, result="ok"):
    """Operation that raises each of `failures` in turn, then returns `result`."""
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if failures:
            raise failures.pop(0)
        return result

    return operation, calls


class TestBackoff:
    def test_linear_backoff(self):
        policy = RetryPolicy(base_delay=0.4, step_delay=0.4)
        assert [round(policy.backoff(n), 2) for n in range(3)] == [0.4, 0.8, 1.2]

    def test_from_settings(self):
        policy = RetryPolicy.from_settings(Settings(per_item_retries=2, retry_base_delay=1, retry_step_delay=0.5))
        assert policy.max_attempts == 3
        assert policy.backoff(2) == 2.0

    def test_zero_retries_means_one_attempt(self):
        assert RetryPolicy.from_settings(Settings(per_item_retries=0)).max_attempts == 1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestRun:
    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        operation, calls = flaky([FetchError("503"), NavigationError("timeout")])
        policy = RetryPolicy(max_attempts=3)

        with patch("src.common.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await policy.run(operation, label="item") == "ok"

        assert calls["count"] == 3
        assert [c.args[0] for c in sleep.await_args_list] == [pytest.approx(0.4), pytest.approx(0.8)]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        operation, calls = flaky([ParseFailure("a"), ParseFailure("b"), ParseFailure("c"), ParseFailure("d")])
        policy = RetryPolicy(max_attempts=3)

        with patch("src.common.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ParseFailure, match="c"):
                await policy.run(operation)

        assert calls["count"] == 3
        # No sleep after the final attempt
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_errors_propagate_immediately(self):
        operation, calls = flaky([LaunchFailure("no chromium")])
        policy = RetryPolicy(max_attempts=5)

        with patch("src.common.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(LaunchFailure):
                await policy.run(operation)

        assert calls["count"] == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_retried(self):
        operation, calls = flaky([KeyError("boom")])

        with pytest.raises(KeyError):
            await RetryPolicy(max_attempts=3, base_delay=0, step_delay=0).run(operation)

        assert calls["count"] == 1
