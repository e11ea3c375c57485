"""Tests for retry policy."""

import asyncio

import pytest

from leadsdb.errors import ApiError, DecodeError, TransportError
from leadsdb.resilience import RetryConfig, RetryPolicy
from leadsdb.streaming import CancelToken


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        """Test default configuration."""
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.base_delay == 1.0
        assert config.max_jitter == 0.5
        assert config.retry_on_status == frozenset({429, 500, 502, 503, 504})

    @pytest.mark.parametrize(("max_retries", "attempts"), [(0, 1), (-2, 1), (1, 1), (5, 5)])
    def test_at_least_one_attempt(self, max_retries: int, attempts: int) -> None:
        """Test there is always at least one attempt."""
        assert RetryConfig(max_retries=max_retries).max_attempts == attempts

    def test_no_retry(self) -> None:
        """Test single-attempt configuration."""
        assert RetryConfig.no_retry().max_attempts == 1


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_exponential_delay_without_jitter(self) -> None:
        """Test delay doubles per attempt."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_jitter=0.0))
        assert policy.calculate_delay(0) == 1.0
        assert policy.calculate_delay(1) == 2.0
        assert policy.calculate_delay(2) == 4.0

    def test_jitter_bounds(self) -> None:
        """Test jitter stays in [0, max_jitter)."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_jitter=0.5))
        for _ in range(200):
            delay = policy.calculate_delay(1)
            assert 2.0 <= delay < 2.5

    def test_retry_after_overrides_backoff(self) -> None:
        """Test the server hint replaces the exponential delay."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_jitter=0.5))
        for _ in range(50):
            delay = policy.calculate_delay(0, retry_after=2.0)
            assert 2.0 <= delay < 2.5

    def test_zero_retry_after_is_ignored(self) -> None:
        """Test a non-positive hint falls back to backoff."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_jitter=0.0))
        assert policy.calculate_delay(2, retry_after=0) == 4.0

    def test_should_retry(self) -> None:
        """Test retry classification."""
        policy = RetryPolicy()
        assert policy.should_retry(TransportError("reset"))
        assert policy.should_retry(ApiError("slow down", status_code=429))
        assert policy.should_retry(ApiError("down", status_code=503))
        assert not policy.should_retry(ApiError("missing", status_code=404))
        assert not policy.should_retry(DecodeError("garbled"))

    def test_custom_status_set(self) -> None:
        """Test configured statuses drive API error retries."""
        policy = RetryPolicy(RetryConfig(retry_on_status=frozenset({409})))
        assert policy.should_retry(ApiError("conflict", status_code=409))
        assert not policy.should_retry(ApiError("down", status_code=503))

    @pytest.mark.asyncio
    async def test_wait_completes(self) -> None:
        """Test an uncancelled wait runs to completion."""
        policy = RetryPolicy()
        assert await policy.wait(0.01, CancelToken()) is False
        assert await policy.wait(0.01) is False

    @pytest.mark.asyncio
    async def test_wait_interrupted_by_cancel(self) -> None:
        """Test cancellation cuts a long wait short."""
        policy = RetryPolicy()
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)

        interrupted = await asyncio.wait_for(policy.wait(10.0, token), timeout=1.0)

        assert interrupted is True
