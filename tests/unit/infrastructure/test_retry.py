"""
Unit tests for Retry.

Usage:
    pytest tests/unit/infrastructure/test_retry.py
"""

from unittest.mock import AsyncMock

import pytest

from veilleur.domain.exceptions import ProtocolError, TransportError
from veilleur.infrastructure.resilience import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
)


def _fast_config(**overrides) -> RetryConfig:
    values = {"max_attempts": 3, "initial_delay": 0.0, "jitter": False}
    values.update(overrides)
    return RetryConfig(**values)


class TestRetry:
    """Unit tests for Retry."""

    # ================================================================
    # Execution
    # ================================================================

    async def test_success_first_attempt(self):
        """Test a successful call is not retried."""
        func = AsyncMock(return_value="ok")

        result = await Retry(_fast_config()).execute_async(func, 1, key="v")

        assert result == "ok"
        func.assert_awaited_once_with(1, key="v")

    async def test_transient_failure_then_success(self):
        """Test transport errors are retried."""
        func = AsyncMock(side_effect=[TransportError("reset"), "ok"])

        result = await Retry(_fast_config()).execute_async(func)

        assert result == "ok"
        assert func.await_count == 2

    async def test_attempts_exhausted(self):
        """Test RetryError carries attempts and last exception."""
        last = TransportError("still down")
        func = AsyncMock(side_effect=[TransportError("down"), TransportError("down"), last])

        with pytest.raises(RetryError) as exc_info:
            await Retry(_fast_config()).execute_async(func)

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_exception is last
        assert isinstance(exc_info.value, TransportError)

    async def test_protocol_errors_not_retried(self):
        """Test non-retryable errors propagate unchanged."""
        error = ProtocolError(-32602, "Invalid params")
        func = AsyncMock(side_effect=error)

        with pytest.raises(ProtocolError) as exc_info:
            await Retry(_fast_config()).execute_async(func)

        assert exc_info.value is error
        assert func.await_count == 1

    # ================================================================
    # Delay calculation
    # ================================================================

    def test_exponential_delay_capped(self):
        """Test exponential delays grow and respect max_delay."""
        retry = Retry(
            RetryConfig(initial_delay=0.5, backoff_multiplier=2.0, max_delay=3.0, jitter=False)
        )

        assert [retry._calculate_delay(n) for n in range(4)] == [0.5, 1.0, 2.0, 3.0]

    def test_linear_and_constant_delay(self):
        """Test linear and constant strategies."""
        linear = Retry(
            RetryConfig(
                initial_delay=1.0,
                backoff_multiplier=0.5,
                backoff_strategy=BackoffStrategy.LINEAR,
                jitter=False,
            )
        )
        constant = Retry(
            RetryConfig(initial_delay=0.25, backoff_strategy=BackoffStrategy.CONSTANT, jitter=False)
        )

        assert linear._calculate_delay(2) == 2.0
        assert constant._calculate_delay(5) == 0.25

    def test_jitter_stays_in_range(self):
        """Test jitter stays within +/- jitter_factor."""
        retry = Retry(RetryConfig(initial_delay=1.0, jitter=True, jitter_factor=0.1))

        for _ in range(50):
            assert 0.9 <= retry._calculate_delay(0) <= 1.1
