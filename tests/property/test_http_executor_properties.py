"""Property-based tests for HTTP executors.

Retry exponential backoff:
- Delay never exceeds max_delay
- Delay increases with each attempt until capped
- Jitter is within configured bounds
- Connection failures are retried at most max_retries times
"""

from __future__ import annotations

import httpx
import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from jibit_sdk.config import RetryConfig
from jibit_sdk.core.http_executor import SyncHTTPExecutor, calculate_retry_delay
from jibit_sdk.errors import TransportError

# Strategies for generating test data
initial_delay_strategy = st.floats(min_value=0.1, max_value=10.0)
max_delay_strategy = st.floats(min_value=10.0, max_value=300.0)
exponential_base_strategy = st.floats(min_value=1.5, max_value=3.0)
jitter_strategy = st.floats(min_value=0.0, max_value=1.0)
attempt_strategy = st.integers(min_value=0, max_value=10)


class TestRetryExponentialBackoff:
    """Property tests for retry exponential backoff."""

    @given(
        initial_delay=initial_delay_strategy,
        max_delay=max_delay_strategy,
        exponential_base=exponential_base_strategy,
        attempt=attempt_strategy,
    )
    @settings(max_examples=100)
    def test_delay_never_exceeds_max(
        self,
        initial_delay: float,
        max_delay: float,
        exponential_base: float,
        attempt: int,
    ) -> None:
        """Property: Delay never exceeds max_delay."""
        config = RetryConfig(
            initial_delay=initial_delay,
            max_delay=max_delay,
            exponential_base=exponential_base,
            jitter=0.0,
        )

        assert calculate_retry_delay(config, attempt) <= max_delay

    @given(
        initial_delay=initial_delay_strategy,
        max_delay=max_delay_strategy,
        exponential_base=exponential_base_strategy,
    )
    @settings(max_examples=100)
    def test_delay_increases_with_attempts(
        self,
        initial_delay: float,
        max_delay: float,
        exponential_base: float,
    ) -> None:
        """Property: Delay increases with each attempt until max."""
        assume(max_delay > initial_delay * exponential_base)

        config = RetryConfig(
            initial_delay=initial_delay,
            max_delay=max_delay,
            exponential_base=exponential_base,
            jitter=0.0,
        )

        assert calculate_retry_delay(config, 1) > calculate_retry_delay(config, 0)

    @given(
        initial_delay=initial_delay_strategy,
        jitter=jitter_strategy,
        attempt=attempt_strategy,
    )
    @settings(max_examples=100)
    def test_jitter_within_bounds(self, initial_delay: float, jitter: float, attempt: int) -> None:
        """Property: Jittered delay stays within jitter of the base delay."""
        config = RetryConfig(initial_delay=initial_delay, max_delay=300.0, jitter=jitter)
        base = min(initial_delay * (config.exponential_base**attempt), config.max_delay)

        delay = calculate_retry_delay(config, attempt)

        assert delay >= 0
        assert base * (1 - jitter) - 1e-9 <= delay <= base * (1 + jitter) + 1e-9


class TestConnectRetryBound:
    """Property tests for the bounded connect retry."""

    @given(max_retries=st.integers(min_value=0, max_value=5))
    @settings(max_examples=20, deadline=None)
    def test_attempts_bounded(self, max_retries: int) -> None:
        """Property: a persistently unreachable host is tried max_retries + 1 times."""
        attempts: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("refused", request=request)

        sleeps: list[float] = []
        transport = httpx.MockTransport(handler)
        with httpx.Client(base_url="https://example.test", transport=transport) as client:
            executor = SyncHTTPExecutor(
                client, RetryConfig(max_retries=max_retries), sleep=sleeps.append
            )

            with pytest.raises(TransportError):
                executor.execute("GET", "/v1/cards")

        assert len(attempts) == max_retries + 1
        assert len(sleeps) == max_retries
