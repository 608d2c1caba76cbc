"""HTTP executors performing one logical outbound call.

Only connection failures, where the request never reached the server,
are retried with bounded backoff. Every HTTP status is handed back to
the caller for classification.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import JibitError, TransportError
from ..telemetry import get_logger, trace_operation
from .errors import ErrorFactory

if TYPE_CHECKING:
    from ..config import RetryConfig


def calculate_retry_delay(retry_config: RetryConfig, attempt: int) -> float:
    """Calculate retry delay with exponential backoff.

    Args:
        retry_config: Retry configuration.
        attempt: Current attempt number (0-indexed).

    Returns:
        Delay in seconds, never negative.
    """
    return max(0.0, retry_config.get_delay(attempt))


class _ConnectRetryPolicy:
    """Attempt bookkeeping shared by the sync and async executors."""

    def __init__(self, retry_config: RetryConfig, timeout_seconds: float | None) -> None:
        self._retry_config = retry_config
        self._timeout_seconds = timeout_seconds
        self._logger = get_logger()

    @property
    def attempts(self) -> range:
        return range(self._retry_config.max_retries + 1)

    def span_attributes(self, method: str, url: str, attempt: int) -> dict[str, Any]:
        return {"http.method": method, "http.url": url, "jibit.attempt": attempt}

    def on_connect_error(self, error: httpx.ConnectError, attempt: int) -> float | None:
        """Return the delay before the next attempt, or None when exhausted."""
        if attempt >= self._retry_config.max_retries:
            return None
        delay = calculate_retry_delay(self._retry_config, attempt)
        self._logger.warning(
            "Connection failed, retrying",
            attempt=attempt,
            delay=delay,
            error=str(error),
        )
        return delay

    def failure(self, error: httpx.HTTPError) -> JibitError:
        return ErrorFactory.from_exception(error, timeout_seconds=self._timeout_seconds)

    @staticmethod
    def exhausted(last_error: JibitError | None) -> JibitError:
        return last_error or TransportError("Request failed after retries")


class SyncHTTPExecutor:
    """Synchronous HTTP executor with connect-failure retry."""

    def __init__(
        self,
        client: httpx.Client,
        retry_config: RetryConfig,
        *,
        timeout_seconds: float | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        """Initialize sync HTTP executor.

        Args:
            client: HTTP client; relative URLs resolve against its base URL.
            retry_config: Retry configuration.
            timeout_seconds: Configured timeout, reported on timeout errors.
            sleep: Sleep function used between retries.
        """
        self._client = client
        self._policy = _ConnectRetryPolicy(retry_config, timeout_seconds)
        self._sleep = sleep

    def execute(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request and return the response, whatever its status.

        Raises:
            TimeoutError: If the request timed out.
            TransportError: On any other network failure.
        """
        last_error: JibitError | None = None

        for attempt in self._policy.attempts:
            try:
                with trace_operation(
                    "http_request", attributes=self._policy.span_attributes(method, url, attempt)
                ):
                    return self._client.request(method, url, **kwargs)
            except httpx.ConnectError as e:
                last_error = self._policy.failure(e)
                delay = self._policy.on_connect_error(e, attempt)
                if delay is not None:
                    self._sleep(delay)
            except httpx.HTTPError as e:
                raise self._policy.failure(e) from e

        raise self._policy.exhausted(last_error)


class AsyncHTTPExecutor:
    """Asynchronous HTTP executor with connect-failure retry."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: RetryConfig,
        *,
        timeout_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._policy = _ConnectRetryPolicy(retry_config, timeout_seconds)
        self._sleep = sleep

    async def execute(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request and return the response, whatever its status."""
        last_error: JibitError | None = None

        for attempt in self._policy.attempts:
            try:
                with trace_operation(
                    "http_request", attributes=self._policy.span_attributes(method, url, attempt)
                ):
                    return await self._client.request(method, url, **kwargs)
            except httpx.ConnectError as e:
                last_error = self._policy.failure(e)
                delay = self._policy.on_connect_error(e, attempt)
                if delay is not None:
                    await self._sleep(delay)
            except httpx.HTTPError as e:
                raise self._policy.failure(e) from e

        raise self._policy.exhausted(last_error)
