"""Token managers owning the access/refresh token pair.

A manager starts without tokens, adopts a consistent pair from the store
or fetches a fresh one on first use, and refreshes on demand. Fetch and
refresh are single-flight: concurrent callers collapse into one outbound
token request and all of them observe its result.
"""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING

from ..errors import AuthError
from ..telemetry import get_logger, trace_operation
from .token_ops import GENERATE_PATH, REFRESH_PATH

if TYPE_CHECKING:
    import httpx

    from ..models import TokenPair
    from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
    from .token_ops import TokenOperations


class TokenManager:
    """Thread-safe token manager for the synchronous client."""

    def __init__(self, operations: TokenOperations, executor: SyncHTTPExecutor) -> None:
        """Initialize token manager.

        Args:
            operations: Shared token operations bound to a store.
            executor: HTTP executor used for token endpoint calls.
        """
        self._ops = operations
        self._executor = executor
        self._pair: TokenPair | None = None
        self._lock = threading.Lock()
        self._logger = get_logger()

    @property
    def tokens(self) -> TokenPair | None:
        """Get the held token pair, if any."""
        return self._pair

    @property
    def access_token(self) -> str | None:
        """Get the held access token, if any."""
        return self._pair.access_token if self._pair else None

    def ensure_tokens(self) -> TokenPair:
        """Return the held pair, loading it from the store or fetching it first.

        Raises:
            AuthError: If token generation is rejected.
            TransportError: If the token endpoint cannot be reached.
        """
        pair = self._pair
        if pair is not None:
            return pair
        with self._lock:
            return self._ensure_locked()

    def fetch_tokens(self) -> TokenPair:
        """Generate a new pair from the API key and secret."""
        with self._lock:
            return self._fetch_locked()

    def refresh_tokens(self, rejected_token: str | None = None) -> TokenPair:
        """Exchange the held pair for a new one.

        Args:
            rejected_token: Access token the server just rejected. When the
                held token already differs from it, another caller has
                refreshed in the meantime and no request is sent.

        Raises:
            AuthError: If the refresh is rejected. The held pair is then
                discarded so the next call generates a fresh one.
            TransportError: If the token endpoint cannot be reached.
        """
        with self._lock:
            pair = self._ensure_locked()
            if rejected_token is not None and pair.access_token != rejected_token:
                self._logger.debug("Refresh already completed by another caller")
                return pair

            with trace_operation("jibit.tokens.refresh"):
                response = self._executor.execute(
                    "POST", REFRESH_PATH, json=self._ops.build_refresh_request(pair)
                )
                new_pair = self._parse_refresh(response)

            self._adopt(new_pair)
            self._logger.info("Tokens refreshed")
            return new_pair

    def clear_tokens(self) -> None:
        """Forget the held pair and remove it from the store."""
        with self._lock:
            self._pair = None
            self._ops.discard_pair()

    def _ensure_locked(self) -> TokenPair:
        if self._pair is not None:
            return self._pair
        cached = self._ops.load_pair()
        if cached is not None:
            self._pair = cached
            return cached
        return self._fetch_locked()

    def _fetch_locked(self) -> TokenPair:
        with trace_operation("jibit.tokens.generate"):
            response = self._executor.execute(
                "POST", GENERATE_PATH, json=self._ops.build_generate_request()
            )
            pair = self._ops.parse_token_response(response, "generation")

        self._adopt(pair)
        self._logger.info("Tokens fetched")
        return pair

    def _parse_refresh(self, response: httpx.Response) -> TokenPair:
        try:
            return self._ops.parse_token_response(response, "refresh")
        except AuthError:
            # A rejected refresh token is useless; the next call bootstraps.
            self._pair = None
            self._ops.discard_pair()
            self._logger.warning("Refresh rejected, discarded held tokens")
            raise

    def _adopt(self, pair: TokenPair) -> None:
        self._ops.store_pair(pair)
        self._pair = pair


class AsyncTokenManager:
    """Task-safe token manager for the asynchronous client."""

    def __init__(self, operations: TokenOperations, executor: AsyncHTTPExecutor) -> None:
        """Initialize async token manager.

        Args:
            operations: Shared token operations bound to a store.
            executor: Async HTTP executor used for token endpoint calls.
        """
        self._ops = operations
        self._executor = executor
        self._pair: TokenPair | None = None
        self._lock = asyncio.Lock()
        self._logger = get_logger()

    @property
    def tokens(self) -> TokenPair | None:
        """Get the held token pair, if any."""
        return self._pair

    @property
    def access_token(self) -> str | None:
        """Get the held access token, if any."""
        return self._pair.access_token if self._pair else None

    async def ensure_tokens(self) -> TokenPair:
        """Return the held pair, loading it from the store or fetching it first."""
        pair = self._pair
        if pair is not None:
            return pair
        async with self._lock:
            return await self._ensure_locked()

    async def fetch_tokens(self) -> TokenPair:
        """Generate a new pair from the API key and secret."""
        async with self._lock:
            return await self._fetch_locked()

    async def refresh_tokens(self, rejected_token: str | None = None) -> TokenPair:
        """Exchange the held pair for a new one.

        Args:
            rejected_token: Access token the server just rejected.
        """
        async with self._lock:
            pair = await self._ensure_locked()
            if rejected_token is not None and pair.access_token != rejected_token:
                self._logger.debug("Refresh already completed by another caller")
                return pair

            with trace_operation("jibit.tokens.refresh"):
                response = await self._executor.execute(
                    "POST", REFRESH_PATH, json=self._ops.build_refresh_request(pair)
                )
                new_pair = self._parse_refresh(response)

            self._adopt(new_pair)
            self._logger.info("Tokens refreshed")
            return new_pair

    async def clear_tokens(self) -> None:
        """Forget the held pair and remove it from the store."""
        async with self._lock:
            self._pair = None
            self._ops.discard_pair()

    async def _ensure_locked(self) -> TokenPair:
        if self._pair is not None:
            return self._pair
        cached = self._ops.load_pair()
        if cached is not None:
            self._pair = cached
            return cached
        return await self._fetch_locked()

    async def _fetch_locked(self) -> TokenPair:
        with trace_operation("jibit.tokens.generate"):
            response = await self._executor.execute(
                "POST", GENERATE_PATH, json=self._ops.build_generate_request()
            )
            pair = self._ops.parse_token_response(response, "generation")

        self._adopt(pair)
        self._logger.info("Tokens fetched")
        return pair

    def _parse_refresh(self, response: httpx.Response) -> TokenPair:
        try:
            return self._ops.parse_token_response(response, "refresh")
        except AuthError:
            # A rejected refresh token is useless; the next call bootstraps.
            self._pair = None
            self._ops.discard_pair()
            self._logger.warning("Refresh rejected, discarded held tokens")
            raise

    def _adopt(self, pair: TokenPair) -> None:
        self._ops.store_pair(pair)
        self._pair = pair
