"""Asynchronous Jibit Identity client.

Mirrors ``IdentityClient`` on top of ``httpx.AsyncClient``. The token
store is shared with the sync client's implementation; its file I/O is
small and synchronous.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from . import endpoints
from .cache import FileCache
from .core.dispatcher import AsyncRequestDispatcher
from .core.http_executor import AsyncHTTPExecutor
from .core.token_manager import AsyncTokenManager
from .core.token_ops import TokenOperations
from .http import create_async_http_client
from .models import ApiRequest, HttpMethod

if TYPE_CHECKING:
    import httpx

    from .cache import CacheInterface
    from .config import IdentityConfig
    from .models import TokenPair


class AsyncIdentityClient:
    """Asynchronous client for the identity verification API."""

    def __init__(
        self,
        config: IdentityConfig,
        *,
        cache: CacheInterface | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize async client.

        Args:
            config: SDK configuration.
            cache: Token store; defaults to a FileCache in the configured directory.
            http_client: Async HTTP client to use; one is created (and owned) if omitted.
        """
        self.config = config
        self.cache = cache if cache is not None else FileCache(config.cache.directory)
        self._owns_http = http_client is None
        self._http = (
            http_client if http_client is not None else create_async_http_client(config)
        )

        executor = AsyncHTTPExecutor(
            self._http, config.retry, timeout_seconds=config.timeout
        )
        self.tokens = AsyncTokenManager(TokenOperations(config, self.cache), executor)
        self._dispatcher = AsyncRequestDispatcher(executor, self.tokens)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def execute(self, request: ApiRequest) -> Any:
        """Execute a prepared request and return the decoded JSON body."""
        return await self._dispatcher.execute(request)

    async def request(
        self,
        method: HttpMethod | str,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        requires_auth: bool = True,
    ) -> Any:
        """Call an arbitrary API path."""
        return await self.execute(
            ApiRequest.build(method, path, params, requires_auth=requires_auth)
        )

    async def refresh_tokens(self) -> TokenPair:
        """Force a token refresh."""
        return await self.tokens.refresh_tokens()

    async def card_inquiry(self, card_number: str) -> Any:
        return await self.execute(endpoints.card_inquiry(card_number))

    async def iban_inquiry(self, iban: str) -> Any:
        return await self.execute(endpoints.iban_inquiry(iban))

    async def postal_code_inquiry(self, postal_code: str) -> Any:
        return await self.execute(endpoints.postal_code_inquiry(postal_code))

    async def card_national_code_matching(
        self,
        card_number: str,
        national_code: str,
        birth_date: str,
    ) -> Any:
        return await self.execute(
            endpoints.card_national_code_matching(card_number, national_code, birth_date)
        )
