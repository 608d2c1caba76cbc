"""Synchronous Jibit Identity client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from . import endpoints
from .cache import FileCache
from .core.dispatcher import RequestDispatcher
from .core.http_executor import SyncHTTPExecutor
from .core.token_manager import TokenManager
from .core.token_ops import TokenOperations
from .http import create_http_client
from .models import ApiRequest, HttpMethod

if TYPE_CHECKING:
    import httpx

    from .cache import CacheInterface
    from .config import IdentityConfig
    from .models import TokenPair


class IdentityClient:
    """Synchronous client for the identity verification API."""

    def __init__(
        self,
        config: IdentityConfig,
        *,
        cache: CacheInterface | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize client.

        Args:
            config: SDK configuration.
            cache: Token store; defaults to a FileCache in the configured directory.
            http_client: HTTP client to use; one is created (and owned) if omitted.
        """
        self.config = config
        self.cache = cache if cache is not None else FileCache(config.cache.directory)
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else create_http_client(config)

        executor = SyncHTTPExecutor(
            self._http, config.retry, timeout_seconds=config.timeout
        )
        self.tokens = TokenManager(TokenOperations(config, self.cache), executor)
        self._dispatcher = RequestDispatcher(executor, self.tokens)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http:
            self._http.close()

    def execute(self, request: ApiRequest) -> Any:
        """Execute a prepared request and return the decoded JSON body."""
        return self._dispatcher.execute(request)

    def request(
        self,
        method: HttpMethod | str,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        requires_auth: bool = True,
    ) -> Any:
        """Call an arbitrary API path.

        Args:
            method: ``GET`` or ``POST``.
            path: Path relative to the base URL.
            params: Query parameters for GET, JSON body for POST.
            requires_auth: Whether to attach the bearer token.
        """
        return self.execute(
            ApiRequest.build(method, path, params, requires_auth=requires_auth)
        )

    def refresh_tokens(self) -> TokenPair:
        """Force a token refresh."""
        return self.tokens.refresh_tokens()

    def card_inquiry(self, card_number: str) -> Any:
        return self.execute(endpoints.card_inquiry(card_number))

    def iban_inquiry(self, iban: str) -> Any:
        return self.execute(endpoints.iban_inquiry(iban))

    def postal_code_inquiry(self, postal_code: str) -> Any:
        return self.execute(endpoints.postal_code_inquiry(postal_code))

    def card_national_code_matching(
        self,
        card_number: str,
        national_code: str,
        birth_date: str,
    ) -> Any:
        return self.execute(
            endpoints.card_national_code_matching(card_number, national_code, birth_date)
        )
