"""Centralized token operations for the Jibit Identity SDK.

Provides token payload building, response parsing and pair persistence
used by both sync and async token managers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..errors import AuthError, ErrorCode
from ..models import TokenPair
from ..telemetry import get_logger
from .errors import UNDECODABLE, ErrorFactory

if TYPE_CHECKING:
    from ..cache import CacheInterface
    from ..config import IdentityConfig

GENERATE_PATH = "/v1/tokens/generate"
REFRESH_PATH = "/v1/tokens/refresh"

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
PAIR_DIGEST_KEY = "pairDigest"


class TokenOperations:
    """Token logic shared by sync and async token managers.

    The pair is stored as three entries under the configured prefix: the
    access token, the refresh token, and a digest binding them. A pair is
    only adopted from the store when all three are present and agree.
    """

    def __init__(self, config: IdentityConfig, cache: CacheInterface) -> None:
        """Initialize token operations.

        Args:
            config: SDK configuration.
            cache: Store backing the token pair.
        """
        self.config = config
        self.cache = cache
        self._logger = get_logger()

        prefix = config.cache.key_prefix
        self.access_key = f"{prefix}{ACCESS_TOKEN_KEY}"
        self.refresh_key = f"{prefix}{REFRESH_TOKEN_KEY}"
        self.digest_key = f"{prefix}{PAIR_DIGEST_KEY}"

    def build_generate_request(self) -> dict[str, Any]:
        """Build token generation payload from the configured credentials."""
        credentials = self.config.credentials
        return {
            "apiKey": credentials.api_key,
            self.config.secret_field: credentials.api_secret.get_secret_value(),
        }

    def build_refresh_request(self, pair: TokenPair) -> dict[str, Any]:
        """Build token refresh payload from the held pair."""
        return {
            "accessToken": pair.access_token,
            "refreshToken": pair.refresh_token,
        }

    def parse_token_response(self, response: httpx.Response, operation: str) -> TokenPair:
        """Turn a token endpoint response into a pair.

        Args:
            response: Response from the generate or refresh endpoint.
            operation: Operation name used in error messages.

        Returns:
            The issued token pair.

        Raises:
            AuthError: If the server rejected the request or the body has no pair.
        """
        if not ErrorFactory.is_success(response.status_code):
            raise ErrorFactory.auth_failure(response, f"Token {operation} rejected")

        body = ErrorFactory.decode_body(response)
        if body is UNDECODABLE or not isinstance(body, dict):
            raise ErrorFactory.auth_failure(
                response,
                f"Token {operation} returned an unreadable body",
                ErrorCode.TOKEN_RESPONSE_INVALID,
            )
        try:
            return TokenPair.model_validate(body)
        except PydanticValidationError as e:
            raise AuthError(
                f"Token {operation} response is missing tokens",
                ErrorCode.TOKEN_RESPONSE_INVALID,
                status_code=response.status_code,
                correlation_id=ErrorFactory.generate_correlation_id(),
            ) from e

    def load_pair(self) -> TokenPair | None:
        """Read a consistent pair from the store.

        Returns:
            The cached pair, or None when any part is missing or mismatched.
        """
        values = self.cache.get_multiple([self.access_key, self.refresh_key, self.digest_key])
        access_token = values.get(self.access_key)
        refresh_token = values.get(self.refresh_key)
        digest = values.get(self.digest_key)

        if not (isinstance(access_token, str) and access_token) or not (
            isinstance(refresh_token, str) and refresh_token
        ):
            self._logger.debug("Token cache miss")
            return None

        pair = TokenPair(access_token=access_token, refresh_token=refresh_token)
        if digest != pair.digest:
            self._logger.warning("Cached token pair is inconsistent, discarding")
            self.discard_pair()
            return None

        self._logger.debug("Token cache hit")
        return pair

    def store_pair(self, pair: TokenPair) -> bool:
        """Persist a pair; the digest is written last.

        Returns:
            True if every entry was written.
        """
        cache_config = self.config.cache
        access_ok = self.cache.set(
            self.access_key, pair.access_token, cache_config.access_token_ttl
        )
        refresh_ok = self.cache.set(
            self.refresh_key, pair.refresh_token, cache_config.refresh_token_ttl
        )
        stored = (
            access_ok
            and refresh_ok
            and self.cache.set(self.digest_key, pair.digest, cache_config.refresh_token_ttl)
        )
        if not stored:
            self._logger.warning("Failed to persist token pair, keeping it in memory only")
        return stored

    def discard_pair(self) -> None:
        """Remove every entry of the cached pair."""
        self.cache.delete_multiple([self.access_key, self.refresh_key, self.digest_key])
