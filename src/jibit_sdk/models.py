"""Pydantic models for the Jibit Identity SDK.

Uses Pydantic v2 with frozen models for immutability. Token payloads use
the API's camelCase field names as aliases.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class HttpMethod(StrEnum):
    """HTTP methods used by the identity API."""

    GET = "GET"
    POST = "POST"


class CacheEntry(BaseModel):
    """Persisted form of a single cache entry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: Any
    expires_at: float | None = Field(
        default=None, description="Absolute expiry as Unix timestamp, None for never"
    )

    def is_expired(self, now: float | None = None) -> bool:
        """Check if entry has passed its expiry."""
        if self.expires_at is None:
            return False
        now = datetime.now(UTC).timestamp() if now is None else now
        return self.expires_at <= now


class TokenPair(BaseModel):
    """Access/refresh token pair issued by the token endpoints."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    access_token: str = Field(..., min_length=1, alias="accessToken")
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")

    @property
    def digest(self) -> str:
        """Fingerprint binding the two tokens together."""
        material = f"{self.access_token}\n{self.refresh_token}".encode()
        return hashlib.sha256(material).hexdigest()

    def __repr__(self) -> str:
        return "TokenPair(access_token=..., refresh_token=...)"


class Credentials(BaseModel):
    """API key and secret supplied at construction."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., min_length=1)
    api_secret: SecretStr


class ApiRequest(BaseModel):
    """A single logical API call."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    requires_auth: bool = True

    @classmethod
    def build(
        cls,
        method: HttpMethod | str,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        requires_auth: bool = True,
    ) -> Self:
        """Create a request from loosely typed caller input.

        Raises:
            ValidationError: If the method or path is not acceptable.
        """
        try:
            return cls(
                method=str(method).upper(),
                path=path,
                params=params or {},
                requires_auth=requires_auth,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid request: {e}") from e
