"""Configuration for the Jibit Identity SDK.

Uses Pydantic v2 for validation with sensible defaults. Credentials are
kept in ``SecretStr`` so they never show up in reprs or logs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from .cache import validate_key
from .errors import InvalidConfigError, ValidationError
from .models import Credentials

DEFAULT_BASE_URL = "https://napi.jibit.ir/ide"
DEFAULT_KEY_PREFIX = "jibit_tokens_"
ACCESS_TOKEN_TTL = 24 * 3600
REFRESH_TOKEN_TTL = 48 * 3600


class RetryConfig(BaseModel):
    """Retry configuration for connection failures."""

    model_config = ConfigDict(frozen=True)

    max_retries: Annotated[int, Field(ge=0, le=5)] = 2
    initial_delay: Annotated[float, Field(gt=0, le=60)] = 0.5
    max_delay: Annotated[float, Field(gt=0, le=300)] = 5.0
    exponential_base: Annotated[float, Field(ge=1.5, le=3.0)] = 2.0
    jitter: Annotated[float, Field(ge=0, le=1.0)] = 0.1

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt with exponential backoff."""
        import random

        delay = min(
            self.initial_delay * (self.exponential_base**attempt),
            self.max_delay,
        )
        jitter_range = delay * self.jitter
        return delay + random.uniform(-jitter_range, jitter_range)  # noqa: S311


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "jibit-sdk"
    log_level: str = "INFO"


class CacheConfig(BaseModel):
    """Token cache location, key prefix and lifetimes."""

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(default_factory=lambda: Path.home() / ".cache" / "jibit-sdk")
    key_prefix: str = DEFAULT_KEY_PREFIX
    access_token_ttl: Annotated[int, Field(gt=0)] = ACCESS_TOKEN_TTL
    refresh_token_ttl: Annotated[int, Field(gt=0)] = REFRESH_TOKEN_TTL

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Key prefix must itself be a valid cache key fragment."""
        try:
            validate_key(v)
        except ValidationError as e:
            raise ValueError(e.message) from e
        return v

    @model_validator(mode="after")
    def validate_ttls(self) -> Self:
        """Refresh token must outlive the access token."""
        if self.refresh_token_ttl < self.access_token_ttl:
            msg = "refresh_token_ttl must be >= access_token_ttl"
            raise ValueError(msg)
        return self


class IdentityConfig(BaseModel):
    """Main configuration for the Jibit Identity SDK."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    api_key: str = Field(..., min_length=1)
    api_secret: SecretStr

    base_url: HttpUrl = DEFAULT_BASE_URL  # type: ignore[assignment]

    # Field name carrying the secret in the token generation payload
    secret_field: Literal["apiSecret", "secretKey"] = "apiSecret"

    # HTTP settings
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0

    # Sub-configurations
    retry: RetryConfig = Field(default_factory=RetryConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("api_secret")
    @classmethod
    def validate_api_secret(cls, v: SecretStr) -> SecretStr:
        """API secret must not be empty."""
        if not v.get_secret_value():
            msg = "api_secret must not be empty"
            raise ValueError(msg)
        return v

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return str(self.base_url).rstrip("/")

    @property
    def credentials(self) -> Credentials:
        """API key/secret pair used for token generation."""
        return Credentials(api_key=self.api_key, api_secret=self.api_secret)

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "JIBIT_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        api_key = get_env("API_KEY")
        if not api_key:
            msg = f"{prefix}API_KEY environment variable is required"
            raise InvalidConfigError(msg, field="api_key")

        api_secret = get_env("API_SECRET")
        if not api_secret:
            msg = f"{prefix}API_SECRET environment variable is required"
            raise InvalidConfigError(msg, field="api_secret")

        try:
            data: dict[str, Any] = {
                "api_key": api_key,
                "api_secret": api_secret,
                "base_url": get_env("BASE_URL", DEFAULT_BASE_URL),
                "secret_field": get_env("SECRET_FIELD", "apiSecret"),
                "timeout": float(get_env("TIMEOUT", "30.0")),
            }
            cache_dir = get_env("CACHE_DIR")
            if cache_dir:
                data["cache"] = CacheConfig(directory=Path(cache_dir))
            return cls(**data)
        except (PydanticValidationError, ValueError) as e:
            raise InvalidConfigError(f"Invalid configuration: {e}") from e
