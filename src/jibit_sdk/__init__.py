"""Jibit Identity Python SDK."""

from .async_client import AsyncIdentityClient
from .cache import BaseCache, CacheInterface, FileCache, MemoryCache
from .client import IdentityClient
from .config import CacheConfig, IdentityConfig, RetryConfig, TelemetryConfig
from .errors import (
    AuthError,
    CacheIOError,
    ErrorCode,
    InvalidConfigError,
    JibitError,
    TimeoutError,
    TransportError,
    ValidationError,
)
from .models import ApiRequest, Credentials, HttpMethod, TokenPair
from .telemetry import configure_telemetry

__all__ = [
    "IdentityClient",
    "AsyncIdentityClient",
    "IdentityConfig",
    "CacheConfig",
    "RetryConfig",
    "TelemetryConfig",
    "CacheInterface",
    "BaseCache",
    "FileCache",
    "MemoryCache",
    "ApiRequest",
    "Credentials",
    "HttpMethod",
    "TokenPair",
    "ErrorCode",
    "JibitError",
    "ValidationError",
    "AuthError",
    "TransportError",
    "TimeoutError",
    "CacheIOError",
    "InvalidConfigError",
    "configure_telemetry",
]

__version__ = "0.1.0"
