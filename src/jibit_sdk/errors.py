"""Error classes for the Jibit Identity SDK.

Implements a structured error hierarchy with error codes and correlation
IDs so failures can be logged and traced consistently.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the Jibit Identity SDK."""

    # Authentication errors (1xxx)
    TOKEN_REQUEST_REJECTED = "AUTH_1001"
    FORBIDDEN = "AUTH_1002"
    TOKEN_RESPONSE_INVALID = "AUTH_1003"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "VAL_2001"
    INVALID_CONFIG = "VAL_2002"

    # Network errors (3xxx)
    TRANSPORT_ERROR = "NET_3001"
    TIMEOUT_ERROR = "NET_3002"
    UNDECODABLE_BODY = "NET_3003"

    # Server errors (5xxx)
    HTTP_ERROR = "SRV_5001"

    # Cache errors (6xxx)
    CACHE_IO_ERROR = "CACHE_6001"


class JibitError(Exception):
    """Base error for the Jibit Identity SDK with structured error information."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if isinstance(code, str) else code.value
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(JibitError, ValueError):
    """Malformed cache key or caller-supplied parameter."""

    def __init__(
        self,
        message: str,
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            correlation_id=correlation_id,
            details=details,
        )


class AuthError(JibitError):
    """Token generation or refresh rejected, or a request still forbidden after refresh."""

    def __init__(
        self,
        message: str = "Token request rejected",
        code: ErrorCode = ErrorCode.TOKEN_REQUEST_REJECTED,
        *,
        status_code: int | None = None,
        body: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code,
            status_code=status_code,
            correlation_id=correlation_id,
            details={"body": body} if body is not None else None,
        )
        self.body = body


class TransportError(JibitError):
    """Non-2xx response, network failure, or undecodable body."""

    def __init__(
        self,
        message: str = "Request failed",
        code: ErrorCode = ErrorCode.TRANSPORT_ERROR,
        *,
        status_code: int | None = None,
        body: Any = None,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if body is not None:
            details["body"] = body
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(
            message,
            code,
            status_code=status_code,
            correlation_id=correlation_id,
            details=details,
        )
        self.body = body
        self.__cause__ = cause


class TimeoutError(TransportError):
    """Outbound request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.TIMEOUT_ERROR,
            correlation_id=correlation_id,
            cause=cause,
        )
        self.timeout_seconds = timeout_seconds
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class CacheIOError(JibitError):
    """Cache backing medium could not be read or written."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, ErrorCode.CACHE_IO_ERROR, details=details)
        self.__cause__ = cause


class InvalidConfigError(JibitError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
