"""Centralized response classification and error factory.

Decides whether a response is a success, the forbidden signal that
triggers a token refresh, or a plain failure, and builds the matching
SDK error.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import httpx

from ..errors import (
    AuthError,
    ErrorCode,
    JibitError,
    TimeoutError,
    TransportError,
)

FORBIDDEN_CODE = "forbidden"


class _Undecodable:
    """Marker for a body that is not valid JSON."""

    def __repr__(self) -> str:
        return "UNDECODABLE"


UNDECODABLE = _Undecodable()


class ErrorFactory:
    """Classifies identity API responses and builds SDK errors from them.

    Every error carries an error code and a correlation id, plus the HTTP
    status and the decoded body (raw text when the body is not JSON)
    whenever a response exists.
    """

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a unique correlation ID."""
        return str(uuid.uuid4())

    @staticmethod
    def is_success(status_code: int) -> bool:
        return 200 <= status_code <= 299

    @staticmethod
    def decode_body(response: httpx.Response) -> Any:
        """Decode a JSON body, returning ``UNDECODABLE`` if it is not JSON."""
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return UNDECODABLE

    @staticmethod
    def is_forbidden(response: httpx.Response) -> bool:
        """Check for the signal that the access token was rejected.

        A response is forbidden only when its status is outside 2xx and its
        JSON body is an object whose ``code`` equals ``"forbidden"``.
        """
        if ErrorFactory.is_success(response.status_code):
            return False
        body = ErrorFactory.decode_body(response)
        return isinstance(body, dict) and body.get("code") == FORBIDDEN_CODE

    @staticmethod
    def _body_for_error(response: httpx.Response) -> Any:
        body = ErrorFactory.decode_body(response)
        return response.text if body is UNDECODABLE else body

    @staticmethod
    def _describe(body: Any, fallback: str) -> str:
        if isinstance(body, dict):
            message = body.get("message") or body.get("code")
            if message:
                return f"{fallback}: {message}"
        return fallback

    @staticmethod
    def from_http_response(
        response: httpx.Response,
        *,
        correlation_id: str | None = None,
    ) -> TransportError:
        """Create error for a non-2xx response.

        Args:
            response: HTTP response object.
            correlation_id: Optional correlation ID for tracing.

        Returns:
            TransportError carrying the status and decoded (or raw) body.
        """
        body = ErrorFactory._body_for_error(response)
        return TransportError(
            ErrorFactory._describe(body, f"Request failed with status {response.status_code}"),
            ErrorCode.HTTP_ERROR,
            status_code=response.status_code,
            body=body,
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
        )

    @staticmethod
    def undecodable_body(
        response: httpx.Response,
        *,
        correlation_id: str | None = None,
    ) -> TransportError:
        """Create error for a successful status whose body is not JSON."""
        return TransportError(
            "Response body is not valid JSON",
            ErrorCode.UNDECODABLE_BODY,
            status_code=response.status_code,
            body=response.text,
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
        )

    @staticmethod
    def auth_failure(
        response: httpx.Response,
        message: str,
        code: ErrorCode = ErrorCode.TOKEN_REQUEST_REJECTED,
        *,
        correlation_id: str | None = None,
    ) -> AuthError:
        """Create error for a rejected token request or a persistent forbidden."""
        body = ErrorFactory._body_for_error(response)
        return AuthError(
            ErrorFactory._describe(body, message),
            code,
            status_code=response.status_code,
            body=body,
            correlation_id=correlation_id or ErrorFactory.generate_correlation_id(),
        )

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> JibitError:
        """Create SDK error from exception.

        Args:
            exc: Original exception.
            correlation_id: Optional correlation ID for tracing.
            timeout_seconds: Configured timeout, recorded on timeout errors.

        Returns:
            Appropriate JibitError subclass.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, JibitError):
            if exc.correlation_id is None:
                exc.correlation_id = correlation_id
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(
                f"Request timed out: {exc}",
                correlation_id=correlation_id,
                timeout_seconds=timeout_seconds,
                cause=exc,
            )

        if isinstance(exc, httpx.ConnectError):
            return TransportError(
                f"Connection failed: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        if isinstance(exc, httpx.HTTPError):
            return TransportError(
                f"HTTP error: {exc}",
                correlation_id=correlation_id,
                cause=exc,
            )

        return TransportError(
            f"Unexpected error: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )
