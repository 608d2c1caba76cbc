"""Request dispatchers executing logical API calls.

A dispatcher attaches the bearer token when a request needs one, sends
the request, and classifies the outcome. A forbidden response triggers
exactly one token refresh and one re-issue of the original request; the
outcome of that second attempt is final.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..errors import ErrorCode
from ..models import HttpMethod
from ..telemetry import get_logger, trace_operation
from .errors import UNDECODABLE, ErrorFactory

if TYPE_CHECKING:
    import httpx

    from ..models import ApiRequest
    from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
    from .token_manager import AsyncTokenManager, TokenManager


def build_request_kwargs(request: ApiRequest, access_token: str | None) -> dict[str, Any]:
    """Build httpx arguments: JSON body for POST, query string for GET."""
    headers = {"Content-Type": "application/json"}
    if access_token is not None:
        headers["Authorization"] = f"Bearer {access_token}"

    kwargs: dict[str, Any] = {"headers": headers}
    if request.method == HttpMethod.POST:
        kwargs["json"] = request.params
    elif request.params:
        kwargs["params"] = request.params
    return kwargs


def decode_success(response: httpx.Response) -> Any:
    """Return the decoded body of a response, raising for any failure."""
    if not ErrorFactory.is_success(response.status_code):
        raise ErrorFactory.from_http_response(response)
    body = ErrorFactory.decode_body(response)
    if body is UNDECODABLE:
        raise ErrorFactory.undecodable_body(response)
    return body


class RequestDispatcher:
    """Synchronous dispatcher."""

    def __init__(self, executor: SyncHTTPExecutor, tokens: TokenManager) -> None:
        self._executor = executor
        self._tokens = tokens
        self._logger = get_logger()

    def execute(self, request: ApiRequest) -> Any:
        """Execute a request and return its decoded JSON body.

        Raises:
            AuthError: If tokens cannot be obtained, or the request is still
                forbidden after one refresh.
            TransportError: On any other non-2xx status, network failure or
                undecodable body.
        """
        with trace_operation(
            "jibit.request",
            attributes={"http.method": request.method.value, "jibit.path": request.path},
        ):
            if not request.requires_auth:
                return decode_success(self._send(request, None))

            token = self._tokens.ensure_tokens().access_token
            response = self._send(request, token)
            if not ErrorFactory.is_forbidden(response):
                return decode_success(response)

            self._logger.info("Access token rejected, refreshing", path=request.path)
            pair = self._tokens.refresh_tokens(rejected_token=token)
            response = self._send(request, pair.access_token)
            if ErrorFactory.is_forbidden(response):
                raise ErrorFactory.auth_failure(
                    response, "Request forbidden after token refresh", ErrorCode.FORBIDDEN
                )
            return decode_success(response)

    def _send(self, request: ApiRequest, access_token: str | None) -> httpx.Response:
        return self._executor.execute(
            request.method.value,
            request.path,
            **build_request_kwargs(request, access_token),
        )


class AsyncRequestDispatcher:
    """Asynchronous dispatcher."""

    def __init__(self, executor: AsyncHTTPExecutor, tokens: AsyncTokenManager) -> None:
        self._executor = executor
        self._tokens = tokens
        self._logger = get_logger()

    async def execute(self, request: ApiRequest) -> Any:
        """Execute a request and return its decoded JSON body."""
        with trace_operation(
            "jibit.request",
            attributes={"http.method": request.method.value, "jibit.path": request.path},
        ):
            if not request.requires_auth:
                return decode_success(await self._send(request, None))

            token = (await self._tokens.ensure_tokens()).access_token
            response = await self._send(request, token)
            if not ErrorFactory.is_forbidden(response):
                return decode_success(response)

            self._logger.info("Access token rejected, refreshing", path=request.path)
            pair = await self._tokens.refresh_tokens(rejected_token=token)
            response = await self._send(request, pair.access_token)
            if ErrorFactory.is_forbidden(response):
                raise ErrorFactory.auth_failure(
                    response, "Request forbidden after token refresh", ErrorCode.FORBIDDEN
                )
            return decode_success(response)

    async def _send(self, request: ApiRequest, access_token: str | None) -> httpx.Response:
        return await self._executor.execute(
            request.method.value,
            request.path,
            **build_request_kwargs(request, access_token),
        )
