"""Test doubles for the Jibit Identity SDK: a fake clock and a fake API."""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Callable
from typing import Any

import httpx

BASE_URL = "https://napi.jibit.ir/ide"
GENERATE = "/v1/tokens/generate"
REFRESH = "/v1/tokens/refresh"


class FakeClock:
    """Manually advanced clock returning Unix timestamps."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeJibitApi:
    """Scripted stand-in for the identity API.

    Token endpoints issue numbered pairs; protected endpoints accept only
    the most recently issued access token and answer ``forbidden``
    otherwise. Responses queued with ``queue`` take precedence.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.issued = 0
        self.valid_access_tokens: set[str] = set()
        self.queued: dict[str, list[httpx.Response | Callable[[], httpx.Response]]] = (
            defaultdict(list)
        )
        self.on_request: Callable[[httpx.Request], None] | None = None

    def queue(
        self,
        path: str,
        status_code: int,
        *,
        json_body: Any = None,
        text: str | None = None,
    ) -> None:
        if text is not None:
            self.queued[path].append(lambda: httpx.Response(status_code, text=text))
        else:
            self.queued[path].append(lambda: httpx.Response(status_code, json=json_body))

    def queue_error(self, path: str, exc: Exception) -> None:
        def raise_error() -> httpx.Response:
            raise exc

        self.queued[path].append(raise_error)

    def revoke_all(self) -> None:
        self.valid_access_tokens.clear()

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if self.path_of(r) == path]

    def count(self, path: str) -> int:
        return len(self.calls(path))

    @staticmethod
    def path_of(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/ide")

    def issue(self) -> httpx.Response:
        self.issued += 1
        access, refresh = f"access-{self.issued}", f"refresh-{self.issued}"
        self.valid_access_tokens = {access}
        return httpx.Response(200, json={"accessToken": access, "refreshToken": refresh})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        path = self.path_of(request)
        if self.queued[path]:
            return self.queued[path].pop(0)()

        if path in (GENERATE, REFRESH):
            return self.issue()

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.valid_access_tokens:
            return httpx.Response(
                403, json={"code": "forbidden", "message": "token is not valid"}
            )
        return httpx.Response(200, json={"path": path, "query": dict(request.url.params)})


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)
