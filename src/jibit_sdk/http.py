"""HTTP client factories for the Jibit Identity SDK."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .telemetry import SDK_VERSION

if TYPE_CHECKING:
    from .config import IdentityConfig

USER_AGENT = f"jibit-sdk/{SDK_VERSION} Python"


def _timeout(config: IdentityConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.connect_timeout,
        read=config.timeout,
        write=config.timeout,
        pool=config.timeout,
    )


def create_http_client(config: IdentityConfig) -> httpx.Client:
    """Create configured sync HTTP client.

    Args:
        config: SDK configuration.

    Returns:
        Configured httpx.Client.
    """
    return httpx.Client(
        base_url=config.base_url_str,
        timeout=_timeout(config),
        headers={
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        },
        follow_redirects=False,
    )


def create_async_http_client(config: IdentityConfig) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        config: SDK configuration.

    Returns:
        Configured httpx.AsyncClient.
    """
    return httpx.AsyncClient(
        base_url=config.base_url_str,
        timeout=_timeout(config),
        headers={
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        },
        follow_redirects=False,
    )
