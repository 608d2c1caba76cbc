"""
Shared test fixtures for Jibit Identity SDK tests.

Provides configuration, token stores on a fake clock, and an HTTP client
wired to the scripted fake identity API.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest

from jibit_sdk.cache import FileCache, MemoryCache
from jibit_sdk.client import IdentityClient
from jibit_sdk.config import CacheConfig, IdentityConfig, RetryConfig

from tests.fakes import BASE_URL, FakeClock, FakeJibitApi


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def base_config(cache_dir: Path) -> IdentityConfig:
    """Provide a basic SDK configuration for testing."""
    return IdentityConfig(
        api_key="test-api-key",
        api_secret="test-api-secret",
        retry=RetryConfig(max_retries=0),
        cache=CacheConfig(directory=cache_dir),
    )


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def file_cache(cache_dir: Path, clock: FakeClock) -> FileCache:
    return FileCache(cache_dir, clock=clock)


@pytest.fixture
def fake_api() -> FakeJibitApi:
    return FakeJibitApi()


@pytest.fixture
def http_client(fake_api: FakeJibitApi) -> Iterator[httpx.Client]:
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    yield client
    client.close()


@pytest.fixture
def client(
    base_config: IdentityConfig,
    memory_cache: MemoryCache,
    http_client: httpx.Client,
) -> Iterator[IdentityClient]:
    with IdentityClient(base_config, cache=memory_cache, http_client=http_client) as c:
        yield c
