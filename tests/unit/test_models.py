"""Unit tests for SDK models."""

import hashlib

import pytest
from pydantic import ValidationError as PydanticValidationError

from jibit_sdk.errors import ValidationError
from jibit_sdk.models import ApiRequest, CacheEntry, Credentials, HttpMethod, TokenPair


class TestCacheEntry:
    """Tests for CacheEntry model."""

    def test_no_expiry_never_expires(self) -> None:
        """Entry without expires_at should never expire."""
        entry = CacheEntry(value="v")

        assert not entry.is_expired(now=10**12)

    def test_expiry_boundary(self) -> None:
        """Entry should be expired at and after expires_at."""
        entry = CacheEntry(value="v", expires_at=100.0)

        assert not entry.is_expired(now=99.9)
        assert entry.is_expired(now=100.0)
        assert entry.is_expired(now=100.1)

    def test_defaults_to_wall_clock(self) -> None:
        """Without an explicit now, the current time is used."""
        assert CacheEntry(value="v", expires_at=1.0).is_expired()

    def test_serialized_shape(self) -> None:
        """Persisted form should use value and expires_at keys."""
        entry = CacheEntry(value={"a": 1}, expires_at=5.0)

        assert entry.model_dump() == {"value": {"a": 1}, "expires_at": 5.0}

    def test_stored_none_is_valid(self) -> None:
        """An explicit null value is a real entry."""
        assert CacheEntry.model_validate({"value": None}).value is None

    @pytest.mark.parametrize("document", [{}, {"foo": 1}, {"value": 1, "foo": 1}])
    def test_malformed_documents_rejected(self, document: dict[str, object]) -> None:
        """Documents without value or with unknown keys are not entries."""
        with pytest.raises(PydanticValidationError):
            CacheEntry.model_validate(document)


class TestTokenPair:
    """Tests for TokenPair model."""

    def test_parses_api_field_names(self) -> None:
        """Should accept the camelCase names used by the API."""
        pair = TokenPair.model_validate(
            {"accessToken": "a", "refreshToken": "r", "scopes": ["ignored"]}
        )

        assert pair.access_token == "a"
        assert pair.refresh_token == "r"

    def test_accepts_python_field_names(self) -> None:
        """Should also accept snake_case field names."""
        pair = TokenPair(access_token="a", refresh_token="r")

        assert pair.access_token == "a"

    @pytest.mark.parametrize(
        "body",
        [{}, {"accessToken": "a"}, {"accessToken": "", "refreshToken": "r"}],
    )
    def test_requires_both_tokens(self, body: dict[str, str]) -> None:
        """Missing or empty tokens should be rejected."""
        with pytest.raises(PydanticValidationError):
            TokenPair.model_validate(body)

    def test_digest_binds_both_tokens(self) -> None:
        """Digest should be the SHA-256 of both tokens."""
        pair = TokenPair(access_token="a", refresh_token="r")

        assert pair.digest == hashlib.sha256(b"a\nr").hexdigest()
        assert pair.digest != TokenPair(access_token="a", refresh_token="x").digest

    def test_repr_hides_tokens(self) -> None:
        """Tokens should never appear in repr."""
        pair = TokenPair(access_token="secret-access", refresh_token="secret-refresh")

        assert "secret" not in repr(pair)


class TestCredentials:
    """Tests for Credentials model."""

    def test_secret_hidden(self) -> None:
        credentials = Credentials(api_key="key", api_secret="hidden")

        assert "hidden" not in repr(credentials)
        assert credentials.api_secret.get_secret_value() == "hidden"


class TestApiRequest:
    """Tests for ApiRequest model."""

    def test_build_normalizes_method(self) -> None:
        request = ApiRequest.build("post", "/v1/x", {"a": 1})

        assert request.method == HttpMethod.POST
        assert request.params == {"a": 1}
        assert request.requires_auth is True

    def test_build_defaults_params(self) -> None:
        assert ApiRequest.build(HttpMethod.GET, "/v1/x").params == {}

    def test_build_without_auth(self) -> None:
        assert ApiRequest.build("GET", "/v1/x", requires_auth=False).requires_auth is False

    @pytest.mark.parametrize(("method", "path"), [("PATCH", "/v1/x"), ("GET", "")])
    def test_build_rejects_bad_input(self, method: str, path: str) -> None:
        with pytest.raises(ValidationError):
            ApiRequest.build(method, path)
