"""Tests for the OAuth provider token-exchange client.

All HTTP calls are mocked at httpx.AsyncClient.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from text2deck.auth.provider import OAuthProviderClient
from text2deck.errors import TokenExchangeFailed

TOKEN_URL = "https://oauth2.googleapis.com/token"


def _response(status_code: int, json_body=None, *, content: bytes | None = None) -> httpx.Response:
    request = httpx.Request("POST", TOKEN_URL)
    if content is not None:
        return httpx.Response(status_code, content=content, request=request)
    return httpx.Response(status_code, json=json_body, request=request)


@pytest.fixture
def mock_http():
    with patch("text2deck.auth.provider.httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        mock_client_class.return_value.__aexit__ = AsyncMock(return_value=False)
        yield mock_client_class, mock_client


class TestExchangeCode:
    """Authorization-code exchange at the token endpoint."""

    @pytest.mark.asyncio
    async def test_successful_exchange(self, fake_settings, mock_http):
        """The verifier and client credentials are posted as form data."""
        _, mock_client = mock_http
        mock_client.post.return_value = _response(
            200,
            {
                "access_token": "ya29.fresh",
                "expires_in": 3599,
                "token_type": "Bearer",
                "scope": "https://www.googleapis.com/auth/presentations",
            },
        )

        token = await OAuthProviderClient(fake_settings).exchange_code("auth-code", "verifier-xyz")

        assert token.access_token == "ya29.fresh"
        assert token.expires_in == 3599

        call = mock_client.post.call_args
        assert call.args[0] == TOKEN_URL
        form = call.kwargs["data"]
        assert form["code"] == "auth-code"
        assert form["code_verifier"] == "verifier-xyz"
        assert form["grant_type"] == "authorization_code"
        assert form["client_id"] == fake_settings.google_client_id
        assert form["client_secret"] == "test-client-secret"
        assert form["redirect_uri"] == fake_settings.google_redirect_uri

    @pytest.mark.asyncio
    async def test_missing_expires_in_is_none(self, fake_settings, mock_http):
        _, mock_client = mock_http
        mock_client.post.return_value = _response(200, {"access_token": "ya29.x"})

        token = await OAuthProviderClient(fake_settings).exchange_code("c", "v")

        assert token.expires_in is None
        assert token.token_type == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_grant_is_reported(self, fake_settings, mock_http):
        """A rejected exchange carries the provider's error code."""
        _, mock_client = mock_http
        mock_client.post.return_value = _response(
            400, {"error": "invalid_grant", "error_description": "Bad Request"}
        )

        with pytest.raises(TokenExchangeFailed) as exc_info:
            await OAuthProviderClient(fake_settings).exchange_code("reused", "v")

        assert exc_info.value.extra["provider_error"] == "invalid_grant"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, fake_settings, mock_http):
        _, mock_client = mock_http
        mock_client.post.return_value = _response(500, content=b"upstream exploded")

        with pytest.raises(TokenExchangeFailed) as exc_info:
            await OAuthProviderClient(fake_settings).exchange_code("c", "v")

        assert exc_info.value.extra["provider_error"] == "http_500"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [httpx.ConnectError("refused"), httpx.ReadTimeout("slow")])
    async def test_transport_errors(self, fake_settings, mock_http, error):
        _, mock_client = mock_http
        mock_client.post.side_effect = error

        with pytest.raises(TokenExchangeFailed):
            await OAuthProviderClient(fake_settings).exchange_code("c", "v")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            _response(200, {"token_type": "Bearer"}),
            _response(200, ["not", "an", "object"]),
            _response(200, content=b"not json"),
        ],
    )
    async def test_unusable_success_body(self, fake_settings, mock_http, response):
        _, mock_client = mock_http
        mock_client.post.return_value = response

        with pytest.raises(TokenExchangeFailed):
            await OAuthProviderClient(fake_settings).exchange_code("c", "v")

    @pytest.mark.asyncio
    async def test_timeouts_from_settings(self, fake_settings, mock_http):
        mock_client_class, mock_client = mock_http
        mock_client.post.return_value = _response(200, {"access_token": "ya29.x"})

        await OAuthProviderClient(fake_settings).exchange_code("c", "v")

        timeout = mock_client_class.call_args.kwargs["timeout"]
        assert isinstance(timeout, httpx.Timeout)
        assert timeout.connect == fake_settings.http_connect_timeout_seconds
        assert timeout.read == fake_settings.http_timeout_seconds

