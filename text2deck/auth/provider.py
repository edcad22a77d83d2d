"""OAuth provider HTTP client.

Performs the one network call of the handshake: the authorization-code
exchange at the provider's token endpoint. Every way that call can fail
(transport error, timeout, non-2xx such as invalid_grant, a body without an
access token) surfaces as TokenExchangeFailed. Nothing is retried: an
authorization code is single-use at the provider too.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from text2deck.config import Settings
from text2deck.errors import TokenExchangeFailed

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProviderToken:
    """The parts of the token endpoint response this service uses."""

    access_token: str
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str = ""


class OAuthProvider(Protocol):
    async def exchange_code(self, code: str, code_verifier: str) -> ProviderToken: ...


class OAuthProviderClient:
    """Token-endpoint client for a standard OAuth2 provider (Google)."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def exchange_code(self, code: str, code_verifier: str) -> ProviderToken:
        settings = self._settings
        form = {
            "code": code,
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret.get_secret_value(),
            "redirect_uri": settings.google_redirect_uri,
            "grant_type": "authorization_code",
            "code_verifier": code_verifier,
        }
        timeout = httpx.Timeout(
            settings.http_timeout_seconds,
            connect=settings.http_connect_timeout_seconds,
        )

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(
                    settings.oauth_token_url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            log.warning("oauth.token_exchange_unreachable", error=type(exc).__name__)
            raise TokenExchangeFailed("The provider could not be reached") from exc

        if response.status_code >= 400:
            provider_error = _provider_error(response)
            log.warning(
                "oauth.token_exchange_rejected",
                status=response.status_code,
                provider_error=provider_error,
            )
            raise TokenExchangeFailed(provider_error=provider_error)

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenExchangeFailed("The provider returned a malformed token response") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise TokenExchangeFailed("The provider response did not contain an access token")

        expires_in = payload.get("expires_in")
        return ProviderToken(
            access_token=access_token,
            expires_in=int(expires_in) if expires_in is not None else None,
            token_type=payload.get("token_type", "Bearer"),
            scope=payload.get("scope", ""),
        )


def _provider_error(response: httpx.Response) -> str:
    """Extract the OAuth error code (e.g. invalid_grant) from a rejection."""
    try:
        body = response.json()
    except ValueError:
        return f"http_{response.status_code}"
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"http_{response.status_code}"
