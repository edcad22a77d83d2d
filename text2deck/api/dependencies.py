"""FastAPI dependencies wiring the core components into request handling.

Key dependencies:
- get_session_store: SessionStore over the app's shared key/value backend
- get_auth_controller: AuthFlowController for the OAuth routes
- require_session: Resolve the session cookie to a live SessionToken
- get_deck_builder: SlideDeckBuilder bound to the session's access token

Handlers hold no state of their own; everything per-request is built here.
require_session must be declared before get_deck_builder in a handler's
signature so an unauthenticated request fails before any slide work starts.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from text2deck.auth.oauth import AuthFlowController
from text2deck.auth.provider import OAuthProvider, OAuthProviderClient
from text2deck.auth.session_store import SessionStore, SessionToken
from text2deck.config import Settings, get_settings
from text2deck.errors import Unauthenticated
from text2deck.slides.builder import SlideDeckBuilder
from text2deck.slides.client import GoogleSlidesClient
from text2deck.storage.backend import KeyValueBackend
from text2deck.telemetry.logging import bind_session_context


def get_kv_backend(request: Request) -> KeyValueBackend:
    return request.app.state.kv_backend  # type: ignore[no-any-return]


def get_session_store(backend: KeyValueBackend = Depends(get_kv_backend)) -> SessionStore:
    return SessionStore(backend)


def get_oauth_provider(settings: Settings = Depends(get_settings)) -> OAuthProvider:
    return OAuthProviderClient(settings)


def get_auth_controller(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    provider: OAuthProvider = Depends(get_oauth_provider),
) -> AuthFlowController:
    return AuthFlowController(settings, store, provider)


async def require_session(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
) -> SessionToken:
    """Return the caller's live session or raise Unauthenticated (401)."""
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise Unauthenticated()

    session = await store.get(session_id)
    if session is None:
        raise Unauthenticated("Session is missing or expired")

    bind_session_context(session_id)
    return session


async def get_deck_builder(
    session: SessionToken = Depends(require_session),
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[SlideDeckBuilder, None]:
    async with GoogleSlidesClient(
        session.access_token,
        base_url=settings.slides_api_base_url,
        timeout_seconds=settings.http_timeout_seconds,
        connect_timeout_seconds=settings.http_connect_timeout_seconds,
    ) as api:
        yield SlideDeckBuilder(api, url_template=settings.presentation_url_template)
