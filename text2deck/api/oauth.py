"""OAuth endpoints.

Routes:
    GET /oauth/start     - Begin authorization: 302 to the provider, state cookie set
    GET /oauth/callback  - Complete authorization: 302 to the app, session cookie set
    GET /api/session     - Report the caller's session phase

The callback is valid only when its ``state`` query parameter matches both
the browser's state cookie and an unconsumed server-side attempt. The state
cookie is cleared on every callback outcome.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response

from text2deck.api.dependencies import get_auth_controller, get_session_store
from text2deck.api.errors import render_error
from text2deck.auth.oauth import AuthFlowController, verify_state_binding
from text2deck.auth.session_store import SessionStore
from text2deck.auth.state_machine import resolve_phase
from text2deck.config import Settings, get_settings
from text2deck.core.security import (
    clear_state_cookie,
    sanitize_log_value,
    set_session_cookie,
    set_state_cookie,
)
from text2deck.errors import Text2DeckError

log = structlog.get_logger(__name__)

router = APIRouter(tags=["oauth"])


@router.get("/oauth/start")
async def oauth_start(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    controller: AuthFlowController = Depends(get_auth_controller),
) -> Response:
    current = await resolve_phase(
        store,
        session_id=request.cookies.get(settings.session_cookie_name),
        state_token=request.cookies.get(settings.state_cookie_name),
    )
    redirect = await controller.start_auth(current)

    response = RedirectResponse(redirect.url, status_code=302)
    set_state_cookie(response, settings, redirect.state_token)
    return response


@router.get("/oauth/callback")
async def oauth_callback(
    request: Request,
    state: str = "",
    code: str | None = None,
    error: str | None = None,
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    controller: AuthFlowController = Depends(get_auth_controller),
) -> Response:
    try:
        verify_state_binding(state, request.cookies.get(settings.state_cookie_name))
        result = await controller.handle_callback(
            state,
            code,
            provider_error=sanitize_log_value(error, max_length=64) or None,
        )
    except Text2DeckError as exc:
        response: Response = render_error(exc)
        clear_state_cookie(response, settings)
        return response

    session = result.session
    max_age = max(1, int((session.expires_at - store.now()).total_seconds()))

    response = RedirectResponse(settings.post_login_redirect, status_code=302)
    set_session_cookie(response, settings, session.session_id, max_age=max_age)
    clear_state_cookie(response, settings)
    return response


@router.get("/api/session")
async def session_status(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Report whether the caller is signed in, mid-handshake, or neither."""
    state = await resolve_phase(
        store,
        session_id=request.cookies.get(settings.session_cookie_name),
        state_token=request.cookies.get(settings.state_cookie_name),
    )
    return {"phase": state.phase.value}
