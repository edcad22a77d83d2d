"""OAuth2 authorization-code flow with PKCE.

start_auth():
- Generates a code_verifier and its S256 code_challenge
- Generates an unguessable state_token and stores the attempt under it
- Returns the provider authorization URL carrying state and challenge

handle_callback():
- Consumes the stored attempt (single-use, even if the exchange fails)
- Rejects unknown state (CsrfMismatch) and stale attempts (StateExpired)
- Exchanges the code, presenting the verifier only this server holds
- Writes a new session and returns it

The state token binds the callback to the browser that started the flow
(the route also checks it against the state cookie); the verifier makes an
intercepted authorization code useless to anyone else.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from text2deck.auth.pkce import (
    CODE_CHALLENGE_METHOD,
    derive_code_challenge,
    generate_code_verifier,
    generate_session_id,
    generate_state_token,
    tokens_match,
)
from text2deck.auth.provider import OAuthProvider
from text2deck.auth.session_store import AuthorizationState, SessionStore, SessionToken
from text2deck.auth.state_machine import (
    SessionEvent,
    SessionPhase,
    SessionState,
    advance,
)
from text2deck.config import Settings
from text2deck.errors import (
    ConfigurationError,
    CsrfMismatch,
    MalformedRequest,
    StateExpired,
    Text2DeckError,
    TokenExchangeFailed,
)
from text2deck.telemetry.logging import redact_identifier

log = structlog.get_logger(__name__)

# Live state tokens must be unique; with 256 random bits a retry is never
# expected, the bound only keeps the loop finite.
_MAX_STATE_ATTEMPTS = 3


@dataclass(frozen=True)
class AuthorizationRedirect:
    url: str
    state_token: str
    state: SessionState


@dataclass(frozen=True)
class CallbackResult:
    session: SessionToken
    state: SessionState


def verify_state_binding(received_state: str | None, cookie_state: str | None) -> None:
    """Raise CsrfMismatch unless the callback's state equals the browser's state cookie."""
    if not tokens_match(cookie_state, received_state):
        log.warning(
            "oauth.state_cookie_mismatch",
            has_cookie=bool(cookie_state),
            has_state=bool(received_state),
        )
        raise CsrfMismatch()


class AuthFlowController:
    """Drives the handshake and populates the SessionStore on success."""

    def __init__(
        self,
        settings: Settings,
        store: SessionStore,
        provider: OAuthProvider,
    ) -> None:
        self._settings = settings
        self._store = store
        self._provider = provider

    async def start_auth(self, current: SessionState | None = None) -> AuthorizationRedirect:
        settings = self._settings
        if not settings.provider_configured:
            log.error("oauth.provider_not_configured")
            raise ConfigurationError()

        state_token = await self._new_state_token()
        code_verifier = generate_code_verifier()

        await self._store.put_authorization(
            AuthorizationState(
                state_token=state_token,
                code_verifier=code_verifier,
                created_at=self._store.now(),
            ),
            ttl=settings.auth_state_retention_seconds,
        )

        url = httpx.URL(
            settings.oauth_authorize_url,
            params={
                "client_id": settings.google_client_id,
                "redirect_uri": settings.google_redirect_uri,
                "response_type": "code",
                "scope": settings.oauth_scopes,
                "state": state_token,
                "code_challenge": derive_code_challenge(code_verifier),
                "code_challenge_method": CODE_CHALLENGE_METHOD,
                "access_type": "offline",
                "prompt": "consent",
            },
        )

        state = advance(current or SessionState(), SessionEvent.START, state_token=state_token)
        log.info("oauth.start", state=redact_identifier(state_token), phase=state.phase)
        return AuthorizationRedirect(url=str(url), state_token=state_token, state=state)

    async def handle_callback(
        self,
        received_state: str,
        authorization_code: str | None,
        *,
        provider_error: str | None = None,
    ) -> CallbackResult:
        pending = SessionState(phase=SessionPhase.PENDING, state_token=received_state or None)
        try:
            session = await self._complete(received_state, authorization_code, provider_error)
        except StateExpired:
            self._log_transition(pending, SessionEvent.EXPIRE, "state_expired")
            raise
        except Text2DeckError as exc:
            self._log_transition(pending, SessionEvent.CALLBACK_REJECTED, exc.code)
            raise

        state = advance(pending, SessionEvent.CALLBACK_OK, session_id=session.session_id)
        log.info(
            "oauth.callback_accepted",
            session=redact_identifier(session.session_id),
            expires_at=session.expires_at.isoformat(),
            phase=state.phase,
        )
        return CallbackResult(session=session, state=state)

    async def _complete(
        self,
        received_state: str,
        authorization_code: str | None,
        provider_error: str | None,
    ) -> SessionToken:
        settings = self._settings

        attempt = await self._store.take_authorization(received_state)
        if attempt is None:
            raise CsrfMismatch()

        if attempt.is_expired(self._store.now(), settings.auth_state_ttl_seconds):
            raise StateExpired()

        if provider_error or not authorization_code:
            raise MalformedRequest(
                "The provider did not return an authorization code",
                provider_error=provider_error or "missing_code",
            )

        token = await self._provider.exchange_code(authorization_code, attempt.code_verifier)

        ttl = settings.session_ttl_seconds
        if token.expires_in is not None:
            if token.expires_in <= 0:
                raise TokenExchangeFailed("The provider issued an already-expired token")
            ttl = min(ttl, token.expires_in)

        return await self._store.put(generate_session_id(), token.access_token, ttl)

    async def _new_state_token(self) -> str:
        for _ in range(_MAX_STATE_ATTEMPTS):
            candidate = generate_state_token()
            if not await self._store.has_authorization(candidate):
                return candidate
        raise RuntimeError("Could not allocate a unique state token")

    @staticmethod
    def _log_transition(pending: SessionState, event: SessionEvent, reason: str) -> None:
        state = advance(pending, event)
        log.warning(
            "oauth.callback_rejected",
            state=redact_identifier(pending.state_token),
            reason=reason,
            phase=state.phase,
        )
