"""Session and authorization-state persistence.

Two kinds of record live in the shared key/value backend, each with an
enforced expiry:

    session:<session_id>         -> {access_token, expires_at}
    oauth_state:<state_token>    -> {code_verifier, created_at}

Session records are written once on a successful callback and read on every
authenticated API call. They are never updated: there is no refresh. A
lookup past ``expires_at`` is indistinguishable from a missing record, and
the stale record is deleted on the way out.

Authorization states are single-use: take_authorization() removes the record
atomically, so a replayed callback finds nothing.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from text2deck.storage.backend import KeyValueBackend
from text2deck.telemetry.logging import redact_identifier

log = structlog.get_logger(__name__)

_SESSION_PREFIX = "session:"
_STATE_PREFIX = "oauth_state:"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class AuthorizationState:
    """One in-flight authorization attempt."""

    state_token: str
    code_verifier: str
    created_at: datetime

    def is_expired(self, now: datetime, ttl_seconds: int) -> bool:
        return now >= self.created_at + timedelta(seconds=ttl_seconds)


@dataclass(frozen=True)
class SessionToken:
    """An authenticated session. The access token never leaves the server."""

    session_id: str
    access_token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionStore:
    """Owns AuthorizationState and SessionToken records for their lifetime."""

    def __init__(self, backend: KeyValueBackend, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #

    async def put(self, session_id: str, access_token: str, ttl: int) -> SessionToken:
        """Store a session whose observable expiry is now + ttl."""
        if ttl <= 0:
            raise ValueError("Session TTL must be positive")
        token = SessionToken(
            session_id=session_id,
            access_token=access_token,
            expires_at=self.now() + timedelta(seconds=ttl),
        )
        await self._backend.set(
            _SESSION_PREFIX + session_id,
            {
                "access_token": token.access_token,
                "expires_at": token.expires_at.isoformat(),
            },
            ttl,
        )
        log.info(
            "session.stored",
            session=redact_identifier(session_id),
            expires_at=token.expires_at.isoformat(),
        )
        return token

    async def get(self, session_id: str) -> SessionToken | None:
        """Return the live session, or None if it is missing or expired."""
        if not session_id:
            return None

        key = _SESSION_PREFIX + session_id
        record = await self._backend.get(key)
        if record is None:
            log.debug("session.lookup_miss", session=redact_identifier(session_id))
            return None

        token = SessionToken(
            session_id=session_id,
            access_token=record["access_token"],
            expires_at=datetime.fromisoformat(record["expires_at"]),
        )
        if token.is_expired(self.now()):
            await self._backend.delete(key)
            log.info("session.expired", session=redact_identifier(session_id))
            return None
        return token

    # ------------------------------------------------------------------ #
    # Authorization state
    # ------------------------------------------------------------------ #

    async def put_authorization(self, state: AuthorizationState, ttl: int) -> None:
        await self._backend.set(
            _STATE_PREFIX + state.state_token,
            {
                "code_verifier": state.code_verifier,
                "created_at": state.created_at.isoformat(),
            },
            ttl,
        )

    async def has_authorization(self, state_token: str) -> bool:
        """True while an unconsumed attempt is stored under state_token."""
        if not state_token:
            return False
        return await self._backend.get(_STATE_PREFIX + state_token) is not None

    async def take_authorization(self, state_token: str) -> AuthorizationState | None:
        """Remove and return the attempt stored under state_token.

        Expiry is not judged here; the caller compares created_at against its
        own TTL so it can tell "expired" from "unknown".
        """
        if not state_token:
            return None
        record = await self._backend.pop(_STATE_PREFIX + state_token)
        if record is None:
            return None
        return AuthorizationState(
            state_token=state_token,
            code_verifier=record["code_verifier"],
            created_at=datetime.fromisoformat(record["created_at"]),
        )
