"""Session-establishment state machine.

A browser context is in exactly one phase:

    NO_SESSION --START--------------> PENDING(state_token)
    PENDING    --START--------------> PENDING(new state_token)
    PENDING    --CALLBACK_OK--------> AUTHENTICATED(session_id)
    PENDING    --CALLBACK_REJECTED--> NO_SESSION
    PENDING    --EXPIRE-------------> NO_SESSION
    AUTHENTICATED --START-----------> PENDING(state_token)
    AUTHENTICATED --EXPIRE----------> NO_SESSION

The phase is resolved from server-side records (resolve_phase), never from
the mere presence of a cookie: a stale sid cookie still means NO_SESSION.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from text2deck.auth.session_store import SessionStore


class SessionPhase(StrEnum):
    NO_SESSION = "no_session"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"


class SessionEvent(StrEnum):
    START = "start"
    CALLBACK_OK = "callback_ok"
    CALLBACK_REJECTED = "callback_rejected"
    EXPIRE = "expire"


class InvalidTransition(Exception):
    """Raised when an event is not allowed in the current phase."""


_TRANSITIONS: dict[tuple[SessionPhase, SessionEvent], SessionPhase] = {
    (SessionPhase.NO_SESSION, SessionEvent.START): SessionPhase.PENDING,
    (SessionPhase.PENDING, SessionEvent.START): SessionPhase.PENDING,
    (SessionPhase.PENDING, SessionEvent.CALLBACK_OK): SessionPhase.AUTHENTICATED,
    (SessionPhase.PENDING, SessionEvent.CALLBACK_REJECTED): SessionPhase.NO_SESSION,
    (SessionPhase.PENDING, SessionEvent.EXPIRE): SessionPhase.NO_SESSION,
    (SessionPhase.AUTHENTICATED, SessionEvent.START): SessionPhase.PENDING,
    (SessionPhase.AUTHENTICATED, SessionEvent.EXPIRE): SessionPhase.NO_SESSION,
}


@dataclass(frozen=True)
class SessionState:
    phase: SessionPhase = SessionPhase.NO_SESSION
    state_token: str | None = None
    session_id: str | None = None


def advance(
    current: SessionState,
    event: SessionEvent,
    *,
    state_token: str | None = None,
    session_id: str | None = None,
) -> SessionState:
    """Apply event to current and return the next state.

    START requires state_token; CALLBACK_OK requires session_id.
    """
    target = _TRANSITIONS.get((current.phase, event))
    if target is None:
        raise InvalidTransition(f"{event} is not allowed in phase {current.phase}")

    if target is SessionPhase.PENDING:
        if not state_token:
            raise InvalidTransition("Entering PENDING requires a state_token")
        return SessionState(phase=target, state_token=state_token)
    if target is SessionPhase.AUTHENTICATED:
        if not session_id:
            raise InvalidTransition("Entering AUTHENTICATED requires a session_id")
        return SessionState(phase=target, session_id=session_id)
    return SessionState()


async def resolve_phase(
    store: SessionStore,
    *,
    session_id: str | None,
    state_token: str | None,
) -> SessionState:
    """Derive a browser's phase from the records its cookies point at."""
    if session_id and await store.get(session_id) is not None:
        return SessionState(phase=SessionPhase.AUTHENTICATED, session_id=session_id)
    if state_token and await store.has_authorization(state_token):
        return SessionState(phase=SessionPhase.PENDING, state_token=state_token)
    return SessionState()
