"""Domain exception hierarchy.

Every failure the service can report to a client is a Text2DeckError
subclass carrying a stable machine-readable ``code`` and the HTTP status the
API layer maps it to. Modules raise these directly; the exception handlers
registered in ``text2deck.main`` render them.

    Text2DeckError
    ├── ConfigurationError
    ├── AuthError
    │   ├── CsrfMismatch
    │   ├── StateExpired
    │   ├── TokenExchangeFailed
    │   └── Unauthenticated
    ├── ValidationError
    │   ├── InvalidConfig
    │   └── MalformedRequest
    ├── RemoteError
    │   ├── RemoteUnavailable
    │   ├── RemoteRejected
    │   └── PartialApplyUnknown
    └── StorageError
        └── BackendUnavailable
"""

from __future__ import annotations

from typing import Any


class Text2DeckError(Exception):
    """Base class for all errors surfaced to API clients."""

    code: str = "internal_error"
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON body returned to the client."""
        return {"error": self.code, "message": self.message, **self.extra}


class ConfigurationError(Text2DeckError):
    """Required provider settings are absent."""

    code = "configuration_error"
    status_code = 500
    default_message = "OAuth provider is not configured"


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthError(Text2DeckError):
    """Authentication failures. Clients must restart the OAuth flow."""

    status_code = 400

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["restart_auth"] = "/oauth/start"
        return body


class CsrfMismatch(AuthError):
    code = "csrf_mismatch"
    default_message = "Authorization state does not match an in-flight request"


class StateExpired(AuthError):
    code = "state_expired"
    default_message = "Authorization attempt has expired"


class TokenExchangeFailed(AuthError):
    code = "token_exchange_failed"
    status_code = 502
    default_message = "The provider rejected the authorization code exchange"


class Unauthenticated(AuthError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(Text2DeckError):
    """The request is well-formed HTTP but cannot be processed as given."""

    status_code = 400


class InvalidConfig(ValidationError):
    code = "invalid_config"
    default_message = "Invalid splitter configuration"


class MalformedRequest(ValidationError):
    code = "malformed_request"
    default_message = "Malformed request"


# ---------------------------------------------------------------------------
# Remote presentation API
# ---------------------------------------------------------------------------


class RemoteError(Text2DeckError):
    """Failures talking to the presentation API. Never retried automatically."""

    status_code = 502


class RemoteUnavailable(RemoteError):
    code = "remote_unavailable"
    default_message = "The presentation service could not be reached"


class RemoteRejected(RemoteError):
    code = "remote_rejected"
    default_message = "The presentation service rejected the request"


class PartialApplyUnknown(RemoteError):
    """The batch was sent but no response was observed.

    Some or all slides may exist; retrying may create a duplicate deck.
    """

    code = "partial_apply_unknown"
    default_message = (
        "The slide batch was sent but its outcome is unknown; "
        "check the presentation before retrying"
    )

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retry_safe"] = False
        return body


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(Text2DeckError):
    status_code = 503


class BackendUnavailable(StorageError):
    code = "backend_unavailable"
    default_message = "Session storage is unavailable"
