"""PKCE (RFC 7636) and opaque token generation.

The verifier is 64 URL-safe characters (384 bits of entropy), well inside
the 43-128 character range the RFC allows. The challenge is the S256
transform: base64url(sha256(verifier)) without padding.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

CODE_CHALLENGE_METHOD = "S256"

_VERIFIER_BYTES = 48
_STATE_BYTES = 32
_SESSION_BYTES = 32


def generate_code_verifier() -> str:
    return secrets.token_urlsafe(_VERIFIER_BYTES)


def derive_code_challenge(code_verifier: str) -> str:
    """Return the S256 code challenge for code_verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state_token() -> str:
    return secrets.token_urlsafe(_STATE_BYTES)


def generate_session_id() -> str:
    return secrets.token_urlsafe(_SESSION_BYTES)


def tokens_match(expected: str | None, received: str | None) -> bool:
    """Constant-time comparison that treats a missing side as a mismatch."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode(), received.encode())
