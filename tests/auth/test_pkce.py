"""Tests for PKCE helpers and opaque token generation."""

from __future__ import annotations

import base64
import hashlib
import re

from text2deck.auth.pkce import (
    CODE_CHALLENGE_METHOD,
    derive_code_challenge,
    generate_code_verifier,
    generate_session_id,
    generate_state_token,
    tokens_match,
)

_UNRESERVED = re.compile(r"^[A-Za-z0-9\-._~]+$")


class TestCodeVerifier:

    def test_length_within_rfc_bounds(self):
        """RFC 7636 requires 43-128 characters."""
        verifier = generate_code_verifier()
        assert 43 <= len(verifier) <= 128
        assert len(verifier) == 64

    def test_uses_unreserved_characters_only(self):
        assert _UNRESERVED.match(generate_code_verifier())

    def test_fresh_per_call(self):
        assert len({generate_code_verifier() for _ in range(100)}) == 100


class TestCodeChallenge:

    def test_method_is_s256(self):
        assert CODE_CHALLENGE_METHOD == "S256"

    def test_matches_sha256_base64url(self):
        verifier = generate_code_verifier()
        expected = (
            base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest())
            .rstrip(b"=")
            .decode()
        )
        assert derive_code_challenge(verifier) == expected

    def test_rfc_7636_appendix_b_vector(self):
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert derive_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_deterministic_and_unpadded(self):
        challenge = derive_code_challenge("a" * 64)
        assert challenge == derive_code_challenge("a" * 64)
        assert "=" not in challenge
        assert len(challenge) == 43


class TestOpaqueTokens:

    def test_state_tokens_unique(self):
        assert len({generate_state_token() for _ in range(200)}) == 200

    def test_session_ids_unique_and_long(self):
        ids = {generate_session_id() for _ in range(200)}
        assert len(ids) == 200
        assert all(len(i) >= 43 for i in ids)


class TestTokensMatch:

    def test_equal_tokens_match(self):
        assert tokens_match("abc", "abc") is True

    def test_different_tokens_do_not_match(self):
        assert tokens_match("abc", "abd") is False

    def test_missing_side_is_mismatch(self):
        """Two absent values are not a match."""
        assert tokens_match(None, None) is False
        assert tokens_match("", "") is False
        assert tokens_match("abc", None) is False
