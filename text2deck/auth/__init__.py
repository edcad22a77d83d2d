"""OAuth2 + PKCE handshake, session storage and session state machine."""
