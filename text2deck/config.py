"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (or a .env file in dev).
This is the single source of truth for configuration - nothing is hardcoded
elsewhere.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Application
    # ------------------------------------------------------------------ #
    environment: Environment = Environment.DEV
    debug: bool = False

    # ------------------------------------------------------------------ #
    # OAuth provider (Google)
    # ------------------------------------------------------------------ #
    google_client_id: str = Field(
        default="",
        description="OAuth client ID registered with the provider",
    )
    google_client_secret: SecretStr = Field(
        default=SecretStr(""),
        description="OAuth client secret used at the token endpoint",
    )
    google_redirect_uri: str = Field(
        default="http://localhost:8000/oauth/callback",
        description="Redirect URI registered with the provider (points at /oauth/callback)",
    )
    oauth_authorize_url: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth",
        description="Provider authorization endpoint",
    )
    oauth_token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Provider token endpoint",
    )
    oauth_scopes: str = Field(
        default=(
            "https://www.googleapis.com/auth/presentations "
            "https://www.googleapis.com/auth/drive.file"
        ),
        description="Space-separated scopes requested at authorization",
    )

    # ------------------------------------------------------------------ #
    # Authorization flow & sessions
    # ------------------------------------------------------------------ #
    auth_state_ttl_seconds: int = Field(
        default=600,
        ge=30,
        description="Lifetime of an in-flight authorization attempt",
    )
    session_ttl_seconds: int = Field(
        default=14 * 24 * 60 * 60,
        ge=60,
        description="Upper bound on session lifetime (capped by the access token's expires_in)",
    )
    session_cookie_name: str = "sid"
    state_cookie_name: str = "oauth_state"
    cookie_samesite: Literal["lax", "strict"] = "lax"
    cookie_secure: bool = True
    post_login_redirect: str = Field(
        default="/app",
        description="Where the browser lands after a successful callback",
    )

    # ------------------------------------------------------------------ #
    # Presentation API (Google Slides)
    # ------------------------------------------------------------------ #
    slides_api_base_url: str = Field(
        default="https://slides.googleapis.com/v1",
        description="Slides REST API root",
    )
    presentation_url_template: str = Field(
        default="https://docs.google.com/presentation/d/{presentation_id}/edit",
        description="Public URL of a created presentation",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Overall bound on any outbound HTTP call",
    )
    http_connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Bound on establishing outbound connections",
    )

    # ------------------------------------------------------------------ #
    # Splitting
    # ------------------------------------------------------------------ #
    default_max_words: int = Field(default=50, ge=1)
    default_max_chars: int = Field(default=500, ge=1)
    max_content_chars: int = Field(
        default=200_000,
        ge=1,
        description="Largest content accepted by /api/create-slides",
    )

    # ------------------------------------------------------------------ #
    # Infrastructure
    # ------------------------------------------------------------------ #
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for sessions and authorization state. Empty selects in-memory.",
    )
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:8000"],
        description="Allowed CORS origins. In production, set to actual frontend URLs.",
    )
    max_request_bytes: int = Field(
        default=1024 * 1024,
        ge=1024,
        description="Largest request body accepted",
    )

    # ------------------------------------------------------------------ #
    # Derived / Computed
    # ------------------------------------------------------------------ #
    @model_validator(mode="after")
    def _set_debug_from_env(self) -> Settings:
        if self.environment == Environment.DEV:
            self.debug = True
        return self

    @model_validator(mode="after")
    def _validate_production_settings(self) -> Settings:
        """Refuse to start in production without real credentials.

        In-process state would split sessions between workers, so production
        also requires a shared Redis backend.
        """
        if self.environment != Environment.PROD:
            return self

        _placeholder_tokens: set[str] = {"changeme", "secret", "default", "test", "dev"}

        errors: list[str] = []

        if not self.google_client_id.strip():
            errors.append("GOOGLE_CLIENT_ID must be set in production.")

        client_secret = self.google_client_secret.get_secret_value().strip().lower()
        if not client_secret:
            errors.append("GOOGLE_CLIENT_SECRET must be set in production.")
        elif client_secret in _placeholder_tokens:
            errors.append("GOOGLE_CLIENT_SECRET contains a placeholder value.")

        if not self.redis_url:
            errors.append("REDIS_URL must be set in production.")

        if not self.cookie_secure:
            errors.append("COOKIE_SECURE cannot be disabled in production.")

        if errors:
            raise RuntimeError(
                "PRODUCTION STARTUP BLOCKED -- Invalid settings:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )

        return self

    @property
    def is_dev(self) -> bool:
        return self.environment in (Environment.DEV, Environment.TEST)

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PROD

    @property
    def auth_state_retention_seconds(self) -> int:
        """How long a stale attempt is kept so its callback can report state_expired.

        Expiry itself is judged from the attempt's created_at against
        auth_state_ttl_seconds; the record and the state cookie outlive it.
        """
        return self.auth_state_ttl_seconds * 2

    @property
    def provider_configured(self) -> bool:
        """True when every setting the OAuth handshake needs is present."""
        return bool(
            self.google_client_id.strip()
            and self.google_client_secret.get_secret_value().strip()
            and self.google_redirect_uri.strip()
            and self.oauth_authorize_url.strip()
            and self.oauth_token_url.strip()
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings singleton.

    Use FastAPI dependency injection via Depends(get_settings) in endpoints,
    or call directly in non-request contexts (startup, scripts).
    """
    return Settings()
