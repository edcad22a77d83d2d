"""
Shared test fixtures for pytest.

Provides common fakes and test data for all test modules:
- fake_settings: Test environment configuration (in-memory backend)
- frozen_clock: Controllable clock for expiry tests
- kv_backend / session_store: In-memory storage wired to the frozen clock
- fake_provider: OAuth provider double returning a fixed access token
- fake_api: Presentation API double recording every call
- test_app / client: FastAPI app with dependency overrides + async HTTP client
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import FastAPI

from text2deck.auth.provider import ProviderToken
from text2deck.auth.session_store import SessionStore
from text2deck.config import Environment, Settings, get_settings
from text2deck.slides.client import CreatedPresentation
from text2deck.storage.backend import InMemoryKeyValueBackend

TEST_ACCESS_TOKEN = "ya29.test-access-token"


# ------------------------------------------------------------------ #
# Session-scoped: clear settings cache between test sessions
# ------------------------------------------------------------------ #

@pytest.fixture(autouse=True, scope="session")
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so test overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ------------------------------------------------------------------ #
# Fakes
# ------------------------------------------------------------------ #

class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def monotonic(self) -> float:
        return self.now.timestamp()


class FakePresentationApi:
    """Records calls in order; optionally raises from either stage."""

    def __init__(
        self,
        presentation_id: str = "pres-123",
        default_slide_ids: tuple[str, ...] = ("p",),
    ) -> None:
        self.presentation_id = presentation_id
        self.default_slide_ids = default_slide_ids
        self.calls: list[tuple[str, Any]] = []
        self.create_error: Exception | None = None
        self.batch_error: Exception | None = None

    async def create_presentation(self, title: str) -> CreatedPresentation:
        self.calls.append(("create_presentation", title))
        if self.create_error is not None:
            raise self.create_error
        return CreatedPresentation(self.presentation_id, self.default_slide_ids)

    async def batch_update(
        self, presentation_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        self.calls.append(("batch_update", (presentation_id, requests)))
        if self.batch_error is not None:
            raise self.batch_error
        return {"presentationId": presentation_id, "replies": [{} for _ in requests]}


# ------------------------------------------------------------------ #
# Settings & storage
# ------------------------------------------------------------------ #

@pytest.fixture
def fake_settings() -> Settings:
    """Test environment settings with safe defaults."""
    return Settings(
        environment=Environment.TEST,
        google_client_id="test-client-id.apps.googleusercontent.com",
        google_client_secret="test-client-secret",  # type: ignore[arg-type]
        google_redirect_uri="https://app.example.com/oauth/callback",
        redis_url="",
        cors_allowed_origins=["https://app.example.com"],
    )


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def kv_backend(frozen_clock: FrozenClock) -> InMemoryKeyValueBackend:
    return InMemoryKeyValueBackend(clock=frozen_clock.monotonic)


@pytest.fixture
def session_store(kv_backend: InMemoryKeyValueBackend, frozen_clock: FrozenClock) -> SessionStore:
    return SessionStore(kv_backend, clock=frozen_clock)


@pytest.fixture
def fake_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.exchange_code.return_value = ProviderToken(
        access_token=TEST_ACCESS_TOKEN,
        expires_in=3599,
        scope="https://www.googleapis.com/auth/presentations",
    )
    return provider


@pytest.fixture
def fake_api() -> FakePresentationApi:
    return FakePresentationApi()


# ------------------------------------------------------------------ #
# App & HTTP client
# ------------------------------------------------------------------ #

@pytest.fixture
def test_app(
    fake_settings: Settings,
    session_store: SessionStore,
    fake_provider: AsyncMock,
    kv_backend: InMemoryKeyValueBackend,
    monkeypatch: pytest.MonkeyPatch,
) -> FastAPI:
    """Create FastAPI test app instance with test settings and fakes.

    The session store and OAuth provider are overridden so tests control
    time and the provider's answers. Slide building is left to individual
    tests, which override get_deck_builder as needed.
    """
    from text2deck.api.dependencies import (
        get_kv_backend,
        get_oauth_provider,
        get_session_store,
    )
    from text2deck.main import create_app

    monkeypatch.setattr("text2deck.main.get_settings", lambda: fake_settings)
    app = create_app()

    app.dependency_overrides[get_settings] = lambda: fake_settings
    app.dependency_overrides[get_kv_backend] = lambda: kv_backend
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_oauth_provider] = lambda: fake_provider
    return app


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client for testing the FastAPI application.

    Plain http base URL: Secure cookies set by the app are never replayed
    from the jar, so every test states the cookies it sends explicitly.
    """
    transport = httpx.ASGITransport(app=test_app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as ac:
        yield ac
