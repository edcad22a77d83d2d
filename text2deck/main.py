"""FastAPI application entrypoint.

Application startup order:
1. Load settings (from environment)
2. Select the key/value backend for sessions and authorization state
3. Register middleware (CORS, security headers, size limit, request ID)
4. Register exception handlers and include all routers

Shutdown order:
1. Close the key/value backend connection pool
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from text2deck import __version__
from text2deck.api.errors import register_exception_handlers
from text2deck.api.router import api_router, public_router
from text2deck.config import get_settings
from text2deck.core.security import (
    RequestIdMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from text2deck.storage.backend import get_kv_backend
from text2deck.telemetry.logging import configure_logging

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    settings = get_settings()

    configure_logging(
        json_logs=settings.is_prod,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    log.info(
        "app.starting",
        environment=settings.environment,
        provider_configured=settings.provider_configured,
    )
    if not await app.state.kv_backend.ping():
        log.warning("app.kv_backend_unreachable")

    log.info("app.ready")
    yield

    await app.state.kv_backend.close()
    log.info("app.shutdown")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title="Text2Deck",
        description="Turn raw text into a Google Slides presentation.",
        version=__version__,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
        openapi_url="/openapi.json" if settings.is_dev else None,
        lifespan=lifespan,
    )

    # Created eagerly (no I/O) so the app is usable without running lifespan
    app.state.kv_backend = get_kv_backend(settings)

    # ------------------------------------------------------------------ #
    # Middleware (added in reverse order - last added = first executed)
    # ------------------------------------------------------------------ #
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_prod)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_request_bytes)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(public_router)
    app.include_router(api_router)

    return app


# Module-level app instance for uvicorn
app = create_app()
