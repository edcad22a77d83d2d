"""Health check endpoints.

/health        - Liveness check: is the process up?
/health/ready  - Readiness check: is the session backend reachable?

These are public endpoints - no session required.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from text2deck.api.dependencies import get_kv_backend
from text2deck.storage.backend import KeyValueBackend

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def liveness() -> dict:
    """Liveness check - always returns 200 if the process is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/ready")
async def readiness(backend: KeyValueBackend = Depends(get_kv_backend)) -> JSONResponse:
    """Readiness check - checks key/value backend connectivity."""
    is_ready = await backend.ping()
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={
            "status": "ready" if is_ready else "not_ready",
            "kv_backend": "ok" if is_ready else "unreachable",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
