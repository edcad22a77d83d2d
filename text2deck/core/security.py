"""Security middleware and cookie helpers.

Key protections:
- Security headers (CSP, HSTS, frame and MIME-sniffing protections)
- Request size limiting
- Request ID tracking for log correlation
- Log injection prevention via input sanitization
- Session and state cookies that are HttpOnly, Secure and SameSite
"""

from __future__ import annotations

import re
import uuid
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from text2deck.config import Settings

log = structlog.get_logger(__name__)

DEFAULT_MAX_REQUEST_SIZE = 1024 * 1024

# Control characters to strip for log injection prevention
_CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f\x7f-\x9f]")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app: ASGIApp, *, is_production: bool = False) -> None:
        super().__init__(app)
        self._is_production = is_production

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "0"

        if self._is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none'"

        # Responses carry presentation links tied to a user's session
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
        response.headers["Pragma"] = "no-cache"

        # The callback URL carries the code and state; keep it out of Referer
        response.headers["Referrer-Policy"] = "no-referrer"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than max_size with 413."""

    def __init__(self, app: ASGIApp, *, max_size: int = DEFAULT_MAX_REQUEST_SIZE) -> None:
        super().__init__(app)
        self._max_size = max_size

    def _too_large(self, request: Request, size: int | str) -> JSONResponse:
        log.warning(
            "security.request_too_large",
            size=size,
            max_size=self._max_size,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=413,
            content={
                "error": "payload_too_large",
                "message": f"Request body too large. Maximum allowed: {self._max_size} bytes",
            },
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            if not content_length.isdigit():
                return JSONResponse(
                    status_code=400,
                    content={"error": "malformed_request", "message": "Invalid Content-Length"},
                )
            if int(content_length) > self._max_size:
                return self._too_large(request, content_length)

        # Chunked bodies have no Content-Length; count bytes while buffering
        elif request.method in ("POST", "PUT", "PATCH"):
            total_bytes = 0
            chunks: list[bytes] = []
            async for chunk in request.stream():
                total_bytes += len(chunk)
                if total_bytes > self._max_size:
                    return self._too_large(request, total_bytes)
                chunks.append(chunk)

            body = b"".join(chunks)

            async def receive() -> dict[str, Any]:
                return {"type": "http.request", "body": body, "more_body": False}

            request._receive = receive  # type: ignore[attr-defined]

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a fresh request_id to structlog context and echo it as X-Request-ID."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()


def sanitize_log_value(value: str | None, max_length: int = 200) -> str:
    """Sanitize a user-supplied value before logging.

    Strips control characters (including newlines) and truncates, so a
    crafted value cannot forge log entries.
    """
    if not value:
        return ""
    sanitized = _CONTROL_CHARS_PATTERN.sub("", value.replace("\x00", ""))
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


# ------------------------------------------------------------------ #
# Cookies
# ------------------------------------------------------------------ #


def cookie_kwargs(
    settings: Settings, *, max_age: int, samesite: str | None = None
) -> dict[str, Any]:
    """Keyword arguments for Response.set_cookie shared by every cookie we issue."""
    return {
        "max_age": max_age,
        "path": "/",
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": samesite or settings.cookie_samesite,
    }


def set_session_cookie(
    response: Response, settings: Settings, session_id: str, *, max_age: int
) -> None:
    response.set_cookie(
        settings.session_cookie_name, session_id, **cookie_kwargs(settings, max_age=max_age)
    )


def set_state_cookie(response: Response, settings: Settings, state_token: str) -> None:
    # The callback arrives as a cross-site navigation from the provider;
    # a strict cookie would not be sent with it.
    response.set_cookie(
        settings.state_cookie_name,
        state_token,
        **cookie_kwargs(settings, max_age=settings.auth_state_retention_seconds, samesite="lax"),
    )


def clear_state_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.state_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )
