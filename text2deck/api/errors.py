"""Rendering of domain errors as HTTP responses.

Every Text2DeckError becomes ``{"error": code, "message": ..., ...}`` with
the status the exception class declares. Request-validation failures from
FastAPI are reported as malformed_request so clients see one error shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from text2deck.errors import MalformedRequest, Text2DeckError

log = structlog.get_logger(__name__)


def render_error(exc: Text2DeckError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def error_fields(errors: Sequence[Mapping[str, Any]], *, skip: int = 1) -> list[str]:
    """Dotted field names for validation errors.

    ``skip`` drops the location prefix FastAPI adds ("body", "query"). A
    location with no named part left, such as a JSON decode error at
    ``("body", 12)``, is reported as "body".
    """
    fields = set()
    for err in errors:
        parts = tuple(err.get("loc", ()))[skip:]
        if any(isinstance(part, str) for part in parts):
            fields.add(".".join(str(part) for part in parts))
        else:
            fields.add("body")
    return sorted(fields)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Text2DeckError)
    async def domain_error_handler(request: Request, exc: Text2DeckError) -> JSONResponse:
        log_method = log.error if exc.status_code >= 500 else log.info
        log_method(
            "api.request_failed",
            path=request.url.path,
            method=request.method,
            error=exc.code,
            status=exc.status_code,
        )
        return render_error(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = error_fields(exc.errors())
        log.info("api.malformed_request", path=request.url.path, fields=fields)
        return render_error(MalformedRequest("Request body is malformed", fields=fields))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "app.unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "message": "Internal server error"},
        )
