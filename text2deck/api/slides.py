"""Slide creation endpoints.

Routes:
    POST /api/create-slides  - Split content and create a presentation
    GET  /api/splitters      - List splitting strategies
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, ValidationError

from text2deck.api.dependencies import get_deck_builder, require_session
from text2deck.api.errors import error_fields
from text2deck.auth.session_store import SessionToken
from text2deck.config import Settings, get_settings
from text2deck.errors import MalformedRequest
from text2deck.slides.builder import SlideDeckBuilder
from text2deck.slides.splitter import build_splitter_config, split, splitter_catalog

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["slides"])


class CreateSlidesRequest(BaseModel):
    title: str = Field(..., max_length=500)
    content: str
    splitter_type: str = Field(..., description="newline | empty_line | max_words | max_chars")
    splitter_config: dict[str, Any] = Field(default_factory=dict)


class CreateSlidesResponse(BaseModel):
    presentation_id: str
    presentation_url: str
    message: str = "Slides created successfully"


async def read_create_request(request: Request) -> CreateSlidesRequest:
    """Parse the JSON body into a CreateSlidesRequest.

    Called from the handler so the session check has already run: an
    unauthenticated caller gets 401 whatever the body holds.
    """
    try:
        payload = await request.json()
    except ValueError as exc:
        raise MalformedRequest("Request body is not valid JSON", fields=["body"]) from exc
    try:
        return CreateSlidesRequest.model_validate(payload)
    except ValidationError as exc:
        raise MalformedRequest(
            "Request body is malformed", fields=error_fields(exc.errors(), skip=0)
        ) from exc


@router.post(
    "/create-slides",
    response_model=CreateSlidesResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": CreateSlidesRequest.model_json_schema()}},
        }
    },
)
async def create_slides(
    request: Request,
    session: SessionToken = Depends(require_session),
    builder: SlideDeckBuilder = Depends(get_deck_builder),
    settings: Settings = Depends(get_settings),
) -> CreateSlidesResponse:
    body = await read_create_request(request)
    title = body.title.strip()
    if not title:
        raise MalformedRequest("title must not be empty")
    if len(body.content) > settings.max_content_chars:
        raise MalformedRequest(
            f"content exceeds {settings.max_content_chars} characters"
        )

    config = build_splitter_config(
        body.splitter_type,
        body.splitter_config,
        default_max_words=settings.default_max_words,
        default_max_chars=settings.default_max_chars,
    )
    segments = split(body.content, config)
    log.info("slides.content_split", splitter=body.splitter_type, segments=len(segments))

    result = await builder.build(title, segments)
    return CreateSlidesResponse(
        presentation_id=result.presentation_id,
        presentation_url=result.presentation_url,
    )


@router.get("/splitters")
async def list_splitters(settings: Settings = Depends(get_settings)) -> list[dict[str, Any]]:
    return splitter_catalog(
        default_max_words=settings.default_max_words,
        default_max_chars=settings.default_max_chars,
    )
