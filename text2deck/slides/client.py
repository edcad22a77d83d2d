"""Google Slides REST client.

Two calls are used: create a presentation, then apply one batchUpdate. The
client classifies failures so the caller can tell them apart:

- RemoteUnavailable: the request never reached the service (DNS, connect
  refused, connect/pool timeout), or, for the create call, any transport
  failure at all.
- RemoteRejected: a response arrived and was non-2xx or unusable.
- PartialApplyUnknown: the batch was sent but the transport failed before a
  response was observed. Slides may or may not exist.

No call is retried here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from text2deck.errors import PartialApplyUnknown, RemoteRejected, RemoteUnavailable

log = structlog.get_logger(__name__)

# Failures raised before any request bytes can have reached the server
_NOT_SENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.PoolTimeout,
    httpx.ProxyError,
    httpx.UnsupportedProtocol,
)


@dataclass(frozen=True)
class CreatedPresentation:
    """A new presentation and the slides the service put in it unasked."""

    presentation_id: str
    default_slide_ids: tuple[str, ...] = ()


class PresentationApi(Protocol):
    """The capability SlideDeckBuilder needs from a presentation service."""

    async def create_presentation(self, title: str) -> CreatedPresentation: ...

    async def batch_update(
        self, presentation_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]: ...


class GoogleSlidesClient:
    """Presentation API client bound to one user's access token.

    Use as an async context manager; the HTTP client lives for the duration
    of one request's handling.
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str,
        timeout_seconds: float,
        connect_timeout_seconds: float,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds)
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GoogleSlidesClient:
        self._http_client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Authorization": f"Bearer {self._access_token}"},
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise RuntimeError("GoogleSlidesClient not initialized. Use 'async with client:'")
        return self._http_client

    async def create_presentation(self, title: str) -> CreatedPresentation:
        """Create a presentation; Slides starts it with one blank title slide."""
        try:
            response = await self._get_http_client().post(
                "/presentations", json={"title": title}
            )
        except httpx.HTTPError as exc:
            log.warning("slides.create_unreachable", error=type(exc).__name__)
            raise RemoteUnavailable() from exc

        body = _checked_json(response, "create_presentation")
        presentation_id = body.get("presentationId")
        if not isinstance(presentation_id, str) or not presentation_id:
            raise RemoteRejected("Create response did not include a presentationId")

        slides = body.get("slides")
        default_slide_ids = tuple(
            slide["objectId"]
            for slide in (slides if isinstance(slides, list) else [])
            if isinstance(slide, dict) and isinstance(slide.get("objectId"), str)
        )
        return CreatedPresentation(presentation_id, default_slide_ids)

    async def batch_update(
        self, presentation_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Submit requests as one ordered batch; the service applies them in order."""
        try:
            response = await self._get_http_client().post(
                f"/presentations/{presentation_id}:batchUpdate",
                json={"requests": requests},
            )
        except _NOT_SENT_ERRORS as exc:
            log.warning("slides.batch_unreachable", error=type(exc).__name__)
            raise RemoteUnavailable() from exc
        except httpx.HTTPError as exc:
            log.error(
                "slides.batch_outcome_unknown",
                presentation_id=presentation_id,
                error=type(exc).__name__,
            )
            raise PartialApplyUnknown(presentation_id=presentation_id) from exc

        return _checked_json(response, "batch_update")


def _checked_json(response: httpx.Response, operation: str) -> dict[str, Any]:
    """Return the JSON body of a 2xx response, else raise RemoteRejected."""
    if response.status_code >= 300:
        message = _remote_message(response)
        log.warning(
            "slides.remote_rejected",
            operation=operation,
            status=response.status_code,
            remote_message=message,
        )
        raise RemoteRejected(message, remote_status=response.status_code)

    try:
        body = response.json()
    except ValueError as exc:
        raise RemoteRejected(f"Malformed {operation} response") from exc
    if not isinstance(body, dict):
        raise RemoteRejected(f"Malformed {operation} response")
    return body


def _remote_message(response: httpx.Response) -> str:
    """Pull the human message out of a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return f"Presentation service returned HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Presentation service returned HTTP {response.status_code}"
