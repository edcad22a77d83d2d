"""Slide deck construction.

A deck is built as an explicit three-stage pipeline, each stage producing a
typed result so a failure is attributable to exactly one stage:

    plan_deck(segments)        -> DeckPlan            (local, pure)
    api.create_presentation()  -> CreatedPresentation (remote)
    api.batch_update(plan)     -> PresentationResult  (remote)

Every segment becomes two operations: createSlide with the TITLE_AND_BODY
layout, then insertText into that slide's body placeholder. The batch ends
with a deleteObject for each slide the service created with the
presentation, so the deck holds only the segments. Object ids are
assigned client-side and derived from the slide number, so the insert can
reference a placeholder that does not exist until the batch is applied.
Operations are submitted in index order; slide N's pair always precedes
slide N+1's.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from text2deck.errors import MalformedRequest
from text2deck.slides.client import CreatedPresentation, PresentationApi

log = structlog.get_logger(__name__)

SLIDE_LAYOUT = "TITLE_AND_BODY"


class OperationKind(StrEnum):
    CREATE_SLIDE = "createSlide"
    INSERT_TEXT = "insertText"
    DELETE_OBJECT = "deleteObject"


def slide_object_id(slide_number: int) -> str:
    return f"t2d_slide_{slide_number:04d}"


def body_object_id(slide_number: int) -> str:
    return f"t2d_body_{slide_number:04d}"


@dataclass(frozen=True)
class SlideOperation:
    """One unit of remote mutation, positioned by ``index`` in the batch."""

    index: int
    kind: OperationKind
    slide_number: int = 0
    text: str | None = None
    object_id: str | None = None

    @property
    def slide_id(self) -> str:
        return slide_object_id(self.slide_number)

    def to_request(self) -> dict[str, Any]:
        """Render as a Slides API batchUpdate request."""
        if self.kind is OperationKind.CREATE_SLIDE:
            return {
                "createSlide": {
                    "objectId": self.slide_id,
                    "insertionIndex": self.slide_number - 1,
                    "slideLayoutReference": {"predefinedLayout": SLIDE_LAYOUT},
                    # TITLE stays unmapped and empty; segment text goes in the body
                    "placeholderIdMappings": [
                        {
                            "layoutPlaceholder": {"type": "BODY", "index": 0},
                            "objectId": body_object_id(self.slide_number),
                        }
                    ],
                }
            }
        if self.kind is OperationKind.DELETE_OBJECT:
            return {"deleteObject": {"objectId": self.object_id}}
        return {
            "insertText": {
                "objectId": body_object_id(self.slide_number),
                "insertionIndex": 0,
                "text": self.text or "",
            }
        }


@dataclass(frozen=True)
class DeckPlan:
    operations: tuple[SlideOperation, ...]

    @property
    def slide_count(self) -> int:
        return sum(1 for op in self.operations if op.kind is OperationKind.CREATE_SLIDE)

    def requests(self) -> list[dict[str, Any]]:
        ordered = sorted(self.operations, key=lambda op: op.index)
        return [op.to_request() for op in ordered]

    def removing(self, object_ids: Sequence[str]) -> DeckPlan:
        """Return this plan followed by a deleteObject for each of object_ids."""
        operations = list(self.operations)
        for object_id in object_ids:
            operations.append(
                SlideOperation(
                    index=len(operations),
                    kind=OperationKind.DELETE_OBJECT,
                    object_id=object_id,
                )
            )
        return DeckPlan(operations=tuple(operations))


@dataclass(frozen=True)
class PresentationResult:
    presentation_id: str
    presentation_url: str


def plan_deck(segments: Sequence[str]) -> DeckPlan:
    """Translate segments into ordered create/insert operation pairs."""
    operations: list[SlideOperation] = []
    for slide_number, segment in enumerate(segments, start=1):
        operations.append(
            SlideOperation(
                index=len(operations),
                kind=OperationKind.CREATE_SLIDE,
                slide_number=slide_number,
            )
        )
        operations.append(
            SlideOperation(
                index=len(operations),
                kind=OperationKind.INSERT_TEXT,
                slide_number=slide_number,
                text=segment,
            )
        )
    return DeckPlan(operations=tuple(operations))


class SlideDeckBuilder:
    """Creates one presentation per build() call through a PresentationApi."""

    def __init__(self, api: PresentationApi, *, url_template: str) -> None:
        self._api = api
        self._url_template = url_template

    async def build(self, title: str, segments: Sequence[str]) -> PresentationResult:
        if not segments:
            # Checked before any remote call so no empty deck is left behind
            raise MalformedRequest("Content produced no slides")

        plan = plan_deck(segments)

        created: CreatedPresentation = await self._api.create_presentation(title)
        log.info(
            "slides.presentation_created",
            presentation_id=created.presentation_id,
            slides=plan.slide_count,
        )

        batch = plan.removing(created.default_slide_ids)
        await self._api.batch_update(created.presentation_id, batch.requests())
        log.info(
            "slides.batch_submitted",
            presentation_id=created.presentation_id,
            operations=len(batch.operations),
        )

        return PresentationResult(
            presentation_id=created.presentation_id,
            presentation_url=self._url_template.format(
                presentation_id=created.presentation_id
            ),
        )
