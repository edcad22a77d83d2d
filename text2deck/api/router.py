"""Main API router - aggregates all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from text2deck.api import health, oauth, slides

# Public router (no session required)
public_router = APIRouter()
public_router.include_router(health.router)
public_router.include_router(oauth.router)

# Slide creation API
api_router = APIRouter()
api_router.include_router(slides.router)
