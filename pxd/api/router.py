"""API router that aggregates all routes."""

from fastapi import APIRouter

from pxd.api.routes import health, search, tags

api_router = APIRouter()

# Public
api_router.include_router(health.router)

# Gated by role
api_router.include_router(tags.router)
api_router.include_router(search.router)
