"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from app.api.v1 import catalog, deals, health, pins

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(catalog.router)
api_router.include_router(deals.router)
api_router.include_router(pins.router)


def get_api_router() -> APIRouter:
    return api_router
