"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.performancy.api.v1 import deals, health, settings

router = APIRouter()

router.include_router(health.router)
router.include_router(deals.router)
router.include_router(settings.router)
