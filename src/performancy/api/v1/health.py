"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from src.performancy.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Basic liveness check, including whether the CRM is connected."""
    settings = get_settings()
    store = getattr(request.app.state, "pipeline_store", None)
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT.value,
        "crm_connected": bool(store and store.is_zoho_connected),
    }
