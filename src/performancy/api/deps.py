"""FastAPI dependency injection for the pipeline store."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.performancy.store.pipeline import PipelineStore


def get_store(request: Request) -> PipelineStore:
    """Retrieve the PipelineStore from app.state, 503 if not available."""
    store = getattr(request.app.state, "pipeline_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline store not initialized",
        )
    return store
