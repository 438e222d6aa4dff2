"""REST API endpoints for the deal pipeline.

Thin layer over PipelineStore: list/get/create/update deals, move deals
between stages (optimistic, CRM sync best-effort), the Kanban pipeline view
and the metrics snapshot.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.performancy.api.deps import get_store
from src.performancy.api.errors import crm_error_to_http
from src.performancy.deals.crm.exceptions import CRMError
from src.performancy.deals.schemas import (
    Deal,
    DealContact,
    DealPatch,
    DealStage,
    PipelineMetrics,
)
from src.performancy.store.pipeline import PipelineStore

router = APIRouter(tags=["deals"])


# ── Response Schemas ─────────────────────────────────────────────────────────


class PipelineResponse(BaseModel):
    """Kanban view: deals grouped by stage plus the metrics snapshot."""

    stages: dict[str, list[Deal]] = Field(default_factory=dict)
    stage_counts: dict[str, int] = Field(default_factory=dict)
    metrics: PipelineMetrics | None = None


# ── Request Schemas ──────────────────────────────────────────────────────────


class CreateDealRequest(BaseModel):
    """Request body for creating a deal."""

    name: str
    company: str | None = None
    value: float = Field(default=0.0, ge=0.0)
    stage: DealStage = DealStage.LEAD
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: date | None = None
    owner: str | None = None
    contact: DealContact | None = None
    notes: str | None = None


class UpdateDealRequest(BaseModel):
    """Request body for updating a deal (all fields optional)."""

    name: str | None = None
    company: str | None = None
    value: float | None = Field(default=None, ge=0.0)
    stage: DealStage | None = None
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: date | None = None
    owner: str | None = None
    contact: DealContact | None = None
    notes: str | None = None


class MoveStageRequest(BaseModel):
    """Request body for moving a deal to another stage."""

    stage: DealStage


# ── Deal Endpoints ───────────────────────────────────────────────────────────


@router.get("/deals", response_model=list[Deal])
async def list_deals(
    stage: DealStage | None = Query(default=None),
    store: PipelineStore = Depends(get_store),
) -> list[Deal]:
    """List deals, optionally filtered by stage."""
    deals = store.deals
    if stage is not None:
        deals = [d for d in deals if d.stage == stage]
    return deals


@router.get("/deals/pipeline", response_model=PipelineResponse)
async def pipeline_view(store: PipelineStore = Depends(get_store)) -> PipelineResponse:
    """Deals grouped by stage in pipeline order."""
    columns = store.deals_by_stage()
    return PipelineResponse(
        stages={stage.value: deals for stage, deals in columns.items()},
        stage_counts={stage.value: len(deals) for stage, deals in columns.items()},
        metrics=store.metrics,
    )


@router.get("/deals/{deal_id}", response_model=Deal)
async def get_deal(deal_id: str, store: PipelineStore = Depends(get_store)) -> Deal:
    """Get a single deal by ID."""
    deal = store.get_deal(deal_id)
    if deal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {deal_id}",
        )
    return deal


@router.post("/deals", response_model=Deal, status_code=201)
async def create_deal(
    body: CreateDealRequest,
    store: PipelineStore = Depends(get_store),
) -> Deal:
    """Create a deal (in the CRM first when connected)."""
    patch = DealPatch(**body.model_dump(exclude_unset=True))
    try:
        return await store.create_deal(patch)
    except CRMError as exc:
        raise crm_error_to_http(exc) from exc


@router.patch("/deals/{deal_id}", response_model=Deal)
async def update_deal(
    deal_id: str,
    body: UpdateDealRequest,
    store: PipelineStore = Depends(get_store),
) -> Deal:
    """Merge the provided fields into a deal (local only)."""
    patch = DealPatch(**body.model_dump(exclude_unset=True))
    deal = store.update_deal(deal_id, patch)
    if deal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {deal_id}",
        )
    return deal


@router.post("/deals/{deal_id}/stage", response_model=Deal)
async def move_deal_to_stage(
    deal_id: str,
    body: MoveStageRequest,
    store: PipelineStore = Depends(get_store),
) -> Deal:
    """Move a deal to another stage. CRM sync failures do not fail the request."""
    deal = await store.move_deal_to_stage(deal_id, body.stage)
    if deal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {deal_id}",
        )
    return deal


# ── Metrics Endpoints ────────────────────────────────────────────────────────


@router.get("/metrics/pipeline", response_model=PipelineMetrics)
async def pipeline_metrics(store: PipelineStore = Depends(get_store)) -> PipelineMetrics:
    """Current metrics snapshot (computed on demand if never computed)."""
    return store.metrics or store.update_metrics()
