"""CRM connection settings endpoints.

Save, inspect, test and drop the Zoho CRM connection, plus the persisted
sidebar flag. Saving and testing are user-initiated, so CRM errors are
reported back instead of swallowed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.performancy.api.deps import get_store
from src.performancy.api.errors import crm_error_to_http
from src.performancy.deals.crm.exceptions import CRMError
from src.performancy.deals.schemas import ZohoConfig, ZohoDomain
from src.performancy.store.pipeline import PipelineStore

router = APIRouter(tags=["settings"])


class ZohoSettingsRequest(BaseModel):
    """Request body for saving the Zoho connection."""

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    domain: ZohoDomain = ZohoDomain.US


class ZohoStatusResponse(BaseModel):
    """Connection status with secrets masked."""

    connected: bool
    domain: ZohoDomain | None = None
    client_id: str | None = None
    is_loading: bool = False


class ConnectionTestResponse(BaseModel):
    """Result of a successful connection test."""

    status: str = "ok"
    deal_count: int


class SidebarResponse(BaseModel):
    sidebar_collapsed: bool


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def _status(store: PipelineStore) -> ZohoStatusResponse:
    config = store.zoho_config
    return ZohoStatusResponse(
        connected=store.is_zoho_connected,
        domain=config.domain if config else None,
        client_id=_mask(config.client_id) if config else None,
        is_loading=store.is_loading,
    )


@router.get("/settings/zoho", response_model=ZohoStatusResponse)
async def get_zoho_settings(store: PipelineStore = Depends(get_store)) -> ZohoStatusResponse:
    """Current CRM connection status."""
    return _status(store)


@router.put("/settings/zoho", response_model=ZohoStatusResponse)
async def save_zoho_settings(
    body: ZohoSettingsRequest,
    store: PipelineStore = Depends(get_store),
) -> ZohoStatusResponse:
    """Validate and save the connection, then fetch deals (fetch failures are only logged)."""
    try:
        await store.save_zoho_config(ZohoConfig(**body.model_dump()))
    except CRMError as exc:
        raise crm_error_to_http(exc) from exc
    return _status(store)


@router.delete("/settings/zoho", response_model=ZohoStatusResponse)
async def delete_zoho_settings(store: PipelineStore = Depends(get_store)) -> ZohoStatusResponse:
    """Disconnect the CRM; local deals are kept."""
    store.disconnect()
    return _status(store)


@router.post("/settings/zoho/test", response_model=ConnectionTestResponse)
async def test_zoho_connection(
    store: PipelineStore = Depends(get_store),
) -> ConnectionTestResponse:
    """Fetch deals from the CRM and report failure to the caller."""
    try:
        count = await store.test_connection()
    except CRMError as exc:
        raise crm_error_to_http(exc) from exc
    return ConnectionTestResponse(deal_count=count)


@router.post("/sync", response_model=ZohoStatusResponse)
async def sync_with_crm(store: PipelineStore = Depends(get_store)) -> ZohoStatusResponse:
    """Re-initialize the CRM client and refetch deals (failures are logged only)."""
    await store.sync_with_crm()
    return _status(store)


@router.post("/ui/sidebar/toggle", response_model=SidebarResponse)
async def toggle_sidebar(store: PipelineStore = Depends(get_store)) -> SidebarResponse:
    """Flip the persisted sidebar collapse flag."""
    return SidebarResponse(sidebar_collapsed=store.toggle_sidebar())
