"""FastAPI application factory.

Creates the app with CORS, request logging, the v1 API router and lifespan
events that build the pipeline store (restoring persisted CRM config,
seeding demo deals, fetching from Zoho when connected).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from src.performancy.api.v1.router import router as v1_router
from src.performancy.config import get_settings
from src.performancy.core.logging import RequestLoggingMiddleware, configure_structlog
from src.performancy.core.monitoring import get_metrics_response
from src.performancy.deals.crm.zoho import ZohoAdapter
from src.performancy.store.persistence import StateFile
from src.performancy.store.pipeline import PipelineStore


def build_store() -> PipelineStore:
    """Build a PipelineStore wired to a ZohoAdapter from settings."""
    settings = get_settings()
    adapter = ZohoAdapter(
        page_size=settings.ZOHO_PAGE_SIZE,
        max_pages=settings.ZOHO_MAX_PAGES,
        timeout=settings.ZOHO_HTTP_TIMEOUT,
    )
    return PipelineStore(adapter, state_file=StateFile(settings.STATE_FILE))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build and warm the pipeline store on startup."""
    configure_structlog()
    log = structlog.get_logger(__name__)
    settings = get_settings()

    store = build_store()
    store.restore()

    # Environment credentials only bootstrap; a config saved from the UI wins.
    if not store.is_zoho_connected:
        env_config = settings.get_zoho_config()
        if env_config is not None:
            store.set_zoho_config(env_config)

    if settings.SEED_DEMO_DEALS:
        store.load_demo_deals()
    else:
        store.update_metrics()

    await store.fetch_deals()

    app.state.pipeline_store = store
    log.info(
        "app.started",
        crm_connected=store.is_zoho_connected,
        deal_count=len(store.deals),
    )

    yield

    log.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Performancy Pipeline",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(v1_router, prefix="/api/v1")

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for ASGI servers
app = create_app()
