"""Prometheus metrics for CRM traffic and background sync health.

Provides:
- crm_requests_total: Counter of Zoho API calls by operation and outcome
- pipeline_sync_failures_total: Counter of swallowed background sync failures
- get_metrics_response(): FastAPI route handler body for /metrics
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest
from starlette.responses import Response

# ── CRM Metrics ──────────────────────────────────────────────────────────────

crm_requests_total = Counter(
    "crm_requests_total",
    "Total CRM API requests",
    ["operation", "outcome"],
)

pipeline_sync_failures_total = Counter(
    "pipeline_sync_failures_total",
    "Background CRM sync failures swallowed by the pipeline store",
    ["operation"],
)


def record_crm_request(operation: str, outcome: str) -> None:
    """Increment the CRM request counter (outcome: success or error)."""
    crm_requests_total.labels(operation=operation, outcome=outcome).inc()


def record_sync_failure(operation: str) -> None:
    """Increment the swallowed-sync-failure counter."""
    pipeline_sync_failures_total.labels(operation=operation).inc()


def get_metrics_response() -> Response:
    """Render all registered metrics in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
