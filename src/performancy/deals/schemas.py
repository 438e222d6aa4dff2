"""Pydantic schemas for the deal pipeline -- canonical deals, metrics, Zoho payloads.

Defines all structured types for the pipeline dashboard:
- Enums: DealStage, ZohoDomain
- Canonical deal: DealContact, Deal, DealPatch
- Metrics snapshot: StageMetrics, PipelineMetrics
- CRM connection: ZohoConfig
- Zoho wire payloads: ZohoTokenResponse, ZohoLookup, ZohoDeal, ZohoPageInfo,
  ZohoDealsResponse

DealStage values are the display names shown on the Kanban board, so the
enum can be serialized straight into API responses.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ───────────────────────────────────────────────────────────────────


class DealStage(str, Enum):
    """Sales pipeline stage for a deal, in pipeline order."""

    LEAD = "Lead"
    DISCOVERY = "Discovery"
    QUALIFIED = "Qualified"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"


class ZohoDomain(str, Enum):
    """Regional Zoho data centers (domain suffix after zoho./zohoapis.)."""

    US = "com"
    EU = "eu"
    IN = "in"
    CN = "com.cn"
    AU = "com.au"
    JP = "jp"


# ── Canonical Deal ──────────────────────────────────────────────────────────


class DealContact(BaseModel):
    """Primary contact attached to a deal."""

    name: str
    email: str = ""
    phone: str | None = None


class Deal(BaseModel):
    """A sales opportunity moving through the pipeline stages."""

    id: str
    name: str
    company: str
    value: float = Field(default=0.0, ge=0.0)
    stage: DealStage = DealStage.LEAD
    probability: int = Field(default=10, ge=0, le=100)
    expected_close_date: date
    owner: str
    created_at: datetime
    updated_at: datetime
    contact: DealContact | None = None
    notes: str | None = None


class DealPatch(BaseModel):
    """Partial deal update -- only fields explicitly set are applied.

    A field passed as None is still "set" and clears optional attributes
    (contact, notes). Fields left out of the constructor are untouched.
    """

    name: str | None = None
    company: str | None = None
    value: float | None = Field(default=None, ge=0.0)
    stage: DealStage | None = None
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: date | None = None
    owner: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    contact: DealContact | None = None
    notes: str | None = None

    def present_fields(self) -> dict[str, Any]:
        """Return only the fields the caller explicitly provided."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def apply_to(self, deal: Deal) -> Deal:
        """Merge present fields over a deal, returning a new Deal."""
        updates = self.present_fields()
        # Required Deal fields cannot be cleared by an explicit None.
        for name in list(updates):
            if updates[name] is None and name not in ("contact", "notes"):
                del updates[name]
        return deal.model_copy(update=updates)


# ── Metrics Snapshot ────────────────────────────────────────────────────────


class StageMetrics(BaseModel):
    """Per-stage slice of the pipeline metrics."""

    stage: DealStage
    deal_count: int = 0
    total_value: float = 0.0
    conversion_rate: int = 0


class PipelineMetrics(BaseModel):
    """Aggregate funnel metrics derived from a deal collection.

    Never persisted on its own -- always recomputed from the deals it
    summarizes.
    """

    total_deals: int = 0
    active_deals: int = 0
    pipeline_total: float = 0.0
    weighted_pipeline: float = 0.0
    closed_won_value: float = 0.0
    closed_won_count: int = 0
    conversion_rate: float = 0.0
    stage_distribution: list[StageMetrics] = Field(default_factory=list)


# ── CRM Connection ──────────────────────────────────────────────────────────


class ZohoConfig(BaseModel):
    """Zoho CRM OAuth client configuration owned by the pipeline store.

    Credential fields default to empty strings so incomplete forms can be
    represented and rejected with a domain ValidationError by the store.
    """

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    access_token: str | None = None
    domain: ZohoDomain = ZohoDomain.US

    def missing_fields(self) -> list[str]:
        """Names of required credential fields that are blank."""
        return [
            name
            for name in ("client_id", "client_secret", "refresh_token")
            if not getattr(self, name).strip()
        ]


# ── Zoho Wire Payloads ──────────────────────────────────────────────────────


class ZohoTokenResponse(BaseModel):
    """Response body of the OAuth refresh-token exchange."""

    access_token: str
    expires_in: int = 3600
    token_type: str = "Bearer"


class ZohoLookup(BaseModel):
    """Nested lookup object Zoho uses for Owner, Account_Name, Contact_Name."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str = ""


class ZohoDeal(BaseModel):
    """A record from the Zoho Deals module (only the fields we select)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    Deal_Name: str = ""
    Account_Name: ZohoLookup | None = None
    Amount: float | None = None
    Stage: str | None = None
    Probability: int | None = None
    Closing_Date: date | None = None
    Owner: ZohoLookup | None = None
    Created_Time: datetime | None = None
    Modified_Time: datetime | None = None
    Contact_Name: ZohoLookup | None = None
    Description: str | None = None


class ZohoPageInfo(BaseModel):
    """Pagination block returned alongside a Zoho record list."""

    model_config = ConfigDict(extra="ignore")

    per_page: int = 0
    count: int = 0
    page: int = 1
    more_records: bool = False


class ZohoDealsResponse(BaseModel):
    """GET /Deals response body."""

    data: list[ZohoDeal] = Field(default_factory=list)
    info: ZohoPageInfo = Field(default_factory=ZohoPageInfo)
