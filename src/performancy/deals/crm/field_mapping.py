"""Stage vocabulary and field mappings between Zoho Deals and canonical Deals.

Defines:
- ZOHO_STAGE_MAP: Zoho stage name -> canonical DealStage (unknown -> Lead).
- CANONICAL_TO_ZOHO_STAGE: the single Zoho name written for each stage.
- ZOHO_FIELD_MAP: canonical field -> Zoho API field for outbound writes.
- ZOHO_DEAL_FIELDS: field selection for GET /Deals.
- to_zoho_fields(): Converts a DealPatch into a Zoho record body.
- from_zoho_record(): Converts a Zoho record into a canonical Deal.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from src.performancy.deals.schemas import (
    Deal,
    DealContact,
    DealPatch,
    DealStage,
    ZohoDeal,
)
from src.performancy.deals.stages import default_probability


# ── Stage Mappings ─────────────────────────────────────────────────────────
# Zoho's standard stage picklist first, then the canonical names so that
# orgs whose picklist was renamed to match the board also map cleanly.

ZOHO_STAGE_MAP: dict[str, DealStage] = {
    "Qualification": DealStage.LEAD,
    "Needs Analysis": DealStage.DISCOVERY,
    "Value Proposition": DealStage.QUALIFIED,
    "Identify Decision Makers": DealStage.QUALIFIED,
    "Proposal/Price Quote": DealStage.PROPOSAL,
    "Negotiation/Review": DealStage.NEGOTIATION,
    "Closed Won": DealStage.CLOSED_WON,
    "Closed Lost": DealStage.CLOSED_LOST,
    "Lead": DealStage.LEAD,
    "Discovery": DealStage.DISCOVERY,
    "Qualified": DealStage.QUALIFIED,
    "Proposal": DealStage.PROPOSAL,
    "Negotiation": DealStage.NEGOTIATION,
}

# Several Zoho names map to the same stage; writes always use the first
# entry of ZOHO_STAGE_MAP for that stage, spelled out here.
CANONICAL_TO_ZOHO_STAGE: dict[DealStage, str] = {
    DealStage.LEAD: "Qualification",
    DealStage.DISCOVERY: "Needs Analysis",
    DealStage.QUALIFIED: "Value Proposition",
    DealStage.PROPOSAL: "Proposal/Price Quote",
    DealStage.NEGOTIATION: "Negotiation/Review",
    DealStage.CLOSED_WON: "Closed Won",
    DealStage.CLOSED_LOST: "Closed Lost",
}


# ── Field Mappings ─────────────────────────────────────────────────────────

ZOHO_FIELD_MAP: dict[str, str] = {
    "name": "Deal_Name",
    "value": "Amount",
    "stage": "Stage",
    "expected_close_date": "Closing_Date",
    "probability": "Probability",
    "notes": "Description",
}

ZOHO_DEAL_FIELDS: list[str] = [
    "Deal_Name",
    "Account_Name",
    "Amount",
    "Stage",
    "Probability",
    "Closing_Date",
    "Owner",
    "Created_Time",
    "Modified_Time",
    "Contact_Name",
    "Description",
]


# ── Conversion Functions ───────────────────────────────────────────────────


def to_canonical_stage(zoho_stage: str | None) -> DealStage:
    """Map a Zoho stage name to a DealStage, defaulting to Lead."""
    if not zoho_stage:
        return DealStage.LEAD
    return ZOHO_STAGE_MAP.get(zoho_stage, DealStage.LEAD)


def to_zoho_stage(stage: DealStage) -> str:
    """Map a DealStage to the Zoho stage name used for writes."""
    return CANONICAL_TO_ZOHO_STAGE[DealStage(stage)]


def to_zoho_fields(patch: DealPatch) -> dict[str, Any]:
    """Convert the fields present on a patch into a Zoho record body.

    Fields the caller did not set are omitted so Zoho leaves them untouched.
    Canonical fields without a writable Zoho counterpart (company, owner,
    contact, timestamps) are ignored.

    Args:
        patch: DealPatch with the fields to write.

    Returns:
        Dict suitable for one entry of the Zoho ``data`` array.
    """
    record: dict[str, Any] = {}

    for field_name, value in patch.present_fields().items():
        if field_name not in ZOHO_FIELD_MAP:
            continue

        # Only notes may be cleared; a None on any other field is dropped.
        if value is None and field_name != "notes":
            continue

        zoho_name = ZOHO_FIELD_MAP[field_name]
        if field_name == "stage":
            record[zoho_name] = to_zoho_stage(value)
        elif field_name == "expected_close_date":
            record[zoho_name] = value.isoformat()
        else:
            record[zoho_name] = value

    return record


def from_zoho_record(record: ZohoDeal | dict[str, Any]) -> Deal:
    """Convert a Zoho Deals record into a canonical Deal.

    Missing nested lookups fall back to "N/A" (company) and "Unassigned"
    (owner). A missing or zero probability falls back to the stage default.

    Args:
        record: ZohoDeal or the raw record dict from the API.

    Returns:
        Canonical Deal.
    """
    if not isinstance(record, ZohoDeal):
        record = ZohoDeal.model_validate(record)

    stage = to_canonical_stage(record.Stage)
    now = datetime.now(timezone.utc)
    created_at = record.Created_Time or now
    updated_at = record.Modified_Time or created_at

    contact = None
    if record.Contact_Name is not None:
        contact = DealContact(name=record.Contact_Name.name, email="")

    return Deal(
        id=record.id,
        name=record.Deal_Name,
        company=(record.Account_Name.name if record.Account_Name else "") or "N/A",
        value=record.Amount or 0.0,
        stage=stage,
        probability=record.Probability or default_probability(stage),
        expected_close_date=record.Closing_Date or _as_date(created_at),
        owner=record.Owner.name if record.Owner and record.Owner.name else "Unassigned",
        created_at=created_at,
        updated_at=updated_at,
        contact=contact,
        notes=record.Description,
    )


def _as_date(value: datetime) -> date:
    return value.date()
