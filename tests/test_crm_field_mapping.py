"""Unit tests for Zoho <-> canonical stage and field mapping."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.performancy.deals.crm.field_mapping import (
    CANONICAL_TO_ZOHO_STAGE,
    ZOHO_STAGE_MAP,
    from_zoho_record,
    to_canonical_stage,
    to_zoho_fields,
    to_zoho_stage,
)
from src.performancy.deals.schemas import DealPatch, DealStage
from src.performancy.deals.stages import STAGE_ORDER


def _zoho_record(**overrides) -> dict:
    record = {
        "id": "5725767000000411001",
        "Deal_Name": "ERP Rollout",
        "Account_Name": {"id": "acc-1", "name": "Indústria Metal"},
        "Amount": 250000,
        "Stage": "Negotiation/Review",
        "Probability": 75,
        "Closing_Date": "2026-03-15",
        "Owner": {"id": "u-1", "name": "Thais Cano", "email": "thais@example.com"},
        "Created_Time": "2026-01-10T10:00:00-03:00",
        "Modified_Time": "2026-01-12T14:30:00-03:00",
        "Contact_Name": {"id": "c-1", "name": "Paulo Santos"},
        "Description": "Phase 1 only",
    }
    record.update(overrides)
    return record


class TestStageMapping:
    """Zoho stage vocabulary."""

    @pytest.mark.parametrize(
        ("zoho_stage", "expected"),
        [
            ("Qualification", DealStage.LEAD),
            ("Needs Analysis", DealStage.DISCOVERY),
            ("Identify Decision Makers", DealStage.QUALIFIED),
            ("Proposal/Price Quote", DealStage.PROPOSAL),
            ("Closed Lost", DealStage.CLOSED_LOST),
            ("Negotiation", DealStage.NEGOTIATION),
        ],
    )
    def test_known_stages(self, zoho_stage, expected):
        assert to_canonical_stage(zoho_stage) == expected

    def test_unknown_stage_defaults_to_lead(self):
        assert to_canonical_stage("Closed Lost to Competition") == DealStage.LEAD
        assert to_canonical_stage("") == DealStage.LEAD
        assert to_canonical_stage(None) == DealStage.LEAD

    def test_reverse_table_matches_first_entry(self):
        """The explicit reverse table agrees with first-match over ZOHO_STAGE_MAP."""
        for stage in STAGE_ORDER:
            first = next(name for name, value in ZOHO_STAGE_MAP.items() if value == stage)
            assert CANONICAL_TO_ZOHO_STAGE[stage] == first

    def test_reverse_mapping_round_trips(self):
        for stage in STAGE_ORDER:
            assert to_canonical_stage(to_zoho_stage(stage)) == stage


class TestFromZohoRecord:
    """Zoho record -> canonical Deal."""

    def test_maps_all_fields(self):
        deal = from_zoho_record(_zoho_record())

        assert deal.id == "5725767000000411001"
        assert deal.name == "ERP Rollout"
        assert deal.company == "Indústria Metal"
        assert deal.value == 250000
        assert deal.stage == DealStage.NEGOTIATION
        assert deal.probability == 75
        assert deal.expected_close_date == date(2026, 3, 15)
        assert deal.owner == "Thais Cano"
        assert deal.created_at.astimezone(timezone.utc) == datetime(
            2026, 1, 10, 13, 0, tzinfo=timezone.utc
        )
        assert deal.contact is not None
        assert deal.contact.name == "Paulo Santos"
        assert deal.contact.email == ""
        assert deal.notes == "Phase 1 only"

    def test_missing_lookups_use_defaults(self):
        deal = from_zoho_record(
            _zoho_record(Account_Name=None, Owner=None, Contact_Name=None, Description=None)
        )

        assert deal.company == "N/A"
        assert deal.owner == "Unassigned"
        assert deal.contact is None
        assert deal.notes is None

    def test_missing_probability_uses_stage_default(self):
        deal = from_zoho_record(_zoho_record(Probability=None, Stage="Proposal/Price Quote"))

        assert deal.probability == 60

    def test_missing_amount_is_zero(self):
        deal = from_zoho_record(_zoho_record(Amount=None))

        assert deal.value == 0

    def test_missing_closing_date_falls_back_to_creation_date(self):
        deal = from_zoho_record(_zoho_record(Closing_Date=None))

        assert deal.expected_close_date == deal.created_at.date()

    def test_unknown_stage_maps_to_lead_with_lead_probability(self):
        deal = from_zoho_record(_zoho_record(Stage="Custom Stage", Probability=None))

        assert deal.stage == DealStage.LEAD
        assert deal.probability == 10


class TestToZohoFields:
    """Canonical patch -> Zoho record body."""

    def test_only_present_fields_are_sent(self):
        body = to_zoho_fields(DealPatch(value=1200.5))

        assert body == {"Amount": 1200.5}

    def test_stage_uses_canonical_zoho_name(self):
        body = to_zoho_fields(DealPatch(stage=DealStage.QUALIFIED))

        assert body == {"Stage": "Value Proposition"}

    def test_unwritable_fields_ignored(self):
        body = to_zoho_fields(DealPatch(company="Other", owner="Someone", name="Renamed"))

        assert body == {"Deal_Name": "Renamed"}

    def test_explicit_none_notes_clears_description(self):
        body = to_zoho_fields(DealPatch(notes=None))

        assert body == {"Description": None}

    def test_explicit_none_on_other_fields_is_dropped(self):
        body = to_zoho_fields(DealPatch(name=None, value=None, probability=None, notes=None))

        assert body == {"Description": None}

    def test_round_trip_name_value_closing_date(self):
        """External record -> Deal -> Zoho body keeps name, amount and closing date."""
        record = _zoho_record()
        deal = from_zoho_record(record)

        body = to_zoho_fields(
            DealPatch(
                name=deal.name,
                value=deal.value,
                expected_close_date=deal.expected_close_date,
            )
        )

        assert body["Deal_Name"] == record["Deal_Name"]
        assert body["Amount"] == record["Amount"]
        assert body["Closing_Date"] == record["Closing_Date"]
