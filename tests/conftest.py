"""Shared fixtures for pipeline tests.

Provides:
- make_deal: factory for canonical Deals with sensible defaults
- isolated_settings: clears the cached Settings so env overrides apply
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.performancy.config import get_settings
from src.performancy.deals.schemas import Deal, DealStage


@pytest.fixture
def make_deal():
    """Factory building a Deal; keyword overrides replace defaults."""

    def _make(**overrides) -> Deal:
        defaults = {
            "id": "deal-1",
            "name": "Test Deal",
            "company": "Acme Ltda",
            "value": 100000.0,
            "stage": DealStage.LEAD,
            "probability": 10,
            "expected_close_date": date(2026, 3, 31),
            "owner": "Thais Cano",
            "created_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
            "updated_at": datetime(2026, 1, 20, tzinfo=timezone.utc),
        }
        defaults.update(overrides)
        return Deal(**defaults)

    return _make


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    """Point settings at a temp state file and disable .env bootstrap creds."""
    monkeypatch.setenv("STATE_FILE", str(tmp_path / "state.json"))
    monkeypatch.setenv("ZOHO_CLIENT_ID", "")
    monkeypatch.setenv("ZOHO_CLIENT_SECRET", "")
    monkeypatch.setenv("ZOHO_REFRESH_TOKEN", "")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
