"""Tests for StateFile -- the JSON slice of state that survives restarts."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.performancy.deals.schemas import ZohoConfig, ZohoDomain
from src.performancy.store.persistence import PersistedState, StateFile


class TestStateFile:
    def test_missing_file_yields_defaults(self, tmp_path):
        state = StateFile(tmp_path / "missing.json").load()

        assert state == PersistedState()
        assert state.zoho_config is None
        assert state.sidebar_collapsed is False

    def test_save_then_load(self, tmp_path):
        state_file = StateFile(tmp_path / "state.json")
        config = ZohoConfig(
            client_id="cid",
            client_secret="secret",
            refresh_token="refresh",
            domain=ZohoDomain.EU,
        )

        state_file.save(PersistedState(zoho_config=config, sidebar_collapsed=True))
        loaded = state_file.load()

        assert loaded.zoho_config == config
        assert loaded.sidebar_collapsed is True

    def test_access_token_never_written(self, tmp_path):
        state_file = StateFile(tmp_path / "state.json")
        config = ZohoConfig(
            client_id="cid",
            client_secret="secret",
            refresh_token="refresh",
            access_token="1000.short-lived",
        )

        state_file.save(PersistedState(zoho_config=config))

        raw = json.loads(state_file.path.read_text(encoding="utf-8"))
        assert raw["zoho_config"]["access_token"] is None
        assert "1000.short-lived" not in state_file.path.read_text(encoding="utf-8")

    def test_creates_parent_directories(self, tmp_path):
        state_file = StateFile(tmp_path / "nested" / "dir" / "state.json")

        state_file.save(PersistedState(sidebar_collapsed=True))

        assert state_file.path.exists()

    def test_corrupt_file_yields_defaults(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        assert StateFile(path).load() == PersistedState()

    def test_wrong_shape_yields_defaults(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"sidebar_collapsed": "sideways"}), encoding="utf-8")

        assert StateFile(path).load() == PersistedState()

    def test_save_overwrites_and_leaves_no_temp_file(self, tmp_path):
        state_file = StateFile(tmp_path / "state.json")

        state_file.save(PersistedState(sidebar_collapsed=True))
        state_file.save(PersistedState(sidebar_collapsed=False))

        assert state_file.load().sidebar_collapsed is False
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_failed_replace_keeps_previous_state(self, tmp_path, monkeypatch):
        state_file = StateFile(tmp_path / "state.json")
        state_file.save(PersistedState(sidebar_collapsed=True))

        def fail_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", fail_replace)

        with pytest.raises(OSError):
            state_file.save(PersistedState(sidebar_collapsed=False))

        monkeypatch.undo()
        assert state_file.load().sidebar_collapsed is True
