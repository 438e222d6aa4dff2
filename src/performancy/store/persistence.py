"""Local persistence for the small slice of pipeline state that survives restarts.

Only the CRM connection config (without the short-lived access token) and
the sidebar collapse flag are written. Deals and metrics are never
persisted; every session reseeds them from demo data or a fresh CRM fetch.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from src.performancy.deals.schemas import ZohoConfig

logger = structlog.get_logger(__name__)


class PersistedState(BaseModel):
    """Fields retained across process restarts."""

    zoho_config: ZohoConfig | None = None
    sidebar_collapsed: bool = False


class StateFile:
    """JSON file holding PersistedState.

    Args:
        path: File location; parent directories are created on save.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> PersistedState:
        """Read persisted state; a missing or corrupt file yields defaults."""
        if not self._path.exists():
            return PersistedState()

        try:
            return PersistedState.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("state.load_failed", path=str(self._path), error=str(exc))
            return PersistedState()

    def save(self, state: PersistedState) -> None:
        """Write state, dropping the cached access token."""
        if state.zoho_config is not None:
            state = state.model_copy(
                update={"zoho_config": state.zoho_config.model_copy(update={"access_token": None})}
            )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # The target is only ever replaced whole, never written in place.
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(self._path)
        logger.debug("state.saved", path=str(self._path))
