"""Pipeline store -- single source of truth for deals, metrics and CRM config.

Applies every mutation locally first and recomputes metrics before
returning, then (for stage moves) syncs to the CRM best-effort.

Key design decisions:
- Explicit, constructible state container with the CRM adapter injected;
  several independent stores can coexist (tests, multiple dashboards).
- Optimistic updates with no rollback: when the remote stage sync fails the
  error is logged and counted, and the local state stays authoritative
  until a later fetch replaces the collection.
- No request sequencing: concurrent fetches and moves may interleave, and a
  late-completing fetch replaces the whole collection (last write wins).
- Background sync (fetch_deals, remote phase of move_deal_to_stage) swallows
  CRMError; user-initiated calls (test_connection, save_zoho_config,
  create_deal) propagate it.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date, datetime, timezone

import structlog

from src.performancy.core.monitoring import record_sync_failure
from src.performancy.deals.crm.adapter import CRMAdapter
from src.performancy.deals.crm.exceptions import (
    ConfigurationError,
    CRMError,
    ValidationError,
)
from src.performancy.deals.demo import demo_deals
from src.performancy.deals.schemas import (
    Deal,
    DealPatch,
    DealStage,
    PipelineMetrics,
    ZohoConfig,
)
from src.performancy.deals.stages import STAGE_ORDER, default_probability
from src.performancy.store.persistence import PersistedState, StateFile

logger = structlog.get_logger(__name__)


class PipelineStore:
    """Holds the deal collection, its metrics snapshot and the CRM connection.

    Args:
        adapter: CRM adapter used for remote reads and writes.
        state_file: Optional persistence for CRM config and UI flags.
        max_pages: Page limit passed to adapter.get_deals(); None uses the
            adapter's default.
    """

    def __init__(
        self,
        adapter: CRMAdapter,
        state_file: StateFile | None = None,
        max_pages: int | None = None,
    ) -> None:
        self._adapter = adapter
        self._state_file = state_file
        self._max_pages = max_pages

        self._deals: list[Deal] = []
        self._metrics: PipelineMetrics | None = None
        self._zoho_config: ZohoConfig | None = None
        self._is_zoho_connected = False
        self._is_loading = False
        self._sidebar_collapsed = False
        self._selected_deal_id: str | None = None

    # ── Read-only state ────────────────────────────────────────────────────

    @property
    def deals(self) -> list[Deal]:
        return list(self._deals)

    @property
    def metrics(self) -> PipelineMetrics | None:
        return self._metrics

    @property
    def zoho_config(self) -> ZohoConfig | None:
        return self._zoho_config

    @property
    def is_zoho_connected(self) -> bool:
        return self._is_zoho_connected

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def sidebar_collapsed(self) -> bool:
        return self._sidebar_collapsed

    @property
    def selected_deal(self) -> Deal | None:
        if self._selected_deal_id is None:
            return None
        return self.get_deal(self._selected_deal_id)

    def get_deal(self, deal_id: str) -> Deal | None:
        """Look up a deal by id."""
        for deal in self._deals:
            if deal.id == deal_id:
                return deal
        return None

    def deals_by_stage(self) -> dict[DealStage, list[Deal]]:
        """Group deals into Kanban columns, in pipeline order."""
        columns: dict[DealStage, list[Deal]] = {stage: [] for stage in STAGE_ORDER}
        for deal in self._deals:
            columns[deal.stage].append(deal)
        return columns

    # ── Deal mutations ─────────────────────────────────────────────────────

    def update_metrics(self) -> PipelineMetrics:
        """Recompute metrics from the current collection. Idempotent."""
        self._metrics = self._adapter.calculate_metrics(self._deals)
        return self._metrics

    def set_deals(self, deals: Iterable[Deal]) -> None:
        """Replace the whole collection and recompute metrics."""
        self._deals = list(deals)
        self.update_metrics()

    def load_demo_deals(self) -> None:
        """Seed the demo pipeline."""
        self.set_deals(demo_deals())
        logger.info("store.demo_deals_loaded", count=len(self._deals))

    def add_deal(self, deal: Deal) -> None:
        """Append a deal and recompute metrics.

        Raises:
            ValueError: A deal with the same id is already present.
        """
        if self.get_deal(deal.id) is not None:
            raise ValueError(f"Deal already exists: {deal.id}")
        self._deals.append(deal)
        self.update_metrics()

    def update_deal(self, deal_id: str, patch: DealPatch) -> Deal | None:
        """Merge the fields present on ``patch`` into the matching deal.

        Unknown ids are a silent no-op (returns None). Metrics are
        recomputed either way.
        """
        updated: Deal | None = None
        new_deals: list[Deal] = []
        for deal in self._deals:
            if deal.id == deal_id:
                deal = patch.apply_to(deal)
                updated = deal
            new_deals.append(deal)

        self._deals = new_deals
        self.update_metrics()
        return updated

    async def move_deal_to_stage(self, deal_id: str, stage: DealStage) -> Deal | None:
        """Move a deal to ``stage`` locally, then sync to the CRM best-effort.

        The local phase (stage, updated_at, metrics) completes before any
        network activity. If the id is unknown nothing changes and no remote
        call is made. Remote failures are logged and swallowed; the local
        move is not rolled back.

        Returns:
            The locally updated Deal, or None if the id was not found.
        """
        moved = self.update_deal(
            deal_id,
            DealPatch(stage=stage, updated_at=datetime.now(timezone.utc)),
        )
        if moved is None:
            logger.debug("store.move_unknown_deal", deal_id=deal_id)
            return None

        logger.info("store.deal_moved", deal_id=deal_id, stage=stage.value)

        if self._is_zoho_connected:
            try:
                await self._adapter.update_deal_stage(deal_id, stage)
            except CRMError as exc:
                record_sync_failure("move_deal_to_stage")
                logger.error(
                    "store.remote_stage_sync_failed",
                    deal_id=deal_id,
                    stage=stage.value,
                    error=str(exc),
                )

        return moved

    async def create_deal(self, patch: DealPatch) -> Deal:
        """Create a deal from user input.

        When connected the CRM creates the record first and its mapped-back
        result is added locally; a RemoteWriteError propagates. Otherwise a
        local deal is built with a generated id.
        """
        if self._is_zoho_connected:
            deal = await self._adapter.create_deal(patch)
        else:
            deal = self._build_local_deal(patch)

        self.add_deal(deal)
        logger.info("store.deal_created", deal_id=deal.id, remote=self._is_zoho_connected)
        return deal

    def _build_local_deal(self, patch: DealPatch) -> Deal:
        fields = patch.present_fields()
        stage = fields.get("stage") or DealStage.LEAD
        now = datetime.now(timezone.utc)
        return Deal(
            id=str(uuid.uuid4()),
            name=fields.get("name") or "",
            company=fields.get("company") or "N/A",
            value=fields.get("value") or 0.0,
            stage=stage,
            probability=(
                fields["probability"]
                if fields.get("probability") is not None
                else default_probability(stage)
            ),
            expected_close_date=fields.get("expected_close_date") or date.today(),
            owner=fields.get("owner") or "Unassigned",
            created_at=now,
            updated_at=now,
            contact=fields.get("contact"),
            notes=fields.get("notes"),
        )

    # ── CRM sync ───────────────────────────────────────────────────────────

    async def fetch_deals(self) -> None:
        """Replace the collection with the CRM's deals (background sync).

        No-op without a CRM connection: local/demo data stays authoritative.
        Errors are logged and swallowed; the loading flag is always cleared.
        """
        if not self._is_zoho_connected:
            logger.info("store.fetch_skipped_not_connected")
            return

        self._is_loading = True
        try:
            deals = await self._adapter.get_deals(max_pages=self._max_pages)
            self.set_deals(deals)
            logger.info("store.deals_fetched", count=len(deals))
        except CRMError as exc:
            record_sync_failure("fetch_deals")
            logger.error("store.fetch_deals_failed", error=str(exc))
        finally:
            self._is_loading = False

    async def sync_with_crm(self) -> None:
        """Re-initialize the adapter from the stored config and fetch."""
        if self._zoho_config is None:
            return
        self._adapter.initialize(self._zoho_config)
        await self.fetch_deals()

    async def test_connection(self) -> int:
        """Fetch deals directly, surfacing any error to the caller.

        Returns:
            Number of deals fetched (the local collection is replaced).

        Raises:
            ConfigurationError: No CRM connection is configured.
            CRMError: Any fetch or authentication failure.
        """
        if not self._is_zoho_connected:
            raise ConfigurationError("Zoho CRM is not connected")

        self._is_loading = True
        try:
            deals = await self._adapter.get_deals(max_pages=self._max_pages)
        finally:
            self._is_loading = False

        self.set_deals(deals)
        logger.info("store.connection_tested", count=len(deals))
        return len(deals)

    # ── Configuration & UI state ───────────────────────────────────────────

    def set_zoho_config(self, config: ZohoConfig | None) -> None:
        """Connect (or with None, disconnect) the CRM and persist the change.

        Raises:
            ValidationError: A required credential field is blank. Raised
                before any adapter or network activity.
        """
        if config is not None:
            missing = config.missing_fields()
            if missing:
                raise ValidationError(missing)

        self._apply_zoho_config(config)
        self._persist()

    async def save_zoho_config(self, config: ZohoConfig) -> None:
        """Settings-page save: validate, connect, persist, then fetch."""
        self.set_zoho_config(config)
        await self.fetch_deals()

    def disconnect(self) -> None:
        """Drop the CRM connection; local deals are kept."""
        self.set_zoho_config(None)
        logger.info("store.crm_disconnected")

    def _apply_zoho_config(self, config: ZohoConfig | None) -> None:
        self._zoho_config = config
        if config is not None:
            self._adapter.initialize(config)
            self._is_zoho_connected = True
            logger.info("store.crm_connected", domain=config.domain.value)
        else:
            self._is_zoho_connected = False

    def toggle_sidebar(self) -> bool:
        """Flip the sidebar collapse flag (persisted)."""
        self._sidebar_collapsed = not self._sidebar_collapsed
        self._persist()
        return self._sidebar_collapsed

    def select_deal(self, deal_id: str | None) -> Deal | None:
        """Mark a deal as selected in the UI; unknown ids clear the selection."""
        self._selected_deal_id = deal_id if deal_id and self.get_deal(deal_id) else None
        return self.selected_deal

    # ── Persistence ────────────────────────────────────────────────────────

    def restore(self) -> None:
        """Load persisted CRM config and UI flags (without re-saving)."""
        if self._state_file is None:
            return
        state = self._state_file.load()
        self._sidebar_collapsed = state.sidebar_collapsed
        if state.zoho_config is not None and not state.zoho_config.missing_fields():
            self._apply_zoho_config(state.zoho_config)
        logger.info("store.state_restored", connected=self._is_zoho_connected)

    def _persist(self) -> None:
        if self._state_file is None:
            return
        self._state_file.save(
            PersistedState(
                zoho_config=self._zoho_config,
                sidebar_collapsed=self._sidebar_collapsed,
            )
        )
