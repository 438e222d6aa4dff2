"""CRM adapter abstract base class -- the interface the pipeline store talks to.

Every CRM backend (Zoho today) implements this ABC. The PipelineStore owns
the connection config and hands it to the adapter via initialize(); the
adapter holds no lifecycle of its own beyond the token cache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from src.performancy.deals.metrics import calculate_metrics
from src.performancy.deals.schemas import (
    Deal,
    DealPatch,
    DealStage,
    PipelineMetrics,
    ZohoConfig,
)


class CRMAdapter(ABC):
    """Abstract interface for CRM backend operations.

    Methods:
        initialize: Store connection config and reset token state.
        is_initialized: True once a config has been supplied.
        get_access_token: Return a valid OAuth access token.
        get_deals: List deals mapped to the canonical Deal model.
        create_deal: Create a deal from the fields present on a patch.
        update_deal: Partially update a deal by ID.
        update_deal_stage: Move a deal to a stage remotely.
        calculate_metrics: Pure metrics derivation (no I/O).
    """

    @abstractmethod
    def initialize(self, config: ZohoConfig) -> None:
        """Store config and reset token/client state. Safe to call repeatedly."""
        ...

    @abstractmethod
    def is_initialized(self) -> bool:
        """Return True once initialize() has been called with a config."""
        ...

    @abstractmethod
    async def get_access_token(self) -> str:
        """Return a cached or freshly exchanged access token."""
        ...

    @abstractmethod
    async def get_deals(self, max_pages: int | None = None) -> list[Deal]:
        """Fetch deals from the CRM, mapped to canonical Deals."""
        ...

    @abstractmethod
    async def create_deal(self, patch: DealPatch) -> Deal:
        """Create a deal remotely, return the mapped-back Deal."""
        ...

    @abstractmethod
    async def update_deal(self, deal_id: str, patch: DealPatch) -> Deal:
        """Update only the fields present on the patch, return the mapped-back Deal."""
        ...

    async def update_deal_stage(self, deal_id: str, stage: DealStage) -> Deal:
        """Move a deal to another stage (update_deal with only stage set)."""
        return await self.update_deal(deal_id, DealPatch(stage=stage))

    def calculate_metrics(self, deals: Iterable[Deal]) -> PipelineMetrics:
        """Derive pipeline metrics from deals. Pure, no network."""
        return calculate_metrics(deals)
