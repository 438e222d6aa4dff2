"""Stage ordering and default win probabilities for the deal pipeline.

Order matters: the metrics engine counts a deal as having "progressed" past
a stage when it sits in any later stage of STAGE_ORDER. Stages are not a
strict state machine -- the board allows moving a deal to any stage.
"""

from __future__ import annotations

from src.performancy.deals.schemas import DealStage

# ── Stage Pipeline Order ────────────────────────────────────────────────────

STAGE_ORDER: list[DealStage] = [
    DealStage.LEAD,
    DealStage.DISCOVERY,
    DealStage.QUALIFIED,
    DealStage.PROPOSAL,
    DealStage.NEGOTIATION,
    DealStage.CLOSED_WON,
    DealStage.CLOSED_LOST,
]

ACTIVE_STAGES: frozenset[DealStage] = frozenset(
    {
        DealStage.LEAD,
        DealStage.DISCOVERY,
        DealStage.QUALIFIED,
        DealStage.PROPOSAL,
        DealStage.NEGOTIATION,
    }
)

TERMINAL_STAGES: frozenset[DealStage] = frozenset(
    {DealStage.CLOSED_WON, DealStage.CLOSED_LOST}
)

# Percentage likelihood of winning when the CRM does not supply one.
STAGE_PROBABILITIES: dict[DealStage, int] = {
    DealStage.LEAD: 10,
    DealStage.DISCOVERY: 20,
    DealStage.QUALIFIED: 40,
    DealStage.PROPOSAL: 60,
    DealStage.NEGOTIATION: 80,
    DealStage.CLOSED_WON: 100,
    DealStage.CLOSED_LOST: 0,
}


def is_active(stage: DealStage) -> bool:
    """Return True for non-terminal stages."""
    return stage in ACTIVE_STAGES


def default_probability(stage: DealStage) -> int:
    """Default win probability (0-100) for a stage."""
    return STAGE_PROBABILITIES[stage]


def stages_after(stage: DealStage) -> list[DealStage]:
    """Stages strictly later than ``stage`` in pipeline order."""
    return STAGE_ORDER[STAGE_ORDER.index(stage) + 1 :]
