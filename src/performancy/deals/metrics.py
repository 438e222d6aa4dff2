"""Pipeline metrics engine -- pure derivation of funnel KPIs from deals.

calculate_metrics() is deterministic and side-effect free: no network, no
shared state. The store calls it after every mutation of its collection.

Stage conversion is a point-in-time ratio, not cohort conversion: for an
active stage it compares deals currently past the stage (any later stage,
plus Closed Won) with deals still in it. Deals moved backwards are simply
counted where they sit now, so backward moves are undercounted as progress.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from src.performancy.deals.schemas import (
    Deal,
    DealStage,
    PipelineMetrics,
    StageMetrics,
)
from src.performancy.deals.stages import (
    STAGE_ORDER,
    TERMINAL_STAGES,
    is_active,
    stages_after,
)


def _round_half_up(value: float) -> int:
    """Round x.5 up (matches dashboard rounding), values are never negative."""
    return int(math.floor(value + 0.5))


def stage_conversion_rate(stage: DealStage, deals: list[Deal]) -> int:
    """Progression rate (0-100) for a single stage.

    Terminal stages are fixed at 100. An empty active stage reports 0.
    """
    if stage in TERMINAL_STAGES:
        return 100

    in_stage = sum(1 for d in deals if d.stage == stage)
    if in_stage == 0:
        return 0

    later = set(stages_after(stage))
    progressed = sum(
        1 for d in deals if d.stage in later or d.stage == DealStage.CLOSED_WON
    )
    return _round_half_up(progressed / (in_stage + progressed) * 100)


def calculate_metrics(deals: Iterable[Deal]) -> PipelineMetrics:
    """Derive a PipelineMetrics snapshot from a deal collection.

    Args:
        deals: Deals to summarize. Any iterable; it is consumed once.

    Returns:
        PipelineMetrics with totals, weighted pipeline, win conversion and
        one StageMetrics entry per stage in pipeline order.
    """
    deals = list(deals)

    active = [d for d in deals if is_active(d.stage)]
    won = [d for d in deals if d.stage == DealStage.CLOSED_WON]
    lost_count = sum(1 for d in deals if d.stage == DealStage.CLOSED_LOST)

    pipeline_total = sum(d.value for d in active)
    weighted_pipeline = sum(d.value * d.probability / 100 for d in active)
    closed_won_value = sum(d.value for d in won)

    closed_count = len(won) + lost_count
    conversion_rate = (len(won) / closed_count) * 100 if closed_count > 0 else 0.0

    distribution: list[StageMetrics] = []
    for stage in STAGE_ORDER:
        stage_deals = [d for d in deals if d.stage == stage]
        distribution.append(
            StageMetrics(
                stage=stage,
                deal_count=len(stage_deals),
                total_value=sum(d.value for d in stage_deals),
                conversion_rate=stage_conversion_rate(stage, deals),
            )
        )

    return PipelineMetrics(
        total_deals=len(deals),
        active_deals=len(active),
        pipeline_total=pipeline_total,
        weighted_pipeline=weighted_pipeline,
        closed_won_value=closed_won_value,
        closed_won_count=len(won),
        conversion_rate=conversion_rate,
        stage_distribution=distribution,
    )
