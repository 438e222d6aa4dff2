"""Unit tests for the pipeline metrics engine.

Covers totals, weighted pipeline, win conversion, per-stage distribution and
the point-in-time stage progression rate. Pure functions -- no mocks needed.
"""

from __future__ import annotations

import pytest

from src.performancy.deals.demo import demo_deals
from src.performancy.deals.metrics import calculate_metrics, stage_conversion_rate
from src.performancy.deals.schemas import DealStage
from src.performancy.deals.stages import ACTIVE_STAGES, STAGE_ORDER


def _by_stage(metrics):
    return {m.stage: m for m in metrics.stage_distribution}


class TestPipelineTotals:
    """Totals, weighted pipeline and win conversion."""

    def test_lead_and_won_scenario(self, make_deal):
        """One Lead (100k @10%) and one Closed Won (200k) deal."""
        deals = [
            make_deal(id="a", value=100000, stage=DealStage.LEAD, probability=10),
            make_deal(id="b", value=200000, stage=DealStage.CLOSED_WON, probability=100),
        ]

        metrics = calculate_metrics(deals)

        assert metrics.total_deals == 2
        assert metrics.active_deals == 1
        assert metrics.pipeline_total == 100000
        assert metrics.weighted_pipeline == pytest.approx(10000)
        assert metrics.closed_won_value == 200000
        assert metrics.closed_won_count == 1
        assert metrics.conversion_rate == 100

    def test_empty_collection(self):
        """No deals: zeros everywhere, one entry per stage."""
        metrics = calculate_metrics([])

        assert metrics.total_deals == 0
        assert metrics.pipeline_total == 0
        assert metrics.weighted_pipeline == 0
        assert metrics.conversion_rate == 0
        assert [m.stage for m in metrics.stage_distribution] == STAGE_ORDER
        assert all(m.conversion_rate in (0, 100) for m in metrics.stage_distribution)

    def test_conversion_rate_zero_without_closed_deals(self, make_deal):
        """Only active deals -> conversion rate is 0, not NaN."""
        deals = [
            make_deal(id="a", stage=DealStage.PROPOSAL, probability=60),
            make_deal(id="b", stage=DealStage.NEGOTIATION, probability=80),
        ]

        assert calculate_metrics(deals).conversion_rate == 0

    def test_conversion_rate_won_over_closed(self, make_deal):
        """1 won, 3 lost -> 25%."""
        deals = [make_deal(id="w", stage=DealStage.CLOSED_WON, probability=100)] + [
            make_deal(id=f"l{i}", stage=DealStage.CLOSED_LOST, probability=0)
            for i in range(3)
        ]

        assert calculate_metrics(deals).conversion_rate == pytest.approx(25.0)

    def test_pipeline_total_excludes_closed_deals(self, make_deal):
        """pipeline_total sums only active-stage values."""
        deals = [
            make_deal(id="1", value=10, stage=DealStage.LEAD),
            make_deal(id="2", value=20, stage=DealStage.DISCOVERY),
            make_deal(id="3", value=30, stage=DealStage.QUALIFIED),
            make_deal(id="4", value=40, stage=DealStage.PROPOSAL),
            make_deal(id="5", value=50, stage=DealStage.NEGOTIATION),
            make_deal(id="6", value=1000, stage=DealStage.CLOSED_WON),
            make_deal(id="7", value=5000, stage=DealStage.CLOSED_LOST),
        ]

        metrics = calculate_metrics(deals)

        expected = sum(d.value for d in deals if d.stage in ACTIVE_STAGES)
        assert metrics.pipeline_total == expected == 150
        assert metrics.active_deals == 5

    def test_weighted_pipeline_bounded_by_total(self, make_deal):
        """weighted <= total; equal only when every active deal is at 100%."""
        partial = [
            make_deal(id="1", value=500, probability=40),
            make_deal(id="2", value=300, stage=DealStage.PROPOSAL, probability=100),
        ]
        full = [
            make_deal(id="1", value=500, probability=100),
            make_deal(id="2", value=300, stage=DealStage.PROPOSAL, probability=100),
        ]

        partial_metrics = calculate_metrics(partial)
        full_metrics = calculate_metrics(full)

        assert partial_metrics.weighted_pipeline < partial_metrics.pipeline_total
        assert full_metrics.weighted_pipeline == pytest.approx(full_metrics.pipeline_total)

    def test_accepts_any_iterable(self, make_deal):
        """A generator is consumed once and still yields consistent totals."""
        deals = (make_deal(id=str(i)) for i in range(3))

        metrics = calculate_metrics(deals)

        assert metrics.total_deals == 3
        assert _by_stage(metrics)[DealStage.LEAD].deal_count == 3

    def test_deterministic(self, make_deal):
        """Same input, same output."""
        deals = [make_deal(id="a"), make_deal(id="b", stage=DealStage.CLOSED_LOST, probability=0)]

        assert calculate_metrics(deals) == calculate_metrics(deals)


class TestStageDistribution:
    """Per-stage counts, values and progression rates."""

    def test_counts_sum_to_total(self):
        metrics = calculate_metrics(demo_deals())

        assert sum(m.deal_count for m in metrics.stage_distribution) == metrics.total_deals

    def test_demo_pipeline_snapshot(self):
        """Hand-computed snapshot of the 13-deal demo pipeline."""
        metrics = calculate_metrics(demo_deals())
        stages = _by_stage(metrics)

        assert metrics.total_deals == 13
        assert metrics.active_deals == 9
        assert metrics.pipeline_total == 2125000
        assert metrics.weighted_pipeline == pytest.approx(975000)
        assert metrics.closed_won_value == 375000
        assert metrics.closed_won_count == 2
        assert metrics.conversion_rate == pytest.approx(50.0)

        assert stages[DealStage.LEAD].conversion_rate == 85  # 11 / 13
        assert stages[DealStage.DISCOVERY].conversion_rate == 82  # 9 / 11
        assert stages[DealStage.QUALIFIED].conversion_rate == 78  # 7 / 9
        assert stages[DealStage.PROPOSAL].conversion_rate == 71  # 5 / 7
        assert stages[DealStage.NEGOTIATION].conversion_rate == 80  # 4 / 5
        assert stages[DealStage.NEGOTIATION].total_value == 380000

    def test_terminal_stages_fixed_at_100(self, make_deal):
        """Closed Won / Closed Lost report 100 even when empty."""
        metrics = calculate_metrics([make_deal()])
        stages = _by_stage(metrics)

        assert stages[DealStage.CLOSED_WON].conversion_rate == 100
        assert stages[DealStage.CLOSED_LOST].conversion_rate == 100

    def test_empty_active_stage_is_zero(self, make_deal):
        """A stage with no deals reports 0 even if later stages have deals."""
        deals = [make_deal(id="w", stage=DealStage.CLOSED_WON, probability=100)]

        assert stage_conversion_rate(DealStage.DISCOVERY, deals) == 0

    def test_rounds_half_up(self, make_deal):
        """7 in Lead, 1 in Discovery -> 1/8 = 12.5% -> 13."""
        deals = [make_deal(id=f"lead-{i}") for i in range(7)]
        deals.append(make_deal(id="disc", stage=DealStage.DISCOVERY, probability=20))

        assert stage_conversion_rate(DealStage.LEAD, deals) == 13

    def test_closed_lost_counts_as_progressed(self, make_deal):
        """Closed Lost is later in the enumeration, so it counts as past Lead."""
        deals = [
            make_deal(id="lead"),
            make_deal(id="lost", stage=DealStage.CLOSED_LOST, probability=0),
        ]

        assert stage_conversion_rate(DealStage.LEAD, deals) == 50

    def test_earlier_stages_not_counted_as_progressed(self, make_deal):
        """A deal moved back to Lead does not count as progressed for Proposal."""
        deals = [
            make_deal(id="prop", stage=DealStage.PROPOSAL, probability=60),
            make_deal(id="back", stage=DealStage.LEAD),
        ]

        assert stage_conversion_rate(DealStage.PROPOSAL, deals) == 0
