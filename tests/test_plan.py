"""Tests for plan construction and strategy-keyed placement generation.

Placement identities are random, so these assert budget bounds and
channel mix, never literal rows.
"""

import random
from datetime import date

import pytest

from planner.config import Settings
from planner.plan import (
    create_media_plan,
    create_placement,
    generate_placements,
    populate_plan,
    price_allocation,
    recalculate_plan,
    reprice,
)
from planner.schemas import CostMethod, Strategy

START = date(2025, 1, 15)
END = date(2025, 4, 15)


def _generate(budget, strategy, seed):
    return generate_placements(budget, strategy, random.Random(seed), START, END, settings=Settings(_env_file=None))


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def test_price_allocation_cpm():
    """CPM buys a thousand impressions per rate unit."""
    assert price_allocation(CostMethod.CPM, 10, 1000) == (100_000, 1000.0)


def test_price_allocation_cpc_floors_quantity():
    """CPC rounds the click count down to stay within budget."""
    assert price_allocation(CostMethod.CPC, 2, 1001) == (500, 1000)


def test_price_allocation_flat_buys_at_least_one_unit():
    """A flat rate above the allocation still buys one unit."""
    assert price_allocation(CostMethod.FLAT, 5000, 100) == (1, 5000)


def test_create_placement_stays_within_allocation():
    """A generated placement never costs more than its allocation."""
    placement = create_placement("Social", 10_000, random.Random(1), START, END, flight_id="f1")
    assert placement.channel == "Social"
    assert placement.flight_id == "f1"
    assert 0 < placement.total_cost <= 10_000
    assert placement.performance is not None
    assert 1 <= len(placement.creatives) <= 3


def test_create_placement_unknown_channel_prices_like_tv():
    """Channels without a rate card use the TV card."""
    placement = create_placement("Cinema", 10_000, random.Random(1), START, END, vendor="AMC")
    assert placement.vendor == "AMC"
    assert placement.cost_method == CostMethod.CPM


def test_reprice_scales_delivery():
    """Doubling spend doubles impressions, give or take rounding."""
    placement = create_placement("Display", 10_000, random.Random(2), START, END)
    impressions = placement.performance.impressions
    reprice(placement, placement.total_cost * 2)
    assert placement.performance.impressions in (impressions * 2, impressions * 2 - 1)


# ---------------------------------------------------------------------------
# generate_placements()
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("seed", range(10))
def test_balanced_100k(seed):
    """Balanced plans cover the digital core and spend at least 90%."""
    placements = _generate(100_000, Strategy.BALANCED, seed)
    channels = {p.channel for p in placements}
    spend = sum(p.total_cost for p in placements)

    assert len(placements) >= 3
    assert {"Search", "Social", "Display"} <= channels
    assert 0 <= spend <= 100_000
    assert spend >= 90_000


@pytest.mark.parametrize("seed", range(5))
def test_awareness_forces_tv_and_ooh(seed):
    """Awareness appends TV then OOH after the digital lines."""
    placements = _generate(100_000, Strategy.AWARENESS, seed)
    assert [p.channel for p in placements[:2]] == ["Search", "Social"]
    assert placements[2].channel == "TV"
    assert placements[3].channel == "OOH"


@pytest.mark.parametrize("seed", range(5))
def test_small_budget_skips_offline(seed):
    """Under the offline threshold only digital channels appear."""
    placements = _generate(10_000, Strategy.DIGITAL, seed)
    assert {p.channel for p in placements} <= {"Search", "Social", "Display"}
    assert sum(p.total_cost for p in placements) <= 10_000


def test_generation_is_reproducible_per_seed():
    """The same seed yields the same placements."""
    first = [(p.channel, p.total_cost) for p in _generate(50_000, Strategy.BALANCED, 7)]
    second = [(p.channel, p.total_cost) for p in _generate(50_000, Strategy.BALANCED, 7)]
    assert first == second


# ---------------------------------------------------------------------------
# Plan assembly
# ---------------------------------------------------------------------------


def test_create_media_plan():
    """A new plan has two flights splitting the budget and no placements."""
    plan = create_media_plan("Nike", 500_000, today=START)
    campaign = plan.campaign
    assert campaign.advertiser == "Nike"
    assert campaign.budget == 500_000
    assert campaign.end_date == END
    assert [f.name for f in campaign.flights] == ["Launch", "Sustain"]
    assert plan.active_flight_id == campaign.flights[0].id
    assert sum(f.budget for f in campaign.flights) == pytest.approx(500_000)
    assert campaign.placements == []
    assert plan.remaining_budget == 500_000


def test_populate_plan_defaults_to_balanced():
    """Populating without a strategy uses BALANCED and bumps the version."""
    plan = create_media_plan("Acme", 100_000, today=START)
    populate_plan(plan, random.Random(3), Settings(_env_file=None))
    assert plan.strategy == Strategy.BALANCED
    assert plan.version == 2
    assert all(p.flight_id == plan.active_flight_id for p in plan.campaign.placements)
    assert plan.total_spend == pytest.approx(sum(p.total_cost for p in plan.campaign.placements))


def test_recalculate_plan():
    """Totals and reach are derived from the placements."""
    plan = create_media_plan("Acme", 100_000, today=START)
    plan.campaign.placements.append(create_placement("Search", 20_000, random.Random(4), START, END))
    recalculate_plan(plan)
    assert plan.remaining_budget == pytest.approx(100_000 - plan.total_spend)
    assert plan.metrics.impressions > 0
    assert plan.metrics.reach == int(plan.metrics.impressions * 0.4)
