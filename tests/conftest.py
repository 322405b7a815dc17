"""Shared fixtures: isolated settings and brains at known points in a conversation."""

from datetime import date

import pytest

from planner.brain import AgentBrain
from planner.config import Settings
from planner.plan import create_media_plan, recalculate_plan
from planner.schemas import (
    AgentState,
    CostMethod,
    MediaPlan,
    PerformanceMetrics,
    Placement,
)


@pytest.fixture
def settings():
    return Settings(_env_file=None, seed=42)


@pytest.fixture
def brain(settings):
    return AgentBrain(settings=settings, session_id="test-session")


@pytest.fixture
def planned_brain(brain):
    """Brain with a generated Nike plan, sitting in REFINEMENT."""
    brain.process_input("Create plan for Nike ($500k)")
    brain.process_input("Apply 70/20/10 Rule")
    return brain


# ---------------------------------------------------------------------------
# Hand-built plan with known performance
# ---------------------------------------------------------------------------


def _placement(channel, vendor, cost, *, impressions, clicks, conversions, revenue):
    return Placement(
        name=f"{vendor} line",
        channel=channel,
        vendor=vendor,
        ad_unit="Unit",
        segment="Segment",
        rate=10,
        cost_method=CostMethod.CPM,
        total_cost=cost,
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 31),
        performance=PerformanceMetrics(
            impressions=impressions,
            clicks=clicks,
            conversions=conversions,
            cpa=cost / conversions,
            revenue=revenue,
            roas=revenue / cost,
        ),
    )


def make_scored_plan() -> MediaPlan:
    """Acme plan with one losing Social line (ROAS 0.2) and one winning Search line (ROAS 4.0)."""
    plan = create_media_plan("Acme", 100_000, today=date(2025, 3, 1))
    plan.campaign.placements = [
        _placement(
            "Social", "MetaLoser", 10_000,
            impressions=1_250_000, clicks=10_000, conversions=250, revenue=2_000,
        ),
        _placement(
            "Search", "GoogleWinner", 20_000,
            impressions=1_500_000, clicks=8_000, conversions=400, revenue=80_000,
        ),
    ]
    return recalculate_plan(plan)


@pytest.fixture
def scored_brain(brain):
    """Brain in REFINEMENT over the hand-built Acme plan."""
    brain.session.plan = make_scored_plan()
    brain.session.transition(AgentState.REFINEMENT)
    return brain
