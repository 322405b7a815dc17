"""Media plan construction and placement generation.

Placement identities (vendor, unit, segment, rate) are randomized from the
channel catalog. Budget arithmetic is deterministic given the RNG, so
tests assert utilization bounds and channel mix rather than literal rows.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import date

from dateutil.relativedelta import relativedelta

from planner.config import Settings
from planner.data.channels import (
    AD_UNITS,
    DIGITAL_CHANNELS,
    FALLBACK_CHANNEL,
    OFFLINE_CHANNELS,
    RATE_CARDS,
    SEGMENTS,
    VENDORS,
)
from planner.schemas import (
    Campaign,
    CostMethod,
    Creative,
    Flight,
    MediaPlan,
    PerformanceMetrics,
    Placement,
    PlanMetrics,
    Strategy,
)

logger = logging.getLogger(__name__)

# Equivalent CPM used to estimate impressions for flat-rate buys.
_FLAT_EQUIVALENT_CPM = 15.0


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def price_allocation(method: CostMethod, rate: float, allocation: float) -> tuple[int, float]:
    """Return (quantity, cost) for spending ``allocation`` at ``rate``.

    CPM buys units of a thousand impressions; CPC buys clicks; flat and
    spot buys need at least one unit even when the allocation is short.
    """
    if method == CostMethod.CPM:
        quantity = math.floor(allocation * 1000 / rate)
        return quantity, quantity * rate / 1000
    quantity = math.floor(allocation / rate)
    if method in (CostMethod.FLAT, CostMethod.SPOT):
        quantity = max(1, quantity)
    return quantity, quantity * rate


def _simulate_performance(placement: Placement, rng: random.Random) -> PerformanceMetrics:
    ctr = 0.005 + rng.random() * 0.025
    cvr = 0.001 + rng.random() * 0.05

    if placement.cost_method == CostMethod.CPM:
        impressions = placement.quantity
        clicks = int(impressions * ctr)
    elif placement.cost_method == CostMethod.CPC:
        clicks = placement.quantity
        impressions = int(clicks / ctr)
    else:
        impressions = int(placement.total_cost / _FLAT_EQUIVALENT_CPM * 1000)
        clicks = int(impressions * ctr)

    conversions = int(clicks * cvr)
    revenue = conversions * (50 + rng.random() * 100)
    cost = placement.total_cost
    return PerformanceMetrics(
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        ctr=ctr,
        cvr=cvr,
        cpa=cost / conversions if conversions else 0.0,
        revenue=revenue,
        roas=revenue / cost if cost else 0.0,
    )


def _creatives_for(placement: Placement, rng: random.Random) -> list[Creative]:
    creatives = []
    for version in range(1, rng.randint(1, 3) + 1):
        impressions = int(placement.performance.impressions / 2) if placement.performance else 0
        ctr = 0.2 + rng.random() * 2.8
        creatives.append(
            Creative(
                name=f"{placement.ad_unit} - V{version}",
                format=placement.channel,
                impressions=impressions,
                clicks=int(impressions * ctr / 100),
                ctr=ctr,
            )
        )
    return creatives


def create_placement(
    channel: str,
    allocation: float,
    rng: random.Random,
    start_date: date,
    end_date: date,
    *,
    vendor: str | None = None,
    ad_unit: str | None = None,
    flight_id: str | None = None,
) -> Placement:
    """Draw a catalog line for ``channel`` and price it against ``allocation``."""
    catalog_key = channel if channel in RATE_CARDS else FALLBACK_CHANNEL
    card = RATE_CARDS[catalog_key]
    rate = card.min_rate + rng.random() * (card.max_rate - card.min_rate)
    vendor = vendor or rng.choice(VENDORS[catalog_key])
    quantity, cost = price_allocation(card.method, rate, allocation)

    placement = Placement(
        name=f"{vendor} - {channel} Line",
        channel=channel,
        vendor=vendor,
        ad_unit=ad_unit or rng.choice(AD_UNITS[catalog_key]),
        segment=rng.choice(SEGMENTS[catalog_key]),
        rate=rate,
        cost_method=card.method,
        quantity=quantity,
        total_cost=cost,
        start_date=start_date,
        end_date=end_date,
        flight_id=flight_id,
    )
    placement.performance = _simulate_performance(placement, rng)
    placement.creatives = _creatives_for(placement, rng)
    return placement


def reprice(placement: Placement, new_cost: float) -> None:
    """Scale quantity and delivery to a new cost at the same rate."""
    if placement.total_cost <= 0:
        return
    factor = new_cost / placement.total_cost
    placement.quantity = math.floor(placement.quantity * factor)
    placement.total_cost = new_cost
    if placement.performance is not None:
        perf = placement.performance
        perf.impressions = math.floor(perf.impressions * factor)
        perf.clicks = math.floor(perf.clicks * factor)
        perf.conversions = math.floor(perf.conversions * factor)
        perf.revenue = perf.revenue * factor


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate_placements(
    budget: float,
    strategy: Strategy,
    rng: random.Random,
    start_date: date,
    end_date: date,
    flight_id: str | None = None,
    settings: Settings | None = None,
) -> list[Placement]:
    """Strategy-keyed greedy allocation of ``budget`` across channels.

    1. Digital core: Search, Social and Display at 10% each (25% for
       DIGITAL; AWARENESS gives Search 2%, Social 5% and skips Display),
       each with up to +2% jitter.
    2. Offline layer when AWARENESS or budget above the offline
       threshold: 2 channels at 15% (4 at 25% for AWARENESS, the first
       two forced to TV and OOH). A line is kept only if spend stays
       within budget, except the forced AWARENESS TV line.
    3. Fill: small Social/Display lines (at most 5% of budget) until 95%
       utilization or the iteration cap; lines costing $10 or less are
       dropped.
    """
    settings = settings or Settings()
    placements: list[Placement] = []
    spend = 0.0

    def line(channel: str, allocation: float) -> Placement:
        return create_placement(channel, allocation, rng, start_date, end_date, flight_id=flight_id)

    # 1. Digital core
    for channel in DIGITAL_CHANNELS:
        if strategy == Strategy.AWARENESS and channel == "Display":
            continue
        pct = 0.10
        if strategy == Strategy.DIGITAL:
            pct = 0.25
        elif strategy == Strategy.AWARENESS:
            pct = 0.02 if channel == "Search" else 0.05
        placement = line(channel, budget * (pct + rng.random() * 0.02))
        placements.append(placement)
        spend += placement.total_cost

    # 2. Offline / broad reach
    if strategy == Strategy.AWARENESS or budget > settings.offline_threshold:
        awareness = strategy == Strategy.AWARENESS
        count = 4 if awareness else 2
        pct = 0.25 if awareness else 0.15
        for i in range(count):
            channel = rng.choice(OFFLINE_CHANNELS)
            if awareness and i == 0:
                channel = "TV"
            elif awareness and i == 1:
                channel = "OOH"
            placement = line(channel, budget * pct)
            if spend + placement.total_cost <= budget or (awareness and i == 0):
                placements.append(placement)
                spend += placement.total_cost

    # 3. Fill remaining budget
    iterations = 0
    while spend < budget * settings.fill_target_ratio and iterations < settings.fill_max_iterations:
        iterations += 1
        channel = "Social" if rng.random() > 0.5 else "Display"
        allocation = min(budget - spend, budget * 0.05)
        placement = line(channel, allocation)
        if placement.total_cost > settings.min_fill_cost:
            placements.append(placement)
            spend += placement.total_cost

    logger.debug(
        "Generated %d placements for %s budget %.0f (spend %.0f)",
        len(placements),
        strategy.value,
        budget,
        spend,
    )
    return placements


# ---------------------------------------------------------------------------
# Plan assembly
# ---------------------------------------------------------------------------


def calculate_plan_metrics(placements: list[Placement]) -> PlanMetrics:
    impressions = sum(p.performance.impressions for p in placements if p.performance)
    cost = sum(p.total_cost for p in placements)
    reach = int(impressions * 0.4)  # assume 40% unique reach
    return PlanMetrics(
        impressions=impressions,
        reach=reach,
        frequency=impressions / reach if reach else 0.0,
        cpm=cost / impressions * 1000 if impressions else 0.0,
    )


def recalculate_plan(plan: MediaPlan) -> MediaPlan:
    """Refresh spend, remaining budget and metrics after any placement change."""
    placements = plan.campaign.placements
    plan.total_spend = sum(p.total_cost for p in placements)
    plan.remaining_budget = plan.campaign.budget - plan.total_spend
    plan.metrics = calculate_plan_metrics(placements)
    return plan


def create_media_plan(advertiser: str, budget: float, today: date | None = None) -> MediaPlan:
    """Empty plan with a campaign and two flights; the first flight is active."""
    start = today or date.today()
    midpoint = start + relativedelta(months=1, days=15)
    end = start + relativedelta(months=3)

    launch = Flight(name="Launch", budget=budget * 0.4, start_date=start, end_date=midpoint)
    sustain = Flight(
        name="Sustain",
        budget=budget * 0.6,
        start_date=midpoint + relativedelta(days=1),
        end_date=end,
    )
    campaign = Campaign(
        name=f"{advertiser} Campaign",
        advertiser=advertiser,
        budget=budget,
        start_date=start,
        end_date=end,
        flights=[launch, sustain],
        goals={
            "impressions": math.floor(budget * 50),
            "reach": math.floor(budget * 20),
            "conversions": math.floor(budget * 0.05),
        },
    )
    plan = MediaPlan(campaign=campaign, remaining_budget=budget, active_flight_id=launch.id)
    logger.info("Created media plan %s for %s with budget %.0f", plan.id, advertiser, budget)
    return plan


def populate_plan(
    plan: MediaPlan,
    rng: random.Random,
    settings: Settings | None = None,
) -> MediaPlan:
    """Replace the plan's placements with a freshly generated set for its strategy."""
    strategy = plan.strategy or Strategy.BALANCED
    plan.strategy = strategy
    campaign = plan.campaign
    plan.campaign.placements = generate_placements(
        campaign.budget,
        strategy,
        rng,
        campaign.start_date,
        campaign.end_date,
        flight_id=plan.active_flight_id,
        settings=settings,
    )
    plan.version += 1
    return recalculate_plan(plan)
