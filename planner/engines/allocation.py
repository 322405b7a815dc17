"""Objective-driven budget allocation advice.

Each channel's share is proportional to its efficiency weight for the
objective, optionally blended 60/40 with historical ROAS (scaled so a
5x ROAS counts as 1.0).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

logger = logging.getLogger(__name__)

Objective = Literal["awareness", "consideration", "conversion"]


@dataclass(frozen=True)
class ChannelBenchmark:
    efficiency: float
    reach: float
    min_budget: float


OBJECTIVE_BENCHMARKS: dict[str, dict[str, ChannelBenchmark]] = {
    "awareness": {
        "Connected TV": ChannelBenchmark(0.85, 0.9, 25000),
        "Linear TV": ChannelBenchmark(0.75, 0.95, 50000),
        "DOOH": ChannelBenchmark(0.7, 0.6, 15000),
        "Display": ChannelBenchmark(0.6, 0.8, 5000),
        "Social": ChannelBenchmark(0.7, 0.85, 10000),
        "Video": ChannelBenchmark(0.75, 0.75, 15000),
        "Search": ChannelBenchmark(0.5, 0.4, 5000),
        "Audio": ChannelBenchmark(0.65, 0.6, 8000),
    },
    "consideration": {
        "Social": ChannelBenchmark(0.8, 0.8, 10000),
        "Display": ChannelBenchmark(0.7, 0.75, 5000),
        "Native": ChannelBenchmark(0.75, 0.7, 8000),
        "Video": ChannelBenchmark(0.8, 0.75, 12000),
        "Audio": ChannelBenchmark(0.7, 0.65, 10000),
        "Search": ChannelBenchmark(0.7, 0.5, 5000),
        "Connected TV": ChannelBenchmark(0.7, 0.7, 20000),
    },
    "conversion": {
        "Search": ChannelBenchmark(0.9, 0.5, 5000),
        "Social": ChannelBenchmark(0.85, 0.7, 8000),
        "Display": ChannelBenchmark(0.75, 0.7, 5000),
        "Retail Media": ChannelBenchmark(0.9, 0.4, 10000),
        "Email": ChannelBenchmark(0.95, 0.3, 2000),
        "Connected TV": ChannelBenchmark(0.6, 0.6, 20000),
    },
}


@dataclass
class ChannelRecommendation:
    channel: str
    allocated_budget: float
    percentage: float
    reasoning: str
    expected_roas: float
    confidence: float


@dataclass
class BudgetRecommendation:
    total_budget: float
    objective: str
    channels: list[ChannelRecommendation] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)


def _weight(benchmark: ChannelBenchmark, historical_roas: float | None) -> float:
    if historical_roas:
        return benchmark.efficiency * 0.6 + (historical_roas / 5) * 0.4
    return benchmark.efficiency


def recommend_budget_allocation(
    total_budget: float,
    objective: Objective,
    channels: list[str] | None = None,
    historical_roas: dict[str, float] | None = None,
) -> BudgetRecommendation:
    """Split ``total_budget`` across channels suited to ``objective``.

    Without requested channels, the three most efficient channels for the
    objective are used. A channel is dropped when the budget cannot give
    it at least half its minimum viable spend.
    """
    benchmarks = OBJECTIVE_BENCHMARKS[objective]
    historical_roas = historical_roas or {}
    result = BudgetRecommendation(total_budget=total_budget, objective=objective)

    if channels:
        selected = [c for c in channels if c in benchmarks]
        result.assumptions.append(f"Using requested channels: {', '.join(selected)}")
    else:
        selected = sorted(benchmarks, key=lambda c: benchmarks[c].efficiency, reverse=True)[:3]
        result.assumptions.append(f"Auto-selected top {len(selected)} channels for {objective} objective")

    viable = [c for c in selected if total_budget >= benchmarks[c].min_budget * len(selected) * 0.5]
    if len(viable) < len(selected):
        result.assumptions.append(
            f"Removed {len(selected) - len(viable)} channel(s) due to minimum budget requirements"
        )

    total_weight = sum(_weight(benchmarks[c], historical_roas.get(c)) for c in viable)
    for channel in viable:
        bench = benchmarks[channel]
        roas = historical_roas.get(channel)
        allocated = round(_weight(bench, roas) / total_weight * total_budget)
        expected = roas or bench.efficiency * 5
        if roas:
            reasoning = f"Strong {objective} performance ({roas:.2f}x historical ROAS)"
        else:
            reasoning = f"Strong {objective} performance ({bench.efficiency * 5:.2f}x expected ROAS)"
        result.channels.append(
            ChannelRecommendation(
                channel=channel,
                allocated_budget=allocated,
                percentage=allocated / total_budget * 100 if total_budget else 0.0,
                reasoning=reasoning,
                expected_roas=expected,
                confidence=0.85 if roas else 0.65,
            )
        )

    result.channels.sort(key=lambda c: c.allocated_budget, reverse=True)
    logger.debug("Allocation for %s: %s", objective, [c.channel for c in result.channels])
    return result


def detect_objective(text: str) -> Objective:
    lowered = text.lower()
    if any(w in lowered for w in ("awareness", "reach", "brand")):
        return "awareness"
    if any(w in lowered for w in ("consideration", "engagement", "traffic")):
        return "consideration"
    return "conversion"
