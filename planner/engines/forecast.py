"""Campaign forecasting with seasonal adjustment and audience overlap.

Seasonal factors scale CPM per month and channel; engagement moves with
them. Reach is de-duplicated pairwise: each pair of placements loses
``min(reach_a, reach_b) * overlap(channel_a, channel_b)``. Percentile
bands assume normal spread around the point estimate (z = 0.674 for the
25th/75th percentiles).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date

from planner.schemas import Placement

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_CHANNELS = ("Social", "Display", "Search", "Video", "CTV", "TV", "Audio", "OOH")


def _row(*values: float) -> dict[str, float]:
    return dict(zip(_CHANNELS, values))


# Month index (0 = January) -> channel -> CPM multiplier.
SEASONAL_FACTORS: dict[int, dict[str, float]] = {
    0: _row(0.85, 0.90, 0.95, 0.90, 1.10, 1.10, 0.95, 0.80),
    1: _row(0.90, 0.92, 0.98, 0.92, 1.05, 1.05, 0.98, 0.85),
    2: _row(1.00, 1.00, 1.00, 1.00, 1.00, 1.00, 1.00, 0.95),
    3: _row(1.05, 1.02, 1.00, 1.02, 0.95, 0.95, 1.00, 1.10),
    4: _row(1.10, 1.05, 1.02, 1.05, 0.90, 0.90, 1.02, 1.15),
    5: _row(1.05, 1.03, 1.00, 1.03, 0.92, 0.92, 1.00, 1.10),
    6: _row(0.95, 0.95, 0.98, 0.95, 0.88, 0.88, 0.98, 1.05),
    7: _row(0.90, 0.92, 0.95, 0.92, 0.85, 0.85, 0.95, 1.00),
    8: _row(1.00, 1.00, 1.00, 1.00, 1.00, 1.00, 1.00, 1.00),
    9: _row(1.05, 1.05, 1.05, 1.05, 1.05, 1.05, 1.05, 0.95),
    10: _row(1.20, 1.15, 1.15, 1.15, 1.15, 1.15, 1.10, 0.90),
    11: _row(1.15, 1.10, 1.12, 1.10, 1.20, 1.20, 1.08, 0.85),
}

# Share of the smaller audience also reached by the other channel.
AUDIENCE_OVERLAP: dict[frozenset[str], float] = {
    frozenset(pair.split("+")): pct
    for pair, pct in {
        "Social+Display": 0.35,
        "Social+Search": 0.25,
        "Social+Video": 0.40,
        "Social+CTV": 0.30,
        "Social+TV": 0.15,
        "Social+Audio": 0.20,
        "Display+Search": 0.20,
        "Display+Video": 0.45,
        "Display+CTV": 0.25,
        "Display+TV": 0.10,
        "Search+Video": 0.22,
        "Search+CTV": 0.18,
        "Search+TV": 0.08,
        "Video+CTV": 0.50,
        "Video+TV": 0.35,
        "CTV+TV": 0.45,
        "CTV+Audio": 0.25,
        "TV+Audio": 0.30,
        "OOH+Social": 0.05,
        "OOH+Display": 0.05,
        "OOH+TV": 0.08,
    }.items()
}
DEFAULT_OVERLAP = 0.15

# Share of forecast impressions that actually deliver.
DELIVERY_FACTORS: dict[str, float] = {
    "Search": 0.95,
    "Social": 0.90,
    "Display": 0.85,
    "Video": 0.88,
    "CTV": 0.92,
    "TV": 0.92,
    "Audio": 0.90,
    "OOH": 0.95,
}

BASE_CPM = 15.0
BASE_CTR = 0.02
BASE_CVR = 0.02
DEFAULT_FREQUENCY = 5
Z_QUARTILE = 0.674


@dataclass(frozen=True)
class SeasonalFactors:
    cpm_multiplier: float
    engagement_multiplier: float
    competition_level: str  # LOW | MEDIUM | HIGH | VERY_HIGH


@dataclass(frozen=True)
class Band:
    p25: int
    p50: int
    p75: int


@dataclass(frozen=True)
class OverlapResult:
    total_reach: float
    adjusted_reach: float
    overlap_amount: float
    overlap_percentage: float


@dataclass
class ForecastResult:
    impressions: Band
    clicks: Band
    conversions: Band
    spend: Band
    reach: int
    adjusted_reach: int
    frequency: float
    overlap_percentage: float
    seasonal_impact: str
    confidence: str  # HIGH | MEDIUM | LOW
    warnings: list[str] = field(default_factory=list)


def get_seasonal_factors(month: int, channel: str) -> SeasonalFactors:
    """``month`` is zero-based (0 = January)."""
    cpm = SEASONAL_FACTORS.get(month, {}).get(channel, 1.0)
    engagement = 1.1 if cpm > 1.05 else 0.9 if cpm < 0.95 else 1.0
    if cpm >= 1.15:
        level = "VERY_HIGH"
    elif cpm >= 1.05:
        level = "HIGH"
    elif cpm <= 0.90:
        level = "LOW"
    else:
        level = "MEDIUM"
    return SeasonalFactors(cpm, engagement, level)


def calculate_audience_overlap(placements: list[Placement]) -> OverlapResult:
    if not placements:
        return OverlapResult(0, 0, 0, 0)

    reaches = [
        (p.channel, (p.performance.impressions if p.performance else 0) / DEFAULT_FREQUENCY)
        for p in placements
    ]
    total = sum(r for _, r in reaches)

    overlap = 0.0
    for i, (ch_a, reach_a) in enumerate(reaches):
        for ch_b, reach_b in reaches[i + 1:]:
            pct = AUDIENCE_OVERLAP.get(frozenset((ch_a, ch_b)), DEFAULT_OVERLAP)
            overlap += min(reach_a, reach_b) * pct

    return OverlapResult(
        total_reach=total,
        adjusted_reach=max(0.0, total - overlap),
        overlap_amount=overlap,
        overlap_percentage=overlap / total * 100 if total > 0 else 0.0,
    )


def _band(mean: float, sd_ratio: float) -> Band:
    spread = Z_QUARTILE * mean * sd_ratio
    return Band(p25=round(mean - spread), p50=round(mean), p75=round(mean + spread))


def _seasonal_message(month: int, placements: list[Placement]) -> str:
    name = MONTH_NAMES[month]
    if not placements:
        return f"{name} has normal demand (near baseline)"
    avg = sum(get_seasonal_factors(month, p.channel).cpm_multiplier for p in placements) / len(placements)
    if avg >= 1.15:
        return f"{name} has very high demand ({round((avg - 1) * 100)}% above baseline)"
    if avg >= 1.05:
        return f"{name} has elevated demand ({round((avg - 1) * 100)}% above baseline)"
    if avg <= 0.90:
        return f"{name} has lower demand ({round((1 - avg) * 100)}% below baseline)"
    return f"{name} has normal demand (near baseline)"


def forecast_campaign(placements: list[Placement], start_date: date, end_date: date) -> ForecastResult:
    """Percentile forecast of delivery for the campaign's start month.

    Confidence is HIGH for three or fewer placements with under 20%
    overlap, LOW above ten placements or 40% overlap, else MEDIUM.
    """
    month = start_date.month - 1
    impressions = clicks = conversions = spend = 0.0
    warnings: list[str] = []

    for placement in placements:
        seasonal = get_seasonal_factors(month, placement.channel)
        delivery = DELIVERY_FACTORS.get(placement.channel, 0.90)
        cpm = BASE_CPM * seasonal.cpm_multiplier
        placement_impressions = placement.total_cost / cpm * 1000 * delivery
        placement_clicks = placement_impressions * BASE_CTR * seasonal.engagement_multiplier

        impressions += placement_impressions
        clicks += placement_clicks
        conversions += placement_clicks * BASE_CVR
        spend += placement.total_cost

        if seasonal.competition_level == "VERY_HIGH":
            warning = (
                f"High competition in {MONTH_NAMES[month]} - expect "
                f"{round((seasonal.cpm_multiplier - 1) * 100)}% higher CPMs"
            )
        elif seasonal.competition_level == "LOW":
            warning = f"Lower competition in {MONTH_NAMES[month]} - good opportunity for efficient spend"
        else:
            continue
        if warning not in warnings:
            warnings.append(warning)

    overlap = calculate_audience_overlap(placements)
    frequency = impressions / overlap.adjusted_reach if overlap.adjusted_reach > 0 else DEFAULT_FREQUENCY

    if len(placements) <= 3 and overlap.overlap_percentage < 20:
        confidence = "HIGH"
    elif len(placements) > 10 or overlap.overlap_percentage > 40:
        confidence = "LOW"
    else:
        confidence = "MEDIUM"

    logger.debug(
        "Forecast %s..%s: %d placements, %.0f impressions, confidence %s",
        start_date,
        end_date,
        len(placements),
        impressions,
        confidence,
    )
    return ForecastResult(
        impressions=_band(impressions, 0.15),
        clicks=_band(clicks, 0.20),
        conversions=_band(conversions, 0.25),
        spend=_band(spend, 0.10),
        reach=round(overlap.adjusted_reach),
        adjusted_reach=round(overlap.adjusted_reach),
        frequency=round(frequency, 1),
        overlap_percentage=round(overlap.overlap_percentage, 1),
        seasonal_impact=_seasonal_message(month, placements),
        confidence=confidence,
        warnings=warnings,
    )


FORECAST_CARDS_OPEN = "[FORECAST_CARDS]"
FORECAST_CARDS_CLOSE = "[/FORECAST_CARDS]"


def format_forecast_result(forecast: ForecastResult) -> str:
    """Wrap the forecast as a sentinel-delimited JSON payload for card rendering."""

    def metric(band: Band) -> dict[str, int]:
        return {"value": band.p50, "min": band.p25, "max": band.p75}

    payload = {
        "type": "forecast_cards",
        "summary": {
            "confidence": forecast.confidence,
            "reach": forecast.adjusted_reach,
            "overlap": forecast.overlap_percentage,
        },
        "metrics": {
            "impressions": metric(forecast.impressions),
            "clicks": metric(forecast.clicks),
            "conversions": metric(forecast.conversions),
            "spend": metric(forecast.spend),
        },
        "insights": {
            "seasonal": forecast.seasonal_impact,
            "recommendations": forecast.warnings,
        },
    }
    return f"{FORECAST_CARDS_OPEN}{json.dumps(payload)}{FORECAST_CARDS_CLOSE}"
