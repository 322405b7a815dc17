"""Forecasting commands: delivery forecast, seasonality and audience overlap."""

from __future__ import annotations

from dataclasses import dataclass

from planner.engines.forecast import (
    MONTH_NAMES,
    calculate_audience_overlap,
    forecast_campaign,
    format_forecast_result,
)
from planner.handlers import Handler, Turn, reply
from planner.schemas import AgentMessage, Placement


@dataclass(frozen=True)
class SeasonalNote:
    trend: str
    cpm_change: str
    tip: str


# Zero-based month -> market conditions for that month.
SEASONAL_NOTES: dict[int, SeasonalNote] = {
    0: SeasonalNote("Post-holiday slump", "10-15% below average", "Good time to lock in lower rates"),
    1: SeasonalNote("Valentine's/Presidents Day", "slightly elevated", "Retail competition picking up"),
    2: SeasonalNote("Spring baseline", "normal", "Standard competitive environment"),
    3: SeasonalNote("Spring growth", "5-10% above average", "Competition increasing"),
    4: SeasonalNote("Summer prep", "10-15% elevated", "Book early for summer campaigns"),
    5: SeasonalNote("Early summer", "moderately elevated", "Auto and travel advertisers active"),
    6: SeasonalNote("Summer slump", "5-10% below average", "Great time to test new channels"),
    7: SeasonalNote("Back-to-school", "10-15% below average", "Low competition outside retail"),
    8: SeasonalNote("Fall activation", "back to baseline", "Normal conditions"),
    9: SeasonalNote("Q4 buildup", "5-10% above average", "Book Q4 inventory now"),
    10: SeasonalNote("Holiday peak", "15-20% premium", "Expect high competition - book early"),
    11: SeasonalNote("Holiday peak continues", "15-25% premium", "Highest CPMs of the year"),
}

_PEAK_MONTHS = (10, 11)
_QUIET_MONTHS = (6, 7)


def _placements(turn: Turn) -> list[Placement] | None:
    placements = turn.session.require_plan().campaign.placements
    return placements or None


def _nothing_to_forecast() -> AgentMessage:
    return reply(
        "No placements to forecast yet. Add some first?",
        ["Add 3 social placements", "Allocate $50k"],
    )


def forecast(turn: Turn) -> AgentMessage:
    placements = _placements(turn)
    if placements is None:
        return _nothing_to_forecast()
    campaign = turn.session.plan.campaign
    result = forecast_campaign(placements, campaign.start_date, campaign.end_date)
    return reply(
        format_forecast_result(result),
        ["Show seasonal impact", "Check audience overlap", "Optimize my plan"],
        agents_invoked=["Insights Agent"],
    )


def seasonal_impact(turn: Turn) -> AgentMessage:
    campaign = turn.session.require_plan().campaign
    month = campaign.start_date.month - 1
    note = SEASONAL_NOTES[month]

    content = f"**{MONTH_NAMES[month]}**: {note.trend}. CPMs {note.cpm_change}.\n\n{note.tip}."
    if month in _PEAK_MONTHS:
        content += " Consider expanding to less competitive channels to maintain efficiency."
    elif month in _QUIET_MONTHS:
        content += " Good window to scale or test without premium pricing."
    return reply(content, ["Forecast campaign", "Optimize my plan"])


def audience_overlap(turn: Turn) -> AgentMessage:
    placements = _placements(turn)
    if placements is None:
        return _nothing_to_forecast()
    overlap = calculate_audience_overlap(placements)
    pct = overlap.overlap_percentage
    reach_line = f"Raw reach: {round(overlap.total_reach):,} → Unique reach: {round(overlap.adjusted_reach):,}"

    content = f"**{pct:.0f}% audience overlap** - "
    if pct > 40:
        content += (
            f"high.\n\n{reach_line}\n\nYou're reaching fewer unique users than the numbers suggest. "
            "Consider diversifying channels or tightening targeting to reduce overlap."
        )
    elif pct > 25:
        content += f"typical for multi-channel.\n\n{reach_line}\n\nNormal overlap. Your channel mix is well-balanced."
    else:
        content += f"low. Nice work.\n\n{reach_line}\n\nYour channels reach distinct audiences - efficient spend."
    return reply(content, ["Forecast campaign", "Optimize my plan"])


HANDLERS: dict[str, Handler] = {
    "forecast": forecast,
    "seasonal_impact": seasonal_impact,
    "audience_overlap": audience_overlap,
}
