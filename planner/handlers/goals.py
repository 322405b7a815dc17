"""Campaign goal commands."""

from __future__ import annotations

import math
import re

from planner.handlers import Handler, Turn, reply
from planner.history import ActionType
from planner.schemas import AgentMessage

# Keyword -> goal key, checked in order.
_METRICS = (
    ("impression", "impressions"),
    ("reach", "reach"),
    ("conversion", "conversions"),
    ("click", "clicks"),
)

_VALUE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([kKmMbB])?")
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def parse_goal(text: str) -> tuple[str | None, int | None]:
    """(goal key, value) from "set goal impressions to 1.5M"; either may be None.

    The value is the first number after the metric keyword, so "increase
    reach to 2m" reads as reach=2,000,000.
    """
    lowered = text.lower()
    for keyword, metric in _METRICS:
        pos = lowered.find(keyword)
        if pos < 0:
            continue
        match = _VALUE_RE.search(lowered, pos + len(keyword))
        if match is None:
            return metric, None
        value = float(match.group(1)) * _MULTIPLIERS.get((match.group(2) or "").lower(), 1)
        return metric, math.floor(value)
    return None, None


def show_goals(turn: Turn) -> AgentMessage:
    goals = {k: v for k, v in turn.session.require_plan().campaign.goals.items() if v}
    if not goals:
        return reply(
            "You haven't set any numeric goals yet.",
            ["Set goal impressions 1M", "Set goal conversions 500"],
        )
    lines = ["**Current Campaign Goals**\n"]
    lines.extend(f"- **{metric.title()}:** {value:,}" for metric, value in goals.items())
    return reply("\n".join(lines), ["Forecast this campaign"])


def set_goal(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    metric, value = parse_goal(turn.text)
    if metric is None:
        return reply(
            "Which goal would you like to set? I support Impressions, Reach, Conversions, and Clicks.",
            ["Set goal impressions 1M", "Set goal reach 500k"],
        )
    if value is None:
        return reply(
            f"I couldn't understand the value for {metric}. Try saying something like "
            f'"Set goal {metric} 1.5M" or "Set goal {metric} 5000".',
            [f"Set goal {metric} 100k"],
        )

    before = session.snapshot()
    plan.campaign.goals[metric] = value
    updated = session.commit(ActionType.UPDATE_CAMPAIGN, f"Set {metric} goal to {value:,}", turn.text, before)
    return reply(
        f"**Goal Updated!**\n\nI've set your **{metric}** goal to **{value:,}**.\n\n"
        "The goal tracking card in your plan view has been updated.",
        ["Show goals", "Forecast this campaign"],
        updated_media_plan=updated,
    )


HANDLERS: dict[str, Handler] = {
    "show_goals": show_goals,
    "set_goal": set_goal,
}
