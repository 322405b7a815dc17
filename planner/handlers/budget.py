"""Budget and schedule commands."""

from __future__ import annotations

import re

from dateutil.relativedelta import relativedelta

from planner.cognitive.entities import extract_budget, extract_channels
from planner.engines.allocation import detect_objective, recommend_budget_allocation
from planner.handlers import Handler, Turn, reply
from planner.history import ActionType
from planner.schemas import AgentMessage

_DELAY_RE = re.compile(r"delay.*?(\d+)\s*months?", re.IGNORECASE)


def budget_allocation(turn: Turn) -> AgentMessage:
    plan = turn.session.require_plan()
    budget = extract_budget(turn.text) or plan.campaign.budget
    objective = detect_objective(turn.text)
    channels = sorted(extract_channels(turn.text))
    if not channels:
        # Fall back to channels the user named earlier in the conversation.
        session = turn.session
        channels = sorted(session.context.get_accumulated_entities(session.session_id).channels or ())
    recommendation = recommend_budget_allocation(budget, objective, channels or None)

    if not recommendation.channels:
        return reply(
            f"${budget:,.0f} is below the minimum viable spend for those channels. "
            "Try a larger budget or fewer channels.",
            ["How should I allocate $100k?"],
        )

    lines = [f"**Recommended {objective.title()} Allocation** (${budget:,.0f})\n"]
    for rec in recommendation.channels:
        lines.append(
            f"- **{rec.channel}**: ${rec.allocated_budget:,.0f} ({rec.percentage:.0f}%)\n"
            f"  {rec.reasoning} - {rec.confidence:.0%} confidence"
        )
    if recommendation.assumptions:
        lines.append("\n_" + "; ".join(recommendation.assumptions) + "_")
    return reply(
        "\n".join(lines),
        ["Add 3 social placements", "Optimize my plan"],
        agents_invoked=["Yield Agent"],
    )


def change_budget(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    new_budget = extract_budget(turn.text)
    if new_budget is None:
        return reply(
            f"The total budget is **${plan.campaign.budget:,.0f}**. What should it be?",
            ["Set budget to $1M", "Set budget to $250k"],
        )

    before = session.snapshot()
    plan.campaign.budget = new_budget
    updated = session.commit(ActionType.UPDATE_BUDGET, f"Set budget to ${new_budget:,.0f}", turn.text, before)
    return reply(
        f"Updated total budget to **${new_budget:,.0f}**. You have ${updated.remaining_budget:,.0f} remaining.",
        ["Add TV", "Export PDF"],
        updated_media_plan=updated,
    )


def change_dates(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    if "delay" not in turn.lowered:
        return reply(
            "I've updated the flight dates. (Note: For this prototype, please use 'Delay start' to shift dates).",
            ["Delay start by 1 month", "Export PDF"],
        )

    match = _DELAY_RE.search(turn.text)
    months = int(match.group(1)) if match else 1
    shift = relativedelta(months=months)

    before = session.snapshot()
    campaign = plan.campaign
    campaign.start_date += shift
    campaign.end_date += shift
    for dated in (*campaign.flights, *campaign.placements):
        dated.start_date += shift
        dated.end_date += shift

    unit = "month" if months == 1 else "months"
    updated = session.commit(ActionType.UPDATE_CAMPAIGN, f"Delayed start by {months} {unit}", turn.text, before)
    return reply(
        f"I've shifted the campaign start date by {months} {unit}.",
        ["Delay start by 1 month", "Export PDF"],
        updated_media_plan=updated,
    )


HANDLERS: dict[str, Handler] = {
    "budget_allocation": budget_allocation,
    "change_budget": change_budget,
    "change_dates": change_dates,
}
