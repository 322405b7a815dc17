"""Creative library commands."""

from __future__ import annotations

import re

from planner.handlers import Handler, Turn, plural, reply
from planner.history import ActionType
from planner.schemas import AgentMessage, Creative

_UPLOAD_NAME_RE = re.compile(r"upload\s+(?:creative\s+)?[\"']?([^\"']+)[\"']?", re.IGNORECASE)
_ASSIGNABLE_CHANNELS = ("Display", "Social")


def upload_creative(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    match = _UPLOAD_NAME_RE.search(turn.text)
    name = match.group(1).strip() if match else ""
    if not name or name.lower() == "creative":
        name = f"Creative {len(plan.campaign.creative_library) + 1}"

    before = session.snapshot()
    plan.campaign.creative_library.append(Creative(name=name))
    updated = session.commit(ActionType.UPDATE_CAMPAIGN, f'Uploaded creative "{name}"', turn.text, before)
    return reply(
        f'Added "{name}" to your library. Assign it to placements?',
        ["Assign to display placements", "Assign to social placements"],
        updated_media_plan=updated,
    )


def assign_creative(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    targets = [p for p in plan.campaign.placements if p.channel in _ASSIGNABLE_CHANNELS]
    if not targets:
        return reply(
            "No Display or Social placements to assign to. Add some first?",
            ["Add display placement", "Add social placement"],
        )

    before = session.snapshot()
    for placement in targets:
        placement.creatives.append(
            Creative(name=f"Assigned Creative {len(placement.creatives) + 1}", format=placement.channel)
        )
    updated = session.commit(
        ActionType.UPDATE_PLACEMENT, f"Assigned creatives to {plural(len(targets), 'placement')}", turn.text, before
    )
    return reply(
        f"Assigned creatives to {len(targets)} placement(s).",
        ["Show performance", "Upload another"],
        updated_media_plan=updated,
    )


def winning_creative(turn: Turn) -> AgentMessage:
    plan = turn.session.require_plan()
    candidates = [
        (creative, placement)
        for placement in plan.campaign.placements
        for creative in placement.creatives
        if creative.impressions > 0
    ]
    if not candidates:
        return reply("Not enough performance data yet to pick a winner.", ["Show placements", "Check back later"])

    creative, placement = max(candidates, key=lambda pair: pair[0].ctr)
    return reply(
        f"**{creative.name}** is winning at {creative.ctr:.2f}% CTR (on {placement.name}).",
        ["Scale this creative", "Show all creatives"],
    )


HANDLERS: dict[str, Handler] = {
    "upload_creative": upload_creative,
    "assign_creative": assign_creative,
    "winning_creative": winning_creative,
}
