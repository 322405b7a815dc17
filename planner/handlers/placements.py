"""Placement commands: single and batch adds, pause/resume, segment edits."""

from __future__ import annotations

import logging
import re
from datetime import date

from planner.data.channels import CHANNEL_ALIASES, CTV_SERVICES, TV_NETWORKS, display_network
from planner.handlers import Handler, Turn, reply
from planner.history import ActionType
from planner.plan import create_placement
from planner.schemas import AgentMessage, MediaPlan, Placement, PlacementStatus

logger = logging.getLogger(__name__)

MIN_SINGLE_ALLOCATION = 5000
SINGLE_ALLOCATION_SHARE = 0.05
MAX_BATCH = 10
BUDGET_WARNING_PCT = 80

SPORTS_LEAGUES = frozenset({"nfl", "nba", "mlb", "nhl", "f1"})

# Channels the catalog cannot buy, with what to suggest instead.
UNSUPPORTED_CHANNELS: dict[str, str] = {
    "print": "Try digital display or OOH (out-of-home) instead",
    "newspaper": "Try digital display or local news streaming instead",
    "magazine": "Try digital display or podcast sponsorships instead",
    "direct mail": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "mailer": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "flyer": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "email": "Email campaigns are handled separately - this tool focuses on media placements",
    "sms": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "text message": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "telemarketing": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "cold call": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "billboard": 'Try "add OOH" for digital out-of-home placements',
    "cinema": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
    "movie theater": "Try Search, Social, Display, TV, Radio, or OOH channels instead",
}

SUPPORTED_CHANNELS = "Search, Social, Display, TV, Radio, Streaming Audio, Podcast, OOH"

# Platform names a user might add directly, by catalog channel.
_PLATFORM_CHANNELS: dict[str, str] = {
    **dict.fromkeys(("meta", "facebook", "instagram", "tiktok", "snapchat", "linkedin", "pinterest", "reddit"), "Social"),
    **dict.fromkeys(("google", "bing", "microsoft", "yahoo"), "Search"),
    **dict.fromkeys(("spotify", "pandora", "amazon music", "apple music"), "Streaming Audio"),
    **dict.fromkeys(("apple podcasts", "megaphone", "acast", "art19"), "Podcast"),
    **dict.fromkeys(("iheartradio", "siriusxm", "audacy", "cumulus"), "Radio"),
}

_NETWORK_RE = re.compile(r"on\s+([a-z]+)", re.IGNORECASE)
_AND_RE = re.compile(r"\s+and\b.*$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _flight_dates(plan: MediaPlan) -> tuple[date, date]:
    flight = next((f for f in plan.campaign.flights if f.id == plan.active_flight_id), None)
    if flight is None:
        return plan.campaign.start_date, plan.campaign.end_date
    return flight.start_date, flight.end_date


def _single_allocation(plan: MediaPlan) -> float:
    return max(MIN_SINGLE_ALLOCATION, plan.campaign.budget * SINGLE_ALLOCATION_SHARE)


def _unsupported(name: str) -> str | None:
    lowered = name.lower()
    for channel in UNSUPPORTED_CHANNELS:
        if re.search(rf"\b{re.escape(channel)}\b", lowered):
            return channel
    return None


def _add_one(turn: Turn, channel: str, vendor: str | None, ad_unit: str | None, label: str | None) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    start, end = _flight_dates(plan)

    before = session.snapshot()
    placement = create_placement(
        channel,
        _single_allocation(plan),
        session.rng,
        start,
        end,
        vendor=vendor,
        ad_unit=ad_unit,
        flight_id=plan.active_flight_id,
    )
    plan.campaign.placements.append(placement)
    display = label or (f"{placement.vendor} - {placement.ad_unit}" if channel == "TV" else channel)
    updated = session.commit(ActionType.ADD_PLACEMENT, f"Added {display} placement", turn.text, before)
    return reply(
        f"I've added a new **{display}** placement for ${placement.total_cost:,.2f}.\n\n"
        f"Current Spend: ${updated.total_spend:,.2f}",
        ["Add another channel", "Looks good", "Export PDF"],
        updated_media_plan=updated,
    )


def _unsupported_reply(name: str, channel: str) -> AgentMessage:
    return reply(
        f"Sorry, **{name}** is not a supported media channel.\n\n"
        f"{UNSUPPORTED_CHANNELS[channel]}.\n\n"
        f"Supported channels: {SUPPORTED_CHANNELS}",
        ["Add Display", "Add Social", "Add TV"],
    )


def _resolve_rows(plan: MediaPlan, target: str) -> list[tuple[int, Placement]]:
    """Placements addressed by a 1-based row number or a vendor/name fragment."""
    placements = plan.campaign.placements
    if target.isdigit():
        row = int(target)
        return [(row, placements[row - 1])] if 0 < row <= len(placements) else []
    needle = _AND_RE.sub("", target).lower().strip()
    if not needle:
        return []
    return [
        (idx, p)
        for idx, p in enumerate(placements, 1)
        if needle in p.vendor.lower() or needle in p.name.lower()
    ]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def add_batch_placements(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    count = int(turn.group(1))
    channel = CHANNEL_ALIASES.get(turn.group(2).lower(), "Display")
    if not 1 <= count <= MAX_BATCH:
        return reply(
            f"I can create between 1 and {MAX_BATCH} placements at a time. You requested {count}.",
            [f"Add {min(count, MAX_BATCH)} {channel} placements"],
        )

    network_match = _NETWORK_RE.search(turn.text)
    vendor = display_network(network_match.group(1)) if network_match else None
    start, end = _flight_dates(plan)
    allocation = _single_allocation(plan)

    before = session.snapshot()
    added = [
        create_placement(
            channel, allocation, session.rng, start, end, vendor=vendor, flight_id=plan.active_flight_id
        )
        for _ in range(count)
    ]
    plan.campaign.placements.extend(added)
    updated = session.commit(ActionType.ADD_PLACEMENT, f"Added {count} {channel} placements", turn.text, before)

    total = sum(p.total_cost for p in added)
    summary = "\n".join(f"• {p.vendor} - {p.ad_unit} (${p.total_cost / 1000:.1f}k)" for p in added[:3])
    more = f"\n...and {count - 3} more" if count > 3 else ""
    content = (
        f"Created **{count} {channel} placements** for **${total / 1000:.1f}k**:\n\n{summary}{more}\n\n"
        f"**Total Spend:** ${updated.total_spend / 1000:.1f}k of ${updated.campaign.budget / 1000:.1f}k"
    )
    used = updated.total_spend / updated.campaign.budget * 100 if updated.campaign.budget else 100.0
    if used > BUDGET_WARNING_PCT:
        content += f"\n\n**{used:.0f}% of budget allocated** - limited budget remaining."
    return reply(content, ["Add more placements", "Optimize plan", "Export PDF"], updated_media_plan=updated)


def add_channel(turn: Turn) -> AgentMessage:
    name = turn.group().lower()
    if name not in TV_NETWORKS and name not in CTV_SERVICES:
        return _add_one(turn, CHANNEL_ALIASES.get(name, "TV"), None, None, None)

    # "add espn SportsCenter": keep the program in the user's casing.
    program_match = re.search(rf"add\s+{re.escape(name)}\s+(.+)", turn.text, re.IGNORECASE)
    program = program_match.group(1).strip() if program_match else None
    if name in SPORTS_LEAGUES:
        network = "Sports Network"
        program = program or name.upper()
    else:
        network = display_network(name)
    label = f"{network} - {program}" if program else network
    return _add_one(turn, "TV", network, program, label)


def add_show(turn: Turn) -> AgentMessage:
    raw = turn.group()
    unsupported = _unsupported(raw)
    if unsupported:
        return _unsupported_reply(raw, unsupported)

    lowered = raw.lower()
    channel = _PLATFORM_CHANNELS.get(lowered)
    if channel is not None:
        return _add_one(turn, channel, raw.title(), None, f"{raw.title()} ({channel})")

    for network in sorted(TV_NETWORKS | CTV_SERVICES, key=len, reverse=True):
        pos = lowered.find(network)
        if pos >= 0:
            show = raw[pos + len(network):].strip()
            vendor = display_network(network) + (f" {show}" if show else "")
            return _add_one(turn, "TV", vendor, None, f"{vendor} (TV)")

    vendor = " ".join(word.capitalize() for word in raw.split())
    return _add_one(turn, "TV", vendor, None, f"{vendor} (TV)")


def pause_placement(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    before = session.snapshot()

    paused = []
    for row, placement in _resolve_rows(plan, turn.group()):
        if placement.performance is not None and not placement.is_paused:
            placement.performance.status = PlacementStatus.PAUSED
            paused.append(f"Row #{row} ({placement.vendor})" if turn.group().isdigit() else placement.vendor)

    if not paused:
        return reply(
            "I couldn't find any matching placements to pause. Please check the row number or name.",
            ["Show Details"],
        )
    updated = session.commit(ActionType.UPDATE_PLACEMENT, f"Paused {', '.join(paused)}", turn.text, before)
    return reply(
        f"I've paused {len(paused)} placement(s): {', '.join(paused)}.",
        ["Resume placements", "Export PDF"],
        updated_media_plan=updated,
    )


def resume_placement(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    before = session.snapshot()

    resumed = []
    for row, placement in _resolve_rows(plan, turn.group()):
        if placement.is_paused:
            placement.performance.status = PlacementStatus.ACTIVE
            resumed.append(f"Row #{row} ({placement.vendor})" if turn.group().isdigit() else placement.vendor)

    if not resumed:
        return reply(
            "I couldn't find any paused placements matching that criteria to resume.",
            ["Show Details"],
        )
    updated = session.commit(ActionType.UPDATE_PLACEMENT, f"Resumed {', '.join(resumed)}", turn.text, before)
    return reply(
        f"I've resumed {len(resumed)} placement(s): {', '.join(resumed)}.",
        ["Optimize for Reach", "Export PDF"],
        updated_media_plan=updated,
    )


def modify_segment(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    row = int(turn.group(1))
    segment = turn.group(2).replace('"', "").replace("'", "").strip()
    placements = plan.campaign.placements
    if not 0 < row <= len(placements) or not segment:
        return reply(f"I couldn't find Row #{row}. Please check the table and try again.", ["Show Details"])

    before = session.snapshot()
    placement = placements[row - 1]
    old = placement.segment
    placement.segment = segment[0].upper() + segment[1:]
    updated = session.commit(
        ActionType.UPDATE_PLACEMENT, f"Row #{row} segment set to {placement.segment}", turn.text, before
    )
    return reply(
        f'Updated Row #{row} ({placement.vendor}): Changed segment from "{old}" to "**{placement.segment}**".',
        ["Change another segment", "Export PDF"],
        updated_media_plan=updated,
    )


HANDLERS: dict[str, Handler] = {
    "add_batch_placements": add_batch_placements,
    "add_channel": add_channel,
    "add_show": add_show,
    "pause_placement": pause_placement,
    "resume_placement": resume_placement,
    "modify_segment": modify_segment,
}
