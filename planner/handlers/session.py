"""Session lifecycle commands: campaign and flight creation, reset, finish,
pending-action confirmation and hand-off to a specialist."""

from __future__ import annotations

import logging
import re

from dateutil.relativedelta import relativedelta

from planner.cognitive.entities import extract_budget
from planner.handlers import NEW_PLAN_SUGGESTIONS, Handler, Turn, reply
from planner.handlers.optimization import execute_pending_action
from planner.history import ActionType
from planner.plan import create_media_plan
from planner.schemas import AgentMessage, AgentState, Flight
from planner.session import PlannerSession

logger = logging.getLogger(__name__)

STRATEGY_SUGGESTIONS = [
    "Apply 70/20/10 Rule",
    "Focus on Digital Only",
    "Focus on Brand Awareness (TV/OOH)",
]

_BUDGET_RE = re.compile(r"\$?(\d+(?:,\d{3})*(?:\.\d+)?)\s*([kK]|[mM]{1,2})?")
_CLIENT_RE = re.compile(r"for\s+(.+?)(?:\s*\(|\s+\$|\s+\d|$)", re.IGNORECASE)
_FLIGHT_NAME_END_RE = re.compile(r"\s*\(|\s+(?:with|at)\s+|\s+\$")
_MONEY_RE = re.compile(r"\$[\d,.]+(?:\s*[kKmM](?:illion)?\b)?")


def parse_campaign_request(text: str, default_budget: float) -> tuple[str, float]:
    """(client, budget) from "Create plan for Nike ($500k)".

    ``m``/``mm`` mean millions and ``k`` thousands. Without a number the
    budget falls back to ``default_budget``; without "for <name>" the
    client is the fourth word, or "Client".
    """
    budget = default_budget
    match = _BUDGET_RE.search(text)
    if match:
        budget = float(match.group(1).replace(",", ""))
        suffix = (match.group(2) or "").lower()
        if suffix.startswith("m"):
            budget *= 1_000_000
        elif suffix.startswith("k"):
            budget *= 1_000

    client_match = _CLIENT_RE.search(text)
    if client_match and client_match.group(1).strip():
        client = client_match.group(1).strip()
    else:
        words = text.split()
        client = words[3] if len(words) > 3 else "Client"
    return client, budget


def initialize_campaign(session: PlannerSession, text: str) -> AgentMessage:
    """Replace the active plan with an empty one and move to BUDGETING."""
    client, budget = parse_campaign_request(text, session.settings.default_budget)
    plan = create_media_plan(client, budget)
    session.plan = plan
    session.history.clear()
    session.context.update_focus(
        session.session_id, campaign_id=plan.campaign.id, flight_id=plan.active_flight_id
    )
    session.transition(AgentState.BUDGETING)
    return reply(
        f"Great! I've initialized a campaign for **{client}** with a budget of **${budget:,.0f}**. \n\n"
        "How would you like to allocate this budget across channels? "
        "I recommend a 70/20/10 split for balanced growth.",
        STRATEGY_SUGGESTIONS,
        updated_media_plan=plan.model_copy(deep=True),
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def create_campaign(turn: Turn) -> AgentMessage:
    return initialize_campaign(turn.session, turn.text)


def create_flight(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    raw = turn.group() or "New Flight"
    name = _FLIGHT_NAME_END_RE.split(raw, maxsplit=1)[0].strip().title() or "New Flight"
    money = _MONEY_RE.search(raw)
    budget = (extract_budget(money.group()) if money else None) or session.settings.default_flight_budget

    flights = plan.campaign.flights
    start = flights[-1].end_date + relativedelta(days=1) if flights else plan.campaign.start_date
    end = start + relativedelta(months=1)

    before = session.snapshot()
    flight = Flight(name=name, budget=budget, start_date=start, end_date=end)
    plan.campaign.flights.append(flight)
    plan.active_flight_id = flight.id
    if end > plan.campaign.end_date:
        plan.campaign.end_date = end
    session.context.update_focus(session.session_id, flight_id=flight.id)
    updated = session.commit(ActionType.UPDATE_FLIGHT, f"Created flight {name}", turn.text, before)

    return reply(
        f"Created flight **{name}** ({start:%b %d} - {end:%b %d, %Y}) with a budget of "
        f"**${budget:,.0f}**. It's now the active flight.",
        ["Add 3 social placements", "Forecast this campaign"],
        updated_media_plan=updated,
    )


def start_over(turn: Turn) -> AgentMessage:
    turn.session.reset()
    return reply(
        "Okay, let's start fresh. Tell me the Client Name and Total Budget for your new campaign.",
        NEW_PLAN_SUGGESTIONS,
    )


def finish_plan(turn: Turn) -> AgentMessage:
    session = turn.session
    if session.plan is None:
        return reply("There's no plan to finish yet. Who is the client?", NEW_PLAN_SUGGESTIONS)

    campaign = session.plan.campaign
    session.transition(AgentState.FINISHED)
    return reply(
        f"Great! The **{campaign.advertiser}** plan is final: "
        f"${session.plan.total_spend:,.0f} across {len(campaign.placements)} placements.\n\n"
        "Export it or start a new campaign whenever you're ready.",
        ["Export PDF", "Export PPT", "Start New Campaign"],
    )


def confirm_pending(turn: Turn) -> AgentMessage:
    context, session_id = turn.session.context, turn.session.session_id
    pending = context.peek_pending_action(session_id)
    if pending is None:
        return reply("There's nothing waiting for confirmation right now.", ["Optimize my plan"])
    context.confirm_action(session_id, pending.id)
    logger.info("Session %s confirmed %s", session_id, pending.type.value)
    return execute_pending_action(turn, pending)


def decline_pending(turn: Turn) -> AgentMessage:
    context, session_id = turn.session.context, turn.session.session_id
    pending = context.peek_pending_action(session_id)
    if pending is None:
        return reply("There's nothing waiting for confirmation right now.", ["Optimize my plan"])
    context.decline_action(session_id, pending.id)
    logger.info("Session %s declined %s", session_id, pending.type.value)
    return reply(
        f"No problem. I won't {pending.description[0].lower()}{pending.description[1:]}.",
        ["Show Performance", "Optimize my plan"],
    )


def talk_to_human(turn: Turn) -> AgentMessage:
    context, session_id = turn.session.context, turn.session.session_id
    if not context.get_frustration_state(session_id).escalated_to_human:
        context.mark_escalation_offered(session_id)
    logger.info("Session %s handed off to a specialist", session_id)
    return reply(
        "I've flagged this conversation for a media specialist. They'll see the full history, "
        "so you won't need to repeat anything.\n\nIn the meantime, I can keep working on the plan.",
        ["Show Performance", "Help"],
    )


HANDLERS: dict[str, Handler] = {
    "create_campaign": create_campaign,
    "create_flight": create_flight,
    "start_over": start_over,
    "finish_plan": finish_plan,
    "confirm_pending": confirm_pending,
    "decline_pending": decline_pending,
    "talk_to_human": talk_to_human,
}
