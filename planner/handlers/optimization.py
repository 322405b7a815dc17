"""Optimization commands: reports, health score, pause/scale proposals.

Pausing underperformers and scaling winners are two-step: the handler
queues a PendingAction and a yes/no follow-up, and the plan is only
changed by ``execute_pending_action`` once the user confirms.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from planner.cognitive.schemas import PendingAction, PendingActionType
from planner.data.channels import CHANNEL_ALIASES
from planner.engines.optimization import (
    OptimizationReport,
    RecommendedAction,
    Priority,
    analyze_plan,
    format_optimization_report,
    generate_optimization_report,
    get_analysis_summary,
)
from planner.handlers import Handler, Turn, plural, reply
from planner.history import ActionType
from planner.plan import reprice
from planner.schemas import AgentMessage, AgentState, MediaPlan, Placement, PlacementStatus, new_id

logger = logging.getLogger(__name__)

SCALE_FACTOR = 1.25
SHIFT_FACTOR = 1.2

_PAUSE_ACTIONS = (RecommendedAction.PAUSE, RecommendedAction.REDUCE_BUDGET)


def _no_placements() -> AgentMessage:
    return reply(
        "I can't analyze your plan yet because there are no placements. Try adding some placements first!",
        ["Add 3 social placements", "How should I allocate $50k?"],
    )


def _usd(amount: float) -> str:
    return f"${round(amount):,}"


def _report(turn: Turn) -> tuple[MediaPlan, OptimizationReport] | None:
    plan = turn.session.require_plan()
    if not plan.campaign.placements:
        return None
    budget = turn.session.settings.default_flight_budget
    return plan, generate_optimization_report(plan.campaign.placements, budget)


def _impact(amount: float) -> str:
    return f"Save {_usd(amount)}" if amount > 0 else f"Gain {_usd(abs(amount))}"


def _pause_candidates(plan: MediaPlan, report: OptimizationReport) -> tuple[list[Placement], float]:
    """Active placements with a pause or budget-cut recommendation, and their savings."""
    by_id = {p.id: p for p in plan.campaign.placements}
    chosen: dict[str, Placement] = {}
    savings = 0.0
    for rec in report.recommendations:
        placement = by_id.get(rec.placement_id)
        if rec.action in _PAUSE_ACTIONS and placement and placement.performance and not placement.is_paused:
            if placement.id not in chosen:
                chosen[placement.id] = placement
                savings += rec.estimated_impact
    return list(chosen.values()), savings


def _scale_candidates(plan: MediaPlan, report: OptimizationReport) -> list[Placement]:
    by_id = {p.id: p for p in plan.campaign.placements}
    chosen: dict[str, Placement] = {}
    for rec in report.recommendations:
        placement = by_id.get(rec.placement_id)
        if rec.action == RecommendedAction.INCREASE_BUDGET and placement and not placement.is_paused:
            chosen.setdefault(placement.id, placement)
    return list(chosen.values())


def _roas(placement: Placement) -> float:
    return placement.performance.roas if placement.performance else 0.0


def _pause(plan: MediaPlan, ids: list[str]) -> list[Placement]:
    paused = []
    for placement in plan.campaign.placements:
        if placement.id in ids and placement.performance and not placement.is_paused:
            placement.performance.status = PlacementStatus.PAUSED
            paused.append(placement)
    return paused


def _scale(plan: MediaPlan, ids: list[str]) -> tuple[list[Placement], float]:
    scaled = []
    increase = 0.0
    for placement in plan.campaign.placements:
        if placement.id in ids:
            increase += placement.total_cost * (SCALE_FACTOR - 1)
            reprice(placement, placement.total_cost * SCALE_FACTOR)
            scaled.append(placement)
    return scaled, increase


def _propose(turn: Turn, action: PendingAction, content: str, agents: list[str]) -> AgentMessage:
    context, session_id = turn.session.context, turn.session.session_id
    context.add_pending_action(session_id, action)
    follow_up = context.set_follow_up(
        session_id,
        yes_action="apply pending changes",
        question=f"{action.description}?",
        no_action="discard pending changes",
        pending_action_id=action.id,
    )
    return reply(
        content,
        ["Yes", "No"],
        agents_invoked=agents,
        pending_action=action,
        follow_up=follow_up,
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def optimize_plan(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    plan, report = result
    turn.session.transition(AgentState.OPTIMIZATION)

    suggestions = []
    if any(r.action in _PAUSE_ACTIONS for r in report.recommendations):
        suggestions.append("Pause underperformers")
    if any(r.action == RecommendedAction.INCREASE_BUDGET for r in report.recommendations):
        suggestions.append("Scale winners")
    if report.recommendations:
        suggestions.append("Apply all recommendations")
    return reply(
        format_optimization_report(report, plan.campaign.placements),
        suggestions[:3],
        agents_invoked=["Performance Agent", "Insights Agent"],
    )


def quick_wins(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    _, report = result
    if not report.quick_wins:
        return reply(
            "No quick wins needed - your plan is well-optimized!\n\nTry 'optimize my plan' for a full analysis.",
            ["Optimize my plan"],
        )

    lines = [f"**Quick Wins** ({len(report.quick_wins)} easy, high-impact actions)\n"]
    for idx, rec in enumerate(report.quick_wins, 1):
        lines.append(f"{idx}. {rec.description}\n   {rec.specific_action}\n   {_impact(rec.estimated_impact)}\n")
    return reply("\n".join(lines), ["Optimize my plan"])


def critical_issues(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    _, report = result
    critical = [r for r in report.recommendations if r.priority == Priority.HIGH]
    if not critical:
        return reply(
            "No critical issues found - great job!\n\nYour plan is in good shape.",
            ["Show full report"],
        )

    lines = [f"**Critical Issues** ({len(critical)})\n"]
    for idx, rec in enumerate(critical, 1):
        lines.append(
            f"{idx}. **{rec.placement_name}**\n"
            f"   Issue: {rec.description}\n"
            f"   Action: {rec.specific_action}\n"
            f"   {_impact(rec.estimated_impact)}\n"
        )
    return reply("\n".join(lines), ["Show full report", "Show quick wins"])


def growth_opportunities(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    _, report = result
    opportunities = [r for r in report.recommendations if r.estimated_impact < 0]
    if not opportunities:
        return reply(
            "No major growth opportunities identified right now.\n\nYour high performers are already well-funded.",
            ["Show full report"],
        )

    lines = [
        f"**Growth Opportunities** ({len(opportunities)})\n",
        "Scale these high-performers to maximize returns:\n",
    ]
    for idx, rec in enumerate(opportunities, 1):
        lines.append(
            f"{idx}. **{rec.placement_name}**\n"
            f"   {rec.current_metric}\n"
            f"   Action: {rec.specific_action}\n"
            f"   Potential gain: {_usd(abs(rec.estimated_impact))}\n"
        )
    return reply("\n".join(lines), ["Scale winners", "Show full report"])


def plan_score(turn: Turn) -> AgentMessage:
    plan = turn.session.require_plan()
    if not plan.campaign.placements:
        return _no_placements()
    analysis = analyze_plan(plan.campaign.placements, turn.session.settings.default_flight_budget)

    content = f"**Plan Health Check**\n\n{get_analysis_summary(analysis)}\n\n"
    if analysis.critical_count:
        content += (
            f"You have **{plural(analysis.critical_count, 'critical issue')}** "
            "that need immediate attention.\n\n"
        )
    if analysis.overall_score < 70:
        content += "Your plan could benefit from optimization. Would you like me to show you specific recommendations?"
    elif analysis.overall_score < 85:
        content += "Your plan is in good shape! There are a few minor optimizations that could improve performance."
    else:
        content += "Excellent work! Your plan is well-optimized. Keep monitoring for any changes."
    return reply(content, ["Optimize my plan", "Show detailed report"])


def analyze_performance(turn: Turn) -> AgentMessage:
    plan = turn.session.require_plan()
    active = [p for p in plan.campaign.placements if p.performance and not p.is_paused]
    if not active:
        return _no_placements()
    turn.session.transition(AgentState.OPTIMIZATION)

    cost: dict[str, float] = defaultdict(float)
    revenue: dict[str, float] = defaultdict(float)
    clicks: dict[str, int] = defaultdict(int)
    impressions: dict[str, int] = defaultdict(int)
    for p in active:
        cost[p.channel] += p.total_cost
        revenue[p.channel] += p.performance.revenue
        clicks[p.channel] += p.performance.clicks
        impressions[p.channel] += p.performance.impressions

    roas = {c: revenue[c] / cost[c] for c in cost if cost[c] > 0}
    ctr = {c: clicks[c] / impressions[c] for c in impressions if impressions[c] > 0}
    best = max(roas, key=roas.get) if roas else active[0].channel
    weakest = min(ctr, key=ctr.get) if ctr else best

    content = (
        "I've analyzed the performance data. \n\n**Insights:**\n"
        f"- **{best}** is performing best ({roas.get(best, 0.0):.2f}x ROAS).\n"
        f"- **{weakest}** has the lowest CTR ({ctr.get(weakest, 0.0) * 100:.2f}%).\n\n"
        f"Would you like me to pause underperforming ads or shift budget to {best}?"
    )
    return reply(
        content,
        ["Pause underperformers", f"Shift budget to {best}"],
        agents_invoked=["Performance Agent", "Insights Agent"],
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def pause_underperformers(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    plan, report = result
    candidates, savings = _pause_candidates(plan, report)
    if not candidates:
        return reply(
            "No placements qualified for pausing.\n\nAll your placements are performing well.",
            ["Optimize", "Show performance"],
        )

    noun = plural(len(candidates), "underperforming placement")
    details = [f"{p.vendor} (ROAS: {_roas(p):.2f})" for p in candidates]
    action = PendingAction(
        id=new_id(),
        type=PendingActionType.PAUSE_UNDERPERFORMERS,
        description=f"Pause {noun}",
        details=details,
        estimated_impact=savings,
        data={"placement_ids": [p.id for p in candidates], "savings": savings},
    )
    content = (
        f"**Confirm: Pause {noun}?**\n\n**Placements to pause:**\n"
        + "".join(f"  - {d}\n" for d in details)
        + f"\n**Estimated savings:** {_usd(savings)}\n\n"
        'Type **"yes"** to confirm or **"no"** to cancel.'
    )
    return _propose(turn, action, content, ["Performance Agent", "Insights Agent"])


def scale_winners(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    plan, report = result
    candidates = _scale_candidates(plan, report)
    if not candidates:
        return reply(
            "No placements qualified for scaling (need ROAS > 3.0).\n\n"
            "Your high performers may already be well-funded.",
            ["Optimize", "Show performance"],
        )

    increase = sum(p.total_cost * (SCALE_FACTOR - 1) for p in candidates)
    noun = plural(len(candidates), "high-performing placement")
    details = [
        f"{p.vendor} (ROAS: {_roas(p):.2f}) - {_usd(p.total_cost)} → {_usd(p.total_cost * SCALE_FACTOR)}"
        for p in candidates
    ]
    action = PendingAction(
        id=new_id(),
        type=PendingActionType.SCALE_WINNERS,
        description=f"Scale {noun} (+25%)",
        details=details,
        estimated_impact=increase,
        data={"placement_ids": [p.id for p in candidates], "increase": increase},
    )
    content = (
        f"**Confirm: Scale {noun}?**\n\n**Placements to scale (+25% budget & impressions):**\n"
        + "".join(f"  - {d}\n" for d in details)
        + f"\n**Total budget increase:** {_usd(increase)}\n\n"
        'Type **"yes"** to confirm or **"no"** to cancel.'
    )
    return _propose(turn, action, content, ["Performance Agent", "Yield Agent"])


def execute_pending_action(turn: Turn, action: PendingAction) -> AgentMessage:
    """Apply a confirmed PendingAction to the active plan."""
    session = turn.session
    plan = session.require_plan()
    ids = list(action.data.get("placement_ids", []))
    before = session.snapshot()

    if action.type == PendingActionType.PAUSE_UNDERPERFORMERS:
        paused = _pause(plan, ids)
        if not paused:
            return reply("Those placements were already paused, so there was nothing to change.", ["Show performance"])
        updated = session.commit(ActionType.UPDATE_PLACEMENT, action.description, turn.text, before)
        content = (
            f"**Paused {plural(len(paused), 'underperforming placement')}**\n\n**Placements paused:**\n"
            + "".join(f"  - {p.vendor} (ROAS: {_roas(p):.2f})\n" for p in paused)
            + f"\n**Estimated savings:** {_usd(action.data.get('savings', action.estimated_impact))}"
        )
        return reply(
            content,
            ["Scale winners", "Show performance", "Undo"],
            agents_invoked=["Performance Agent", "Insights Agent"],
            updated_media_plan=updated,
        )

    scaled, increase = _scale(plan, ids)
    if not scaled:
        return reply("Those placements are no longer in the plan, so there was nothing to scale.", ["Show performance"])
    updated = session.commit(ActionType.UPDATE_PLACEMENT, action.description, turn.text, before)
    content = (
        f"**Scaled {plural(len(scaled), 'high-performing placement')}**\n\n"
        "**Placements scaled (+25% budget & impressions):**\n"
        + "".join(f"  - {p.vendor} (ROAS: {_roas(p):.2f})\n" for p in scaled)
        + f"\n**Total budget increase:** {_usd(increase)}"
        + f"\n**New total spend:** ${updated.total_spend:,.2f}"
    )
    return reply(
        content,
        ["Pause underperformers", "Show performance", "Undo"],
        agents_invoked=["Performance Agent", "Yield Agent"],
        updated_media_plan=updated,
    )


def apply_all(turn: Turn) -> AgentMessage:
    result = _report(turn)
    if result is None:
        return _no_placements()
    plan, report = result
    session = turn.session
    before = session.snapshot()

    to_pause, savings = _pause_candidates(plan, report)
    to_scale = [p for p in _scale_candidates(plan, report) if p.id not in {q.id for q in to_pause}]
    paused = _pause(plan, [p.id for p in to_pause])
    scaled, increase = _scale(plan, [p.id for p in to_scale])

    if not paused and not scaled:
        return reply(
            "No actionable recommendations to apply right now. Your plan is already optimized!",
            ["Show performance", "Export PDF"],
        )

    updated = session.commit(ActionType.UPDATE_PLACEMENT, "Applied all recommendations", turn.text, before)
    lines = ["**Applied All Recommendations**\n"]
    if paused:
        lines.append(f"- Paused **{plural(len(paused), 'underperforming placement')}**")
        lines.append(f"  Estimated savings: {_usd(savings)}\n")
    if scaled:
        lines.append(f"- Scaled **{plural(len(scaled), 'high-performing placement')}**")
        lines.append(f"  Budget increase: {_usd(increase)}\n")
    logger.info("Applied %d pauses and %d scale-ups", len(paused), len(scaled))
    return reply(
        "\n".join(lines),
        ["Show performance", "Undo", "Export PDF"],
        agents_invoked=["Performance Agent", "Insights Agent", "Yield Agent"],
        updated_media_plan=updated,
    )


def shift_budget(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    named = turn.group()
    channel = CHANNEL_ALIASES.get(named.lower(), "Search") if named else "Search"

    targets = [p for p in plan.campaign.placements if p.channel == channel and not p.is_paused]
    if not targets:
        return reply(f"There are no active {channel} placements to boost. Add one first?", [f"Add {channel}"])

    before = session.snapshot()
    for placement in targets:
        reprice(placement, placement.total_cost * SHIFT_FACTOR)
    session.transition(AgentState.OPTIMIZATION)
    updated = session.commit(
        ActionType.UPDATE_BUDGET, f"Increased {channel} budget by 20%", turn.text, before
    )
    return reply(
        f"I've increased the budget for {channel} placements by 20%.",
        ["Export PDF", "Start New Campaign"],
        agents_invoked=["Yield Agent"],
        updated_media_plan=updated,
    )


HANDLERS: dict[str, Handler] = {
    "optimize_plan": optimize_plan,
    "quick_wins": quick_wins,
    "critical_issues": critical_issues,
    "growth_opportunities": growth_opportunities,
    "plan_score": plan_score,
    "analyze_performance": analyze_performance,
    "pause_underperformers": pause_underperformers,
    "scale_winners": scale_winners,
    "apply_all": apply_all,
    "shift_budget": shift_budget,
}
