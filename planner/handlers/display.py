"""Presentation commands: chat layout, help, plan grouping and export."""

from __future__ import annotations

from planner.handlers import Handler, Turn, reply
from planner.history import ActionType
from planner.schemas import AgentAction, AgentMessage, GroupingMode

_LAYOUT_ACTIONS = {
    "left": AgentAction.LAYOUT_LEFT,
    "right": AgentAction.LAYOUT_RIGHT,
    "bottom": AgentAction.LAYOUT_BOTTOM,
}

_DETAILED_WORDS = ("detail", "segment", "line item", "placement", "flat")

HELP_WITHOUT_PLAN = (
    "Here are some ways to get started:\n\n"
    "• **'Create a media plan with a budget of $500k'** - Generate a new plan\n"
    "• **'Build a balanced plan for Q1 2025'** - Create quarterly plan\n"
    "• **'What sports programming is available?'** - Browse TV inventory\n"
    "• **'What DOOH is available in New York?'** - Check outdoor inventory"
)

HELP_WITH_PLAN = (
    "Here's what I can help you with:\n\n"
    "**Add Placements:**\n"
    "• 'Add Google Search ads'\n"
    "• 'Add ESPN SportsCenter'\n\n"
    "**Optimize:**\n"
    "• 'Optimize for reach'\n"
    "• 'Pause underperformers'\n\n"
    "**Inventory Questions:**\n"
    "• 'What sports shows are available?'\n"
    "• 'What DOOH is in Seoul?'\n"
    "• 'Where can I run vertical video?'"
)


def layout_switch(turn: Turn) -> AgentMessage:
    position = (turn.group() or "right").lower()
    return reply(
        f"I've switched the layout to **{position}** position.",
        ["Export PDF"],
        action=_LAYOUT_ACTIONS[position],
    )


def show_help(turn: Turn) -> AgentMessage:
    if turn.session.plan is None:
        return reply(HELP_WITHOUT_PLAN, ["Create a $500k plan", "Show TV sports inventory"])
    return reply(HELP_WITH_PLAN, ["Add TV placement", "Optimize for conversions"])


def change_view(turn: Turn) -> AgentMessage:
    session = turn.session
    plan = session.require_plan()
    before = session.snapshot()

    if any(word in turn.lowered for word in _DETAILED_WORDS):
        plan.grouping_mode = GroupingMode.DETAILED
        content = "Switched to **Detailed View** (Line Items)."
    else:
        plan.grouping_mode = GroupingMode.CHANNEL
        content = "Switched to **Channel Summary View**. Data is now aggregated by channel."

    updated = session.commit(
        ActionType.UPDATE_CAMPAIGN, f"Grouping set to {plan.grouping_mode.value}", turn.text, before
    )
    return reply(
        content,
        ["Show Details", "Show Channel Summary", "Export PDF"],
        updated_media_plan=updated,
    )


def export_ppt(turn: Turn) -> AgentMessage:
    turn.session.require_plan()
    return reply(
        "Generating your PowerPoint presentation now...",
        ["Start New Campaign"],
        action=AgentAction.EXPORT_PPT,
    )


def export_pdf(turn: Turn) -> AgentMessage:
    turn.session.require_plan()
    return reply(
        "Generating your PDF export now...",
        ["Start New Campaign"],
        action=AgentAction.EXPORT_PDF,
    )


HANDLERS: dict[str, Handler] = {
    "layout_switch": layout_switch,
    "help": show_help,
    "change_view": change_view,
    "export_ppt": export_ppt,
    "export_pdf": export_pdf,
}
