"""Tests for the command handlers, driven through AgentBrain.process_input.

Every test goes through the real registry and dispatcher, so a handler is
only reached when its command wins the match and passes the eligibility
gate.
"""

import pytest

from planner.cognitive.schemas import PendingActionType
from planner.commands import registry
from planner.errors import CommandError, PlanRequiredError
from planner.handlers import CommandDispatcher, Turn, build_dispatcher
from planner.schemas import AgentAction, AgentState, GroupingMode


def _placement(brain, vendor):
    return next(p for p in brain.plan.campaign.placements if p.vendor == vendor)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


def test_build_dispatcher_covers_every_command():
    """Every registered command has a handler."""
    dispatcher = build_dispatcher()
    missing = {c.id for c in registry.commands} - dispatcher.command_ids
    assert missing == set()


def _turn(brain, text):
    match = registry.find_all_matching_commands(text)[0]
    return Turn(text=text, match=match, session=brain.session)


@pytest.mark.parametrize(
    "error, expected",
    [
        (CommandError("bad row"), "I'm sorry, I ran into a problem with that request: bad row"),
        (ValueError("boom"), "I'm sorry, I ran into a problem with that request: boom"),
        (
            PlanRequiredError(),
            "There is no active media plan yet. Tell me the client and total budget to create one.",
        ),
    ],
)
def test_dispatcher_turns_handler_errors_into_a_reply(brain, error, expected):
    """Handler exceptions come back as a reply instead of propagating."""
    def explode(turn):
        raise error

    dispatcher = CommandDispatcher()
    dispatcher.register("help", explode)
    message = dispatcher.dispatch(_turn(brain, "help"))
    assert message.content == expected


def test_dispatcher_without_handler_says_so(brain):
    """An unregistered command is acknowledged by name."""
    message = CommandDispatcher().dispatch(_turn(brain, "help"))
    assert message.content == "I understood **Help**, but I can't do that yet."


# ---------------------------------------------------------------------------
# Layout, help, view, export
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, action",
    [
        ("switch to left", AgentAction.LAYOUT_LEFT),
        ("layout bottom", AgentAction.LAYOUT_BOTTOM),
        ("move to right", AgentAction.LAYOUT_RIGHT),
    ],
)
def test_layout_switch_needs_no_plan(brain, text, action):
    """Layout commands work before any plan exists."""
    message = brain.process_input(text)
    assert message.action == action
    assert brain.state == AgentState.INIT


def test_help_without_plan(brain):
    """Help before a plan points at getting started."""
    assert brain.process_input("help").content.startswith("Here are some ways to get started")


def test_help_with_plan(scored_brain):
    """Help with a plan lists editing commands."""
    assert scored_brain.process_input("help").content.startswith("Here's what I can help you with")


def test_change_view(scored_brain):
    """Switching views sets the plan's grouping mode."""
    message = scored_brain.process_input("Show Channel Summary")
    assert scored_brain.plan.grouping_mode == GroupingMode.CHANNEL
    assert "Channel Summary View" in message.content

    scored_brain.process_input("Show Details")
    assert scored_brain.plan.grouping_mode == GroupingMode.DETAILED


@pytest.mark.parametrize(
    "text, action",
    [("Export PDF", AgentAction.EXPORT_PDF), ("Export PPT", AgentAction.EXPORT_PPT)],
)
def test_export(scored_brain, text, action):
    """Export commands return the matching UI action."""
    assert scored_brain.process_input(text).action == action


def test_export_without_plan_is_refused(brain):
    """Export is gated on an active media plan."""
    message = brain.process_input("Export PDF")
    assert message.action is None
    assert message.content.startswith("This command requires an active media plan")
    assert brain.plan is None


# ---------------------------------------------------------------------------
# Undo / redo / history
# ---------------------------------------------------------------------------


def test_history_undo_redo(planned_brain):
    """Plan generation can be undone and redone once."""
    generated = len(planned_brain.plan.campaign.placements)
    assert generated > 0

    assert "Generated Balanced plan" in planned_brain.process_input("show history").content

    message = planned_brain.process_input("undo")
    assert message.content == "Undid: **Generated Balanced plan**."
    assert planned_brain.plan.campaign.placements == []

    message = planned_brain.process_input("redo")
    assert message.content == "Redid: **Generated Balanced plan**."
    assert len(planned_brain.plan.campaign.placements) == generated

    assert planned_brain.process_input("redo").content == "Nothing to redo."


def test_undo_with_nothing_recorded(scored_brain):
    """Undo and history are empty on a hand-built plan."""
    assert scored_brain.process_input("undo").content == "Nothing to undo."
    assert scored_brain.process_input("show history").content == "No changes recorded yet."


def test_undo_last_n(scored_brain):
    """Undo with a count rolls back that many budget changes."""
    scored_brain.process_input("Set budget to $200k")
    scored_brain.process_input("Set budget to $300k")
    message = scored_brain.process_input("undo last 2")
    assert message.content.startswith("Undid 2 changes:")
    assert scored_brain.plan.campaign.budget == 100_000


# ---------------------------------------------------------------------------
# Budget and goals
# ---------------------------------------------------------------------------


def test_change_budget(scored_brain):
    """Setting the budget bumps the version and recomputes what remains."""
    message = scored_brain.process_input("Set budget to $1M")
    assert message.content == "Updated total budget to **$1,000,000**. You have $970,000 remaining."
    assert scored_brain.plan.campaign.budget == 1_000_000
    assert scored_brain.plan.remaining_budget == 970_000
    assert scored_brain.plan.version == 2


def test_change_budget_without_amount_asks(scored_brain):
    """A budget said on an earlier turn is not reused to change the plan total."""
    scored_brain.process_input("I'm thinking $50k")
    message = scored_brain.process_input("set budget")
    assert message.content == "The total budget is **$100,000**. What should it be?"
    assert scored_brain.plan.campaign.budget == 100_000
    assert scored_brain.history.can_undo is False


def test_budget_allocation_does_not_mutate(scored_brain):
    """An allocation answer leaves the plan and history alone."""
    message = scored_brain.process_input("How should I allocate $100k?")
    assert "Allocation" in message.content
    assert message.updated_media_plan is None
    assert scored_brain.history.can_undo is False


def test_budget_allocation_uses_channels_named_earlier(scored_brain):
    """Channels mentioned on a previous turn carry into the allocation."""
    scored_brain.process_input("I'm interested in search and social")
    message = scored_brain.process_input("How should I allocate $100k?")
    assert "Using requested channels: Search, Social" in message.content


def test_budget_allocation_prefers_channels_in_the_request(scored_brain):
    """Channels named in the request itself win over earlier mentions."""
    scored_brain.process_input("I'm interested in search and social")
    message = scored_brain.process_input("How should I allocate $100k across display?")
    assert "Using requested channels: Display" in message.content


def test_set_and_show_goal(scored_brain):
    """A goal that was set shows up in the goal list."""
    message = scored_brain.process_input("Set goal impressions to 5M")
    assert "I've set your **impressions** goal to **5,000,000**" in message.content
    assert scored_brain.plan.campaign.goals["impressions"] == 5_000_000

    shown = scored_brain.process_input("show goals").content
    assert "**Impressions:** 5,000,000" in shown


def test_set_goal_without_metric_asks(scored_brain):
    """A goal with no metric prompts for one."""
    message = scored_brain.process_input("set goal to 100")
    assert message.content.startswith("Which goal would you like to set?")


# ---------------------------------------------------------------------------
# Placements
# ---------------------------------------------------------------------------


def test_add_channel(scored_brain):
    """A new placement joins the active flight."""
    message = scored_brain.process_input("Add Search")
    assert "I've added a new **Search** placement" in message.content
    assert len(scored_brain.plan.campaign.placements) == 3
    added = scored_brain.plan.campaign.placements[-1]
    assert added.flight_id == scored_brain.plan.active_flight_id


def test_add_batch_placements(scored_brain):
    """A batch request adds that many Social lines."""
    message = scored_brain.process_input("add 3 social placements")
    assert "Created **3 Social placements**" in message.content
    assert len(scored_brain.plan.campaign.placements) == 5


def test_add_batch_rejects_more_than_ten(scored_brain):
    """Batches over ten are refused without changing the plan."""
    message = scored_brain.process_input("add 12 display placements")
    assert message.content == "I can create between 1 and 10 placements at a time. You requested 12."
    assert len(scored_brain.plan.campaign.placements) == 2


def test_pause_and_resume_row(scored_brain):
    """Rows are addressed by their 1-based position."""
    message = scored_brain.process_input("pause row 1")
    assert message.content == "I've paused 1 placement(s): Row #1 (MetaLoser)."
    assert _placement(scored_brain, "MetaLoser").is_paused

    scored_brain.process_input("resume row 1")
    assert not _placement(scored_brain, "MetaLoser").is_paused


def test_pause_unknown_row(scored_brain):
    """A row past the end matches nothing."""
    message = scored_brain.process_input("pause row 9")
    assert message.content.startswith("I couldn't find any matching placements to pause")


# ---------------------------------------------------------------------------
# Optimization proposals
# ---------------------------------------------------------------------------


def test_pause_underperformers_confirmed(scored_brain):
    """The pause proposal only changes the plan after "yes", and undo reverts it."""
    proposal = scored_brain.process_input("Pause underperformers")
    assert proposal.pending_action.type == PendingActionType.PAUSE_UNDERPERFORMERS
    assert any("MetaLoser" in d for d in proposal.pending_action.details)
    assert not any("GoogleWinner" in d for d in proposal.pending_action.details)
    assert proposal.follow_up.yes_action == "apply pending changes"
    assert not _placement(scored_brain, "MetaLoser").is_paused

    applied = scored_brain.process_input("yes")
    assert applied.content.startswith("**Paused 1 underperforming placement**")
    assert _placement(scored_brain, "MetaLoser").is_paused
    assert scored_brain.context.peek_pending_action(scored_brain.session_id) is None

    scored_brain.process_input("undo")
    assert not _placement(scored_brain, "MetaLoser").is_paused


def test_pause_underperformers_declined(scored_brain):
    """Declining discards the proposal and leaves the plan alone."""
    scored_brain.process_input("Pause underperformers")
    message = scored_brain.process_input("no")
    assert message.content == "No problem. I won't pause 1 underperforming placement."
    assert not _placement(scored_brain, "MetaLoser").is_paused
    assert scored_brain.context.peek_pending_action(scored_brain.session_id) is None


def test_scale_winners_confirmed(scored_brain):
    """Confirming a scale-up raises the winner's spend."""
    proposal = scored_brain.process_input("Scale winners")
    assert proposal.pending_action.type == PendingActionType.SCALE_WINNERS

    applied = scored_brain.process_input("yes")
    assert applied.content.startswith("**Scaled 1 high-performing placement**")
    assert _placement(scored_brain, "GoogleWinner").total_cost > 20_000


def test_confirm_with_nothing_pending(scored_brain):
    """Confirming with an empty queue says so."""
    message = scored_brain.process_input("apply pending changes")
    assert message.content == "There's nothing waiting for confirmation right now."


def test_optimize_enters_and_editing_leaves_optimization(scored_brain):
    """Analysis keeps OPTIMIZATION; an edit returns to REFINEMENT."""
    scored_brain.process_input("Optimize my plan")
    assert scored_brain.state == AgentState.OPTIMIZATION

    scored_brain.process_input("Show Performance")
    assert scored_brain.state == AgentState.OPTIMIZATION

    scored_brain.process_input("Add Search")
    assert scored_brain.state == AgentState.REFINEMENT


def test_optimize_without_placements(brain):
    """Optimizing an empty plan asks for placements first."""
    brain.process_input("Create plan for Nike ($500k)")
    message = brain.process_input("Optimize my plan")
    assert message.content.startswith("I can't analyze your plan yet because there are no placements")


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


def test_create_flight_becomes_active(scored_brain):
    """A new flight defaults its budget and becomes the active one."""
    message = scored_brain.process_input("Create flight Q2 Push")
    assert message.content.startswith("Created flight **Q2 Push**")
    assert "**$100,000**" in message.content
    flights = scored_brain.plan.campaign.flights
    assert len(flights) == 3
    assert scored_brain.plan.active_flight_id == flights[-1].id


def test_start_over(planned_brain):
    """Starting over drops the plan and its undo history."""
    message = planned_brain.process_input("start over")
    assert message.content.startswith("Okay, let's start fresh")
    assert planned_brain.plan is None
    assert planned_brain.state == AgentState.INIT
    assert planned_brain.history.can_undo is False


def test_finish_plan(planned_brain):
    """Approving the plan moves it to FINISHED."""
    message = planned_brain.process_input("Looks good")
    assert message.content.startswith("Great! The **Nike** plan is final")
    assert planned_brain.state == AgentState.FINISHED


def test_talk_to_human(scored_brain):
    """Asking for a human marks the session escalated."""
    message = scored_brain.process_input("talk to a human")
    assert message.content.startswith("I've flagged this conversation for a media specialist")
    assert scored_brain.context.get_frustration_state(scored_brain.session_id).escalated_to_human


# ---------------------------------------------------------------------------
# Templates and creatives
# ---------------------------------------------------------------------------


def test_apply_template_from_init(brain):
    """A template builds a plan straight from INIT."""
    message = brain.process_input("Use the Retail Holiday template")
    assert "**Retail Holiday Campaign** template: 5 placements" in message.content
    assert brain.state == AgentState.REFINEMENT
    assert brain.plan.campaign.budget == 200_000
    assert brain.plan.campaign.goals["conversions"] == 25_000


def test_apply_unknown_template(brain):
    """An unknown template name is reported and no plan is made."""
    message = brain.process_input("use the moonshot template")
    assert message.content == 'I\'m sorry, I ran into a problem with that request: no template matches "moonshot"'
    assert brain.plan is None


def test_show_templates(brain):
    """Templates can be listed before any plan exists."""
    message = brain.process_input("show templates")
    assert message.content.startswith("**Campaign Templates**")


def test_upload_and_assign_creative(scored_brain):
    """Library creatives go to placements that have none."""
    message = scored_brain.process_input('upload creative "Holiday Hero"')
    assert message.content == 'Added "Holiday Hero" to your library. Assign it to placements?'
    assert [c.name for c in scored_brain.plan.campaign.creative_library] == ["Holiday Hero"]

    assert scored_brain.process_input("assign creative").content == "Assigned creatives to 1 placement(s)."
    assert len(_placement(scored_brain, "MetaLoser").creatives) == 1
    assert _placement(scored_brain, "GoogleWinner").creatives == []


def test_inventory_question_needs_no_plan(brain):
    """Inventory questions are answered without creating a plan."""
    message = brain.process_input("What sports programming is available?")
    assert message.content
    assert brain.plan is None
    assert brain.state == AgentState.INIT
