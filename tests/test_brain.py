"""Conversation-level tests for AgentBrain: state machine, follow-ups,
escalation and the never-raise guarantee."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from planner.brain import ESCALATION_OFFER, LISTENING, WELCOME, AgentBrain, detect_strategy
from planner.handlers import NEW_PLAN_SUGGESTIONS, CommandDispatcher
from planner.handlers.session import STRATEGY_SUGGESTIONS
from planner.schemas import AgentState, Strategy, WindowContext

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _at(moment: datetime):
    return patch("planner.cognitive.context._now", return_value=moment)


# ---------------------------------------------------------------------------
# INIT -> BUDGETING -> REFINEMENT
# ---------------------------------------------------------------------------


def test_welcome_message(brain):
    """The welcome offers new-plan suggestions and leaves the state at INIT."""
    message = brain.welcome_message()
    assert message.content == WELCOME
    assert message.suggested_actions == NEW_PLAN_SUGGESTIONS
    assert brain.state == AgentState.INIT


def test_create_campaign_moves_to_budgeting(brain):
    """Creating a campaign parses client and budget, then asks for a strategy."""
    message = brain.process_input("Create plan for Nike ($500k)")

    assert brain.state == AgentState.BUDGETING
    assert brain.plan.campaign.advertiser == "Nike"
    assert brain.plan.campaign.budget == 500_000
    assert message.content.startswith(
        "Great! I've initialized a campaign for **Nike** with a budget of **$500,000**."
    )
    assert message.suggested_actions == STRATEGY_SUGGESTIONS
    assert message.updated_media_plan.campaign.advertiser == "Nike"


def test_turns_are_recorded_in_context(brain):
    """Both sides of a turn land in history and entities accumulate."""
    brain.process_input("Create plan for Nike ($500k)")
    history = brain.context.get_context(brain.session_id).history
    assert [m.role for m in history] == ["user", "assistant"]
    assert history[0].content == "Create plan for Nike ($500k)"
    assert brain.context.get_accumulated_entities(brain.session_id).budget == 500_000


def test_init_accepts_any_input_as_a_plan_request(brain):
    """In INIT, anything unmatched starts a plan on the default budget."""
    brain.process_input("hello there")
    assert brain.state == AgentState.BUDGETING
    assert brain.plan.campaign.budget == 100_000


def test_balanced_strategy_generates_plan(brain):
    """Picking the 70/20/10 rule fills the plan within budget."""
    brain.process_input("Create plan for Nike ($500k)")
    message = brain.process_input("Apply 70/20/10 Rule")

    plan = brain.plan
    assert brain.state == AgentState.REFINEMENT
    assert plan.strategy == Strategy.BALANCED
    assert plan.campaign.placements
    assert plan.total_spend <= plan.campaign.budget
    assert message.content.startswith(
        f"I've generated a **BALANCED** media plan with {len(plan.campaign.placements)} placements."
    )
    assert message.agents_invoked == ["Insights Agent", "Yield Agent"]
    assert message.suggested_actions == ["Optimize for Reach", "Optimize for Conversions", "Looks good"]


def test_digital_strategy(brain):
    """The "Digital Only" button picks the DIGITAL strategy."""
    brain.process_input("Create plan for Nike ($500k)")
    brain.process_input("Focus on Digital Only")
    assert brain.plan.strategy == Strategy.DIGITAL
    assert brain.state == AgentState.REFINEMENT


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Apply 70/20/10 Rule", Strategy.BALANCED),
        ("Focus on Digital Only", Strategy.DIGITAL),
        ("Focus on Brand Awareness (TV/OOH)", Strategy.AWARENESS),
        ("more tv please", Strategy.AWARENESS),
        ("hmm let me think", None),
    ],
)
def test_detect_strategy(text, expected):
    """Strategy buttons and loose TV mentions map to a strategy."""
    assert detect_strategy(text) == expected


def test_same_seed_same_plan(settings):
    """Two brains on the same seed build identical plans."""
    vendors = []
    for _ in range(2):
        brain = AgentBrain(settings=settings)
        brain.process_input("Create plan for Nike ($500k)")
        brain.process_input("Apply 70/20/10 Rule")
        vendors.append([(p.channel, p.vendor, p.total_cost) for p in brain.plan.campaign.placements])
    assert vendors[0] == vendors[1]


def test_channels_in_budgeting_go_through_channel_selection(brain):
    """Naming channels while budgeting asks before generating."""
    brain.process_input("Create plan for Nike ($500k)")
    message = brain.process_input("I'm interested in search and social")

    assert brain.state == AgentState.CHANNEL_SELECTION
    assert message.content == "Noted your interest in **Search, Social**. Ready to generate the plan?"
    assert message.follow_up.yes_action == "generate plan"

    message = brain.process_input("yes")
    assert brain.state == AgentState.REFINEMENT
    assert message.agents_invoked == ["Insights Agent", "Performance Agent", "Yield Agent"]
    assert brain.plan.strategy == Strategy.BALANCED


# ---------------------------------------------------------------------------
# Follow-ups
# ---------------------------------------------------------------------------


def _vague_budgeting_reply(brain):
    with _at(T0):
        brain.process_input("Create plan for Nike ($500k)")
        return brain.process_input("hmm let me think")


def test_budgeting_without_strategy_asks_to_draft(brain):
    """Vague budgeting input offers to draft a Balanced plan."""
    message = _vague_budgeting_reply(brain)
    assert message.content == "I'll draft a Balanced plan. Ready to see the placements?"
    assert message.follow_up.yes_action == "show me the plan"
    assert brain.state == AgentState.BUDGETING


def test_follow_up_yes_within_ttl(brain):
    """Saying yes inside the TTL runs the follow-up's yes action."""
    _vague_budgeting_reply(brain)
    with _at(T0 + timedelta(seconds=119)):
        message = brain.process_input("yes")
    assert brain.state == AgentState.REFINEMENT
    assert message.content.startswith("I've generated a **BALANCED** media plan")
    assert brain.context.get_follow_up(brain.session_id) is None


def test_follow_up_no_within_ttl(brain):
    """Saying no to a follow-up without a no action just acknowledges."""
    _vague_budgeting_reply(brain)
    with _at(T0 + timedelta(seconds=119)):
        message = brain.process_input("no")
    assert message.content == "No problem."
    assert brain.state == AgentState.BUDGETING


def test_expired_follow_up_is_ignored(brain):
    """After the TTL, "no" is ordinary input again."""
    _vague_budgeting_reply(brain)
    with _at(T0 + timedelta(seconds=121)):
        message = brain.process_input("no")
    # "no" is read as ordinary BUDGETING input, which asks again.
    assert message.content == "I'll draft a Balanced plan. Ready to see the placements?"
    assert brain.state == AgentState.BUDGETING


def _metaloser(brain):
    return next(p for p in brain.plan.campaign.placements if p.vendor == "MetaLoser")


def test_repeated_proposals_expire_with_their_question(scored_brain):
    """Late "yes" after stacked pause proposals applies nothing."""
    for minutes in (0, 5, 10):
        with _at(T0 + timedelta(minutes=minutes)):
            scored_brain.process_input("Pause underperformers")
    assert len(scored_brain.context.get_context(scored_brain.session_id).pending_actions) == 1

    with _at(T0 + timedelta(minutes=20)):
        late = scored_brain.process_input("yes")
    assert late.content == LISTENING
    assert scored_brain.context.peek_pending_action(scored_brain.session_id) is None

    with _at(T0 + timedelta(minutes=21)):
        message = scored_brain.process_input("apply pending changes")
    assert message.content == "There's nothing waiting for confirmation right now."
    assert not _metaloser(scored_brain).is_paused


def test_yes_after_start_over_does_not_apply_old_proposal(scored_brain):
    """Resetting the session forgets the open pause proposal."""
    scored_brain.process_input("Pause underperformers")
    scored_brain.process_input("start over")
    message = scored_brain.process_input("yes")

    assert scored_brain.state == AgentState.BUDGETING
    assert message.content.startswith("Great! I've initialized a campaign for **Client**")
    assert "Paused" not in message.content
    assert scored_brain.context.peek_pending_action(scored_brain.session_id) is None


# ---------------------------------------------------------------------------
# Frustration and escalation
# ---------------------------------------------------------------------------


def test_escalation_offered_once(planned_brain):
    """The human hand-off is offered on the second correction only."""
    first = planned_brain.process_input("no, I meant search")
    assert first.content == LISTENING

    second = planned_brain.process_input("no, I meant search")
    assert second.content.endswith(ESCALATION_OFFER)
    assert "Talk to a human" in second.suggested_actions
    assert second.follow_up.yes_action == "talk to a human"

    third = planned_brain.process_input("no, I meant search")
    assert ESCALATION_OFFER not in third.content


def test_accepting_escalation_hands_off(planned_brain):
    """Saying yes to the offer flags the conversation for a specialist."""
    planned_brain.process_input("that's not right")
    planned_brain.process_input("wrong, try again")
    message = planned_brain.process_input("yes")
    assert message.content.startswith("I've flagged this conversation for a media specialist")


# ---------------------------------------------------------------------------
# Eligibility gate and state fallbacks
# ---------------------------------------------------------------------------


def test_window_context_overrides_session(planned_brain):
    """A window context without a flight blocks placement edits."""
    ctx = WindowContext(has_media_plan=True, has_campaign=True, has_flight=False)
    message = planned_brain.process_input("pause row 1", window_context=ctx)

    assert message.content == (
        "This command requires a flight context. Please open a flight to manage placements."
    )
    assert not any(p.is_paused for p in planned_brain.plan.campaign.placements)


def test_unmatched_input_in_refinement_lists_options(planned_brain):
    """Off-topic input in REFINEMENT gets the listening reply."""
    message = planned_brain.process_input("tell me a joke")
    assert message.content == LISTENING
    assert planned_brain.state == AgentState.REFINEMENT


def test_finished_then_init_guard(planned_brain):
    """Starting over from FINISHED guards the existing plan."""
    planned_brain.process_input("Looks good")
    assert planned_brain.state == AgentState.FINISHED

    message = planned_brain.process_input("hello")
    assert message.content == "Starting a new session. Who is the client?"
    assert planned_brain.state == AgentState.INIT

    message = planned_brain.process_input("Adidas with 200k")
    assert message.content.startswith("You already have a plan for **Nike**. Did you mean")
    assert message.suggested_actions == ["Start a new plan", "Continue editing current plan"]
    assert planned_brain.plan.campaign.advertiser == "Nike"

    message = planned_brain.process_input("something else entirely")
    assert "in progress" in message.content

    message = planned_brain.process_input("Continue editing current plan")
    assert planned_brain.state == AgentState.REFINEMENT
    assert message.content.startswith("Picking up where we left off with the **Nike** plan")


def test_finished_then_new_campaign(planned_brain):
    """An explicit create request replaces the finished plan."""
    planned_brain.process_input("Looks good")
    planned_brain.process_input("hello")
    planned_brain.process_input("Create plan for Adidas ($200k)")

    assert planned_brain.state == AgentState.BUDGETING
    assert planned_brain.plan.campaign.advertiser == "Adidas"
    assert planned_brain.plan.campaign.budget == 200_000
    assert planned_brain.history.can_undo is False


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------


class ExplodingDispatcher(CommandDispatcher):
    def dispatch(self, turn):
        raise RuntimeError("boom")


def test_process_input_never_raises(settings):
    """A failing handler becomes an apology message."""
    brain = AgentBrain(settings=settings, dispatcher=ExplodingDispatcher())
    message = brain.process_input("help")
    assert message.content == "I'm sorry, I ran into a problem with that request: boom"
    assert "Help" in message.suggested_actions
