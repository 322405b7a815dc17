"""Tests for ContextManager: history bounds, follow-up TTL, frustration window."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from planner.cognitive.context import ContextManager, InMemorySessionStore, is_correction
from planner.cognitive.entities import extract_all_entities
from planner.cognitive.schemas import PendingAction, PendingActionType
from planner.config import Settings

SID = "session-1"
T0 = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def manager():
    return ContextManager(settings=Settings(_env_file=None))


def _at(moment: datetime):
    return patch("planner.cognitive.context._now", return_value=moment)


# ---------------------------------------------------------------------------
# Lifecycle / history
# ---------------------------------------------------------------------------


def test_get_context_creates_lazily():
    """The first lookup creates and stores the context."""
    store = InMemorySessionStore()
    manager = ContextManager(store=store)
    assert len(store) == 0
    context = manager.get_context(SID)
    assert context.session_id == SID
    assert len(store) == 1
    assert manager.get_context(SID) is context


def test_history_is_bounded(manager):
    """History keeps only the last 20 messages."""
    for i in range(35):
        manager.add_message(SID, "user" if i % 2 == 0 else "assistant", f"message {i}")
        assert len(manager.get_context(SID).history) <= 20
    history = manager.get_context(SID).history
    assert history[-1].content == "message 34"
    assert history[0].content == "message 15"


def test_only_user_turns_count_as_interactions(manager):
    """Assistant replies do not count as interactions."""
    manager.add_message(SID, "user", "hi")
    manager.add_message(SID, "assistant", "hello")
    assert manager.get_context(SID).user_profile.interaction_count == 1


def test_expertise_inference(manager):
    """Jargon-heavy users are promoted to expert."""
    manager.add_message(SID, "user", "what is a flight?")
    assert manager.get_context(SID).user_profile.expertise_level == "beginner"

    for _ in range(3):
        manager.add_message(SID, "user", "check incrementality and attribution by dma")
    assert manager.get_context(SID).user_profile.expertise_level == "expert"


def test_recent_history_and_previous_mention(manager):
    """Mentions are searched case-insensitively, newest first."""
    for text in ("add tv", "add social", "export pdf"):
        manager.add_message(SID, "user", text)
    assert [m.content for m in manager.get_recent_history(SID, count=2)] == ["add social", "export pdf"]
    assert manager.find_previous_mention(SID, "SOCIAL").content == "add social"
    assert manager.find_previous_mention(SID, "radio") is None


def test_entities_accumulate(manager):
    """Budget overwrites while channels union across turns."""
    manager.add_message(SID, "user", "budget $50k", entities=extract_all_entities("budget $50k"))
    manager.add_message(SID, "user", "add social", entities=extract_all_entities("add social"))
    manager.add_message(SID, "user", "and search", entities=extract_all_entities("and search"))

    acc = manager.get_accumulated_entities(SID)
    assert acc.budget == 50_000
    assert acc.channels == {"Social", "Search"}

    manager.clear_accumulated_entities(SID)
    assert manager.get_accumulated_entities(SID).budget is None


def test_update_focus(manager):
    """Focus updates merge rather than replace."""
    manager.update_focus(SID, campaign_id="c1")
    focus = manager.update_focus(SID, flight_id="f1")
    assert focus.campaign_id == "c1"
    assert focus.flight_id == "f1"


def test_reset_context(manager):
    """Reset starts the session over with empty history."""
    manager.add_message(SID, "user", "hi")
    manager.reset_context(SID)
    assert manager.get_context(SID).history == []


# ---------------------------------------------------------------------------
# Follow-ups
# ---------------------------------------------------------------------------


def test_follow_up_within_ttl(manager):
    """A follow-up is still live one second before its TTL."""
    with _at(T0):
        manager.set_follow_up(SID, yes_action="apply pending changes", question="Apply?")
    with _at(T0 + timedelta(seconds=119)):
        follow_up = manager.get_follow_up(SID)
    assert follow_up is not None
    assert follow_up.yes_action == "apply pending changes"


def test_follow_up_expires(manager):
    """A follow-up past its TTL is cleared on read."""
    with _at(T0):
        manager.set_follow_up(SID, yes_action="apply pending changes")
    with _at(T0 + timedelta(seconds=121)):
        assert manager.get_follow_up(SID) is None
    # Expiry clears the slot for good.
    with _at(T0):
        assert manager.get_follow_up(SID) is None


def test_follow_up_single_slot(manager):
    """Only the most recent follow-up is kept."""
    manager.set_follow_up(SID, yes_action="first")
    manager.set_follow_up(SID, yes_action="second")
    assert manager.get_follow_up(SID).yes_action == "second"
    manager.clear_follow_up(SID)
    assert manager.get_follow_up(SID) is None


# ---------------------------------------------------------------------------
# Pending actions
# ---------------------------------------------------------------------------


def _pending(action_id: str, kind: PendingActionType = PendingActionType.PAUSE_UNDERPERFORMERS) -> PendingAction:
    return PendingAction(id=action_id, type=kind, description="Pause 2")


def test_pending_actions(manager):
    """Actions are peeked newest-first and popped once by confirm or decline."""
    manager.add_pending_action(SID, _pending("a"))
    manager.add_pending_action(SID, _pending("b", PendingActionType.SCALE_WINNERS))
    assert manager.peek_pending_action(SID).id == "b"

    assert manager.confirm_action(SID, "b").id == "b"
    assert manager.confirm_action(SID, "b") is None
    assert manager.decline_action(SID, "a").id == "a"
    assert manager.peek_pending_action(SID) is None


def test_same_type_proposal_replaces_earlier_one(manager):
    """A second pause proposal supersedes the first instead of stacking."""
    manager.add_pending_action(SID, _pending("a"))
    manager.add_pending_action(SID, _pending("b"))
    assert [p.id for p in manager.get_context(SID).pending_actions] == ["b"]


def test_expired_follow_up_drops_its_pending_action(manager):
    """Once the confirming question times out, its proposal is gone too."""
    manager.add_pending_action(SID, _pending("a"))
    with _at(T0):
        manager.set_follow_up(SID, yes_action="apply pending changes", pending_action_id="a")
    with _at(T0 + timedelta(seconds=121)):
        assert manager.get_follow_up(SID) is None
    assert manager.peek_pending_action(SID) is None


def test_replaced_follow_up_drops_its_pending_action(manager):
    """A new question in the slot discards the proposal the old one asked about."""
    manager.add_pending_action(SID, _pending("a"))
    manager.set_follow_up(SID, yes_action="apply pending changes", pending_action_id="a")
    manager.set_follow_up(SID, yes_action="show me the plan")
    assert manager.peek_pending_action(SID) is None


def test_clearing_follow_up_keeps_pending_action(manager):
    """Answering clears the slot but leaves the proposal for the answer to act on."""
    manager.add_pending_action(SID, _pending("a"))
    manager.set_follow_up(SID, yes_action="apply pending changes", pending_action_id="a")
    manager.clear_follow_up(SID)
    assert manager.peek_pending_action(SID).id == "a"


def test_pending_action_types_are_the_two_proposals():
    """Only pause and scale proposals are ever queued for confirmation."""
    assert list(PendingActionType) == [PendingActionType.PAUSE_UNDERPERFORMERS, PendingActionType.SCALE_WINNERS]


# ---------------------------------------------------------------------------
# Frustration
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("no, I meant search", True),
        ("that's not what I asked for", True),
        ("try again", True),
        ("add social", False),
        ("no", False),
    ],
)
def test_is_correction(message, expected):
    """Correction phrases are told apart from a bare "no"."""
    assert is_correction(message) is expected


def test_escalation_offered_once(manager):
    """Escalation is offered once per session."""
    offers = 0
    for i in range(3):
        with _at(T0 + timedelta(seconds=30 * i)):
            manager.track_frustration(SID, "no, I meant search")
        if manager.should_offer_human_escalation(SID):
            offers += 1
            manager.mark_escalation_offered(SID)
    assert offers == 1
    assert manager.get_frustration_state(SID).escalated_to_human is True


def test_corrections_outside_window_restart_count(manager):
    """A correction after the window starts a new count."""
    with _at(T0):
        manager.track_frustration(SID, "no, I meant search")
    with _at(T0 + timedelta(minutes=6)):
        state = manager.track_frustration(SID, "that's wrong")
    assert state.consecutive_corrections == 1
    assert manager.should_offer_human_escalation(SID) is False


def test_non_correction_clears_only_after_window(manager):
    """Ordinary input resets the count only once the window has passed."""
    with _at(T0):
        manager.track_frustration(SID, "no, I meant search")
    with _at(T0 + timedelta(minutes=1)):
        assert manager.track_frustration(SID, "add social").consecutive_corrections == 1
    with _at(T0 + timedelta(minutes=6)):
        assert manager.track_frustration(SID, "add social").consecutive_corrections == 0
