"""Tests for ActionHistory: snapshot undo/redo."""

from datetime import date

from planner.history import ActionHistory, ActionType
from planner.plan import create_media_plan


def _plan(budget):
    return create_media_plan("Acme", budget, today=date(2025, 1, 1))


def _record(history, before, after, description="Set budget"):
    return history.record(ActionType.UPDATE_BUDGET, description, "set budget", before, after)


def test_undo_then_redo():
    """Undo restores the before-snapshot and redo the after-snapshot."""
    history = ActionHistory()
    before, after = _plan(100), _plan(200)
    _record(history, before, after)

    entry = history.undo()
    assert entry.state_before.campaign.budget == 100
    assert entry.undone is True
    assert history.can_undo is False
    assert history.can_redo is True

    entry = history.redo()
    assert entry.state_after.campaign.budget == 200
    assert entry.undone is False
    assert history.can_redo is False


def test_empty_history():
    """A fresh history has nothing to undo or redo."""
    history = ActionHistory()
    assert history.undo() is None
    assert history.redo() is None
    assert history.last() is None


def test_record_clears_redo():
    """Recording after an undo discards the redo branch."""
    history = ActionHistory()
    _record(history, _plan(100), _plan(200))
    history.undo()
    _record(history, _plan(100), _plan(300))
    assert history.redo() is None


def test_snapshots_are_copies():
    """Mutating a plan after recording leaves its snapshot untouched."""
    history = ActionHistory()
    before, after = _plan(100), _plan(200)
    _record(history, before, after)
    before.campaign.budget = 999
    assert history.last().state_before.campaign.budget == 100


def test_history_is_bounded():
    """Only the newest max_history entries are kept."""
    history = ActionHistory(max_history=3)
    for i in range(5):
        _record(history, _plan(i), _plan(i + 1), description=f"step {i}")
    assert len(history) == 3
    assert [e.description for e in history.recent()] == ["step 4", "step 3", "step 2"]


def test_recent_and_find():
    """find matches descriptions case-insensitively, newest first."""
    history = ActionHistory()
    _record(history, _plan(1), _plan(2), description="Added TV placement")
    _record(history, _plan(2), _plan(3), description="Set budget to $3")
    assert history.recent(count=1)[0].description == "Set budget to $3"
    assert history.find("tv").description == "Added TV placement"
    assert history.find("radio") is None


def test_clear():
    """Clearing drops both the undo and the redo stacks."""
    history = ActionHistory()
    _record(history, _plan(1), _plan(2))
    history.undo()
    history.clear()
    assert len(history) == 0
    assert history.can_redo is False
