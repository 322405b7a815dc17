"""Undo/redo history of plan mutations.

Each record keeps deep copies of the plan before and after the change, so
undo and redo restore snapshots instead of replaying inverse operations.
Recording a new action invalidates everything that was undone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from planner.schemas import MediaPlan, new_id

logger = logging.getLogger(__name__)


class ActionType(StrEnum):
    ADD_PLACEMENT = "add_placement"
    UPDATE_PLACEMENT = "update_placement"
    UPDATE_BUDGET = "update_budget"
    UPDATE_FLIGHT = "update_flight"
    UPDATE_CAMPAIGN = "update_campaign"


@dataclass
class ActionRecord:
    type: ActionType
    description: str
    user_command: str
    state_before: MediaPlan
    state_after: MediaPlan
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    can_undo: bool = True
    undone: bool = False


class ActionHistory:
    """Bounded undo stack plus redo stack of plan snapshots."""

    MAX_HISTORY = 50

    def __init__(self, max_history: int | None = None) -> None:
        self._max = max_history or self.MAX_HISTORY
        self._undo: list[ActionRecord] = []
        self._redo: list[ActionRecord] = []

    def record(
        self,
        action_type: ActionType,
        description: str,
        user_command: str,
        before: MediaPlan,
        after: MediaPlan,
    ) -> ActionRecord:
        entry = ActionRecord(
            type=action_type,
            description=description,
            user_command=user_command,
            state_before=before.model_copy(deep=True),
            state_after=after.model_copy(deep=True),
        )
        self._undo.append(entry)
        if len(self._undo) > self._max:
            self._undo = self._undo[-self._max:]
        self._redo.clear()
        logger.debug("Recorded %s: %s", action_type.value, description)
        return entry

    def undo(self) -> ActionRecord | None:
        """Pop the latest undoable action. Caller restores ``state_before``."""
        while self._undo:
            entry = self._undo.pop()
            if entry.can_undo:
                entry.undone = True
                self._redo.append(entry)
                return entry
        return None

    def redo(self) -> ActionRecord | None:
        """Re-apply the latest undone action. Caller restores ``state_after``."""
        if not self._redo:
            return None
        entry = self._redo.pop()
        entry.undone = False
        self._undo.append(entry)
        return entry

    def recent(self, count: int = 10) -> list[ActionRecord]:
        """Newest first."""
        return list(reversed(self._undo[-count:]))

    def last(self) -> ActionRecord | None:
        return self._undo[-1] if self._undo else None

    def find(self, keyword: str) -> ActionRecord | None:
        """Most recent action whose description or command mentions ``keyword``."""
        needle = keyword.lower()
        for entry in reversed(self._undo):
            if needle in entry.description.lower() or needle in entry.user_command.lower():
                return entry
        return None

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return any(e.can_undo for e in self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)
