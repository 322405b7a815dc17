"""Per-session planner state shared by AgentBrain and the command handlers.

AgentBrain owns one PlannerSession. Handlers receive it through a Turn and
mutate the active plan and conversation state only through it, so every
plan change passes through ``commit`` and lands in the undo history.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from planner.cognitive.context import ContextManager
from planner.config import Settings
from planner.errors import PlanRequiredError
from planner.history import ActionHistory, ActionType
from planner.plan import recalculate_plan
from planner.schemas import AgentState, MediaPlan, WindowContext

logger = logging.getLogger(__name__)


@dataclass
class PlannerSession:
    session_id: str
    settings: Settings
    context: ContextManager
    rng: random.Random
    history: ActionHistory
    state: AgentState = AgentState.INIT
    plan: MediaPlan | None = None

    def transition(self, state: AgentState) -> None:
        if state != self.state:
            logger.info("Session %s: %s -> %s", self.session_id, self.state.value, state.value)
        self.state = state

    def require_plan(self) -> MediaPlan:
        if self.plan is None:
            raise PlanRequiredError()
        return self.plan

    def snapshot(self) -> MediaPlan:
        """Deep copy of the active plan, taken before a mutation."""
        return self.require_plan().model_copy(deep=True)

    def commit(
        self,
        action_type: ActionType,
        description: str,
        command: str,
        before: MediaPlan,
    ) -> MediaPlan:
        """Recalculate the active plan, record the change and return a UI snapshot."""
        plan = recalculate_plan(self.require_plan())
        plan.version += 1
        self.history.record(action_type, description, command, before, plan)
        return plan.model_copy(deep=True)

    def restore(self, plan: MediaPlan) -> MediaPlan:
        """Make a copy of ``plan`` the active plan (undo/redo)."""
        self.plan = plan.model_copy(deep=True)
        return self.plan.model_copy(deep=True)

    def reset(self) -> None:
        """Drop the plan, the undo history and the conversation context."""
        self.plan = None
        self.history.clear()
        self.context.reset_context(self.session_id)
        self.transition(AgentState.INIT)

    def window_context(self) -> WindowContext:
        """Eligibility context implied by the session when the UI sends none."""
        has_plan = self.plan is not None
        return WindowContext(
            has_media_plan=has_plan,
            has_campaign=has_plan,
            has_flight=has_plan and self.plan.active_flight_id is not None,
            has_windows=False,
        )
