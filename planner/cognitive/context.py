"""Conversation context manager.

Owns every ConversationContext. Callers read and mutate session state
only through ContextManager methods; the backing map sits behind the
SessionStore protocol so it can be swapped for a shared store.

Time-sensitive state (follow-up slot, frustration window) is evaluated
lazily against the wall clock on read. There are no background sweeps.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Protocol

from planner.cognitive.schemas import (
    AudienceEntities,
    ConversationContext,
    ConversationFocus,
    DetectedIntent,
    ExtractedEntities,
    FollowUp,
    FrustrationState,
    Message,
    PendingAction,
    Role,
)
from planner.config import Settings

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore(Protocol):
    def get(self, session_id: str) -> ConversationContext | None: ...

    def set(self, session_id: str, context: ConversationContext) -> None: ...

    def delete(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Process-local dict store. Safe only with one writer per session."""

    def __init__(self) -> None:
        self._contexts: dict[str, ConversationContext] = {}

    def get(self, session_id: str) -> ConversationContext | None:
        return self._contexts.get(session_id)

    def set(self, session_id: str, context: ConversationContext) -> None:
        self._contexts[session_id] = context

    def delete(self, session_id: str) -> None:
        self._contexts.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._contexts)


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------

_EXPERT_TERMS = (
    "incrementality",
    "attribution",
    "lookalike",
    "suppression",
    "dma",
    "addressable",
    "programmatic",
)
_BEGINNER_PHRASES = ("how do i", "what is", "explain", "help me", "i don't know")

_CORRECTION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^no[,.]?\s",
        r"that's not",
        r"that isn't",
        r"wrong",
        r"i meant",
        r"i said",
        r"not what i",
        r"i asked for",
        r"try again",
        r"you misunderstood",
        r"didn't ask",
    )
]


def is_correction(message: str) -> bool:
    return any(p.search(message) for p in _CORRECTION_PATTERNS)


def _union(existing: list[str] | None, new: list[str] | None) -> list[str] | None:
    merged = list(existing or [])
    for item in new or []:
        if item not in merged:
            merged.append(item)
    return merged or None


# ---------------------------------------------------------------------------
# ContextManager
# ---------------------------------------------------------------------------


class ContextManager:
    """Per-session conversation state: history, entities, follow-ups, frustration."""

    def __init__(self, store: SessionStore | None = None, settings: Settings | None = None) -> None:
        self._store = store if store is not None else InMemorySessionStore()
        self._settings = settings or Settings()

    # -- lifecycle -----------------------------------------------------------

    def get_context(self, session_id: str) -> ConversationContext:
        """Get or lazily create the session's context. Never raises."""
        context = self._store.get(session_id)
        if context is None:
            context = ConversationContext(session_id=session_id)
            self._store.set(session_id, context)
        return context

    def reset_context(self, session_id: str) -> None:
        self._store.delete(session_id)

    # -- history -------------------------------------------------------------

    def add_message(
        self,
        session_id: str,
        role: Role,
        content: str,
        intent: DetectedIntent | None = None,
        entities: ExtractedEntities | None = None,
    ) -> None:
        """Append a turn, trim history, update the user profile and merge entities.

        Only user turns count as interactions and feed expertise inference.
        """
        context = self.get_context(session_id)
        context.history.append(
            Message(role=role, content=content, timestamp=_now(), intent=intent, entities=entities)
        )

        limit = self._settings.history_limit
        if len(context.history) > limit:
            context.history = context.history[-limit:]

        if role == "user":
            context.user_profile.interaction_count += 1
            self._update_expertise(context, content)

        if entities is not None:
            self._merge_entities(context, entities)

    def get_recent_history(self, session_id: str, count: int = 5) -> list[Message]:
        return self.get_context(session_id).history[-count:]

    def find_previous_mention(self, session_id: str, keyword: str) -> Message | None:
        needle = keyword.lower()
        for message in reversed(self.get_context(session_id).history):
            if needle in message.content.lower():
                return message
        return None

    # -- focus / entities ----------------------------------------------------

    def update_focus(self, session_id: str, **focus: str | None) -> ConversationFocus:
        context = self.get_context(session_id)
        context.current_focus = context.current_focus.model_copy(update=focus)
        return context.current_focus

    def get_accumulated_entities(self, session_id: str) -> ExtractedEntities:
        return self.get_context(session_id).accumulated_entities.model_copy(deep=True)

    def clear_accumulated_entities(self, session_id: str) -> None:
        self.get_context(session_id).accumulated_entities = ExtractedEntities()

    # -- pending actions -----------------------------------------------------

    def add_pending_action(self, session_id: str, action: PendingAction) -> None:
        """Queue a proposal, replacing any earlier proposal of the same type."""
        context = self.get_context(session_id)
        context.pending_actions = [p for p in context.pending_actions if p.type != action.type]
        context.pending_actions.append(action)

    def peek_pending_action(self, session_id: str) -> PendingAction | None:
        pending = self.get_context(session_id).pending_actions
        return pending[-1] if pending else None

    def confirm_action(self, session_id: str, action_id: str) -> PendingAction | None:
        """Remove and return the pending action; None if it is not queued."""
        return self._pop_pending(session_id, action_id)

    def decline_action(self, session_id: str, action_id: str) -> PendingAction | None:
        return self._pop_pending(session_id, action_id)

    def _pop_pending(self, session_id: str, action_id: str) -> PendingAction | None:
        pending = self.get_context(session_id).pending_actions
        for index, action in enumerate(pending):
            if action.id == action_id:
                return pending.pop(index)
        return None

    # -- follow-ups ----------------------------------------------------------

    def set_follow_up(
        self,
        session_id: str,
        yes_action: str,
        question: str = "",
        no_action: str | None = None,
        pending_action_id: str | None = None,
    ) -> FollowUp:
        """Store the single live follow-up, replacing any previous one.

        A replaced follow-up drops the pending action it was tied to.
        """
        context = self.get_context(session_id)
        previous = context.last_follow_up
        if previous is not None and previous.pending_action_id not in (None, pending_action_id):
            self._drop_pending(session_id, previous.pending_action_id, "replaced")
        follow_up = FollowUp(
            question=question,
            yes_action=yes_action,
            no_action=no_action,
            pending_action_id=pending_action_id,
            timestamp=_now(),
        )
        context.last_follow_up = follow_up
        return follow_up

    def get_follow_up(self, session_id: str) -> FollowUp | None:
        """Return the live follow-up, clearing it if its TTL has passed."""
        context = self.get_context(session_id)
        follow_up = context.last_follow_up
        if follow_up is None:
            return None
        ttl = timedelta(seconds=self._settings.follow_up_ttl_seconds)
        if _now() - follow_up.timestamp > ttl:
            context.last_follow_up = None
            if follow_up.pending_action_id is not None:
                self._drop_pending(session_id, follow_up.pending_action_id, "expired")
            return None
        return follow_up

    def clear_follow_up(self, session_id: str) -> None:
        """Empty the slot. The pending action stays queued for the answer to act on."""
        self.get_context(session_id).last_follow_up = None

    def _drop_pending(self, session_id: str, action_id: str, why: str) -> None:
        if self._pop_pending(session_id, action_id) is not None:
            logger.info(
                "Dropped pending action %s for session %s (follow-up %s)", action_id, session_id, why
            )

    # -- frustration ---------------------------------------------------------

    def track_frustration(self, session_id: str, message: str) -> FrustrationState:
        """Count consecutive corrections inside the frustration window.

        A correction within the window increments the counter, otherwise
        restarts it at 1. A non-correction only clears the counter once
        the window since the last correction has elapsed.
        """
        state = self.get_context(session_id).frustration
        now = _now()
        window = timedelta(seconds=self._settings.frustration_window_seconds)
        expired = state.last_correction_time is None or now - state.last_correction_time > window

        if is_correction(message):
            state.consecutive_corrections = 1 if expired else state.consecutive_corrections + 1
            state.last_correction_time = now
        elif expired:
            state.consecutive_corrections = 0

        return state

    def should_offer_human_escalation(self, session_id: str) -> bool:
        state = self.get_context(session_id).frustration
        return (
            state.consecutive_corrections >= self._settings.escalation_threshold
            and not state.escalated_to_human
        )

    def mark_escalation_offered(self, session_id: str) -> None:
        self.get_context(session_id).frustration.escalated_to_human = True
        logger.info("Human escalation offered for session %s", session_id)

    def get_frustration_state(self, session_id: str) -> FrustrationState:
        return self.get_context(session_id).frustration

    # -- internals -----------------------------------------------------------

    def _update_expertise(self, context: ConversationContext, message: str) -> None:
        lowered = message.lower()
        expert_hits = sum(1 for term in _EXPERT_TERMS if term in lowered)
        beginner_hits = sum(1 for phrase in _BEGINNER_PHRASES if phrase in lowered)
        profile = context.user_profile
        gate = self._settings.expert_min_interactions

        if expert_hits > 1 and profile.interaction_count > gate:
            profile.expertise_level = "expert"
        elif beginner_hits > 0 or profile.interaction_count < gate:
            profile.expertise_level = "beginner"
        else:
            profile.expertise_level = "intermediate"

    def _merge_entities(self, context: ConversationContext, new: ExtractedEntities) -> None:
        """Scalars overwrite, collections union, nested objects merge per field."""
        acc = context.accumulated_entities

        if new.budget is not None:
            acc.budget = new.budget
        if new.campaign_name:
            acc.campaign_name = new.campaign_name

        if new.channels:
            acc.channels = (acc.channels or set()) | new.channels
        if new.metrics:
            merged = list(acc.metrics or [])
            merged.extend(m for m in new.metrics if m not in merged)
            acc.metrics = merged

        if new.dates is not None:
            base = acc.dates.model_dump() if acc.dates else {}
            base.update(new.dates.model_dump(exclude_none=True))
            acc.dates = type(new.dates)(**base)

        if new.audience is not None:
            old = acc.audience or AudienceEntities()
            acc.audience = AudienceEntities(
                demographics=_union(old.demographics, new.audience.demographics),
                behaviors=_union(old.behaviors, new.audience.behaviors),
                geography=_union(old.geography, new.audience.geography),
            )

        if new.placements is not None:
            base = acc.placements.model_dump() if acc.placements else {}
            base.update(new.placements.model_dump(exclude_none=True))
            acc.placements = type(new.placements)(**base)
