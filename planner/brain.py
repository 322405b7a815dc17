"""AgentBrain: the conversational orchestrator.

One AgentBrain drives one planning session. Every turn runs the same
pipeline:

    track frustration -> classify + extract -> record user turn
    -> resolve a live follow-up -> registry match + eligibility gate
    -> handler dispatch, or state-specific fallback
    -> escalation offer -> record agent turn

Commands go through exactly one path: the priority-ordered
CommandRegistry, gated on the WindowContext, then the CommandDispatcher.
Input that no eligible command claims falls through to the logic for
the current AgentState.

``process_input`` always returns exactly one AgentMessage and never
raises.
"""

from __future__ import annotations

import logging
import random
import re
import uuid

from planner.cognitive.context import ContextManager
from planner.cognitive.entities import extract_all_entities, extract_channels
from planner.cognitive.intent import IntentClassifier
from planner.commands import CommandCategory, CommandRegistry, registry as default_registry
from planner.config import Settings
from planner.handlers import (
    NEW_PLAN_SUGGESTIONS,
    CommandDispatcher,
    Turn,
    apology,
    build_dispatcher,
    reply,
)
from planner.handlers.session import initialize_campaign
from planner.history import ActionHistory, ActionType
from planner.plan import populate_plan
from planner.schemas import AgentMessage, AgentState, MediaPlan, Strategy, WindowContext
from planner.session import PlannerSession

logger = logging.getLogger(__name__)

WELCOME = (
    "I'm your AI assistant. To get started, tell me the Client Name and Total Budget "
    "for your new campaign."
)

LISTENING = (
    "I'm listening. You can ask me to **Add channels**, **Change budget**, "
    "**Optimize performance**, or **Export**."
)
LISTENING_SUGGESTIONS = ["Add TV", "Set budget to $1M", "Show Performance", "Export PDF"]

ESCALATION_OFFER = (
    "It seems like I'm not getting this right. Would you like me to connect you "
    "with a media specialist?"
)

_YES_RE = re.compile(r"^(?:yes|y|yep|yeah|sure|ok|okay|do it|go ahead|confirm|please do)[.!]*$", re.IGNORECASE)
_NO_RE = re.compile(r"^(?:no|n|nope|cancel|not now|no thanks)[.!]*$", re.IGNORECASE)

# INIT without a plan: input that looks like a plan request is never refused.
_PLAN_REQUEST_RE = re.compile(r"\b(?:plan|campaign|budget|client)\b|\$|\d", re.IGNORECASE)

# INIT with a plan: explicit intent either way.
_NEW_PLAN_RE = re.compile(r"\b(?:new|create|start over|reset)\b", re.IGNORECASE)
_CONTINUE_RE = re.compile(r"\b(?:continue|keep editing|current plan)\b", re.IGNORECASE)

_GENERATE_RE = re.compile(r"\b(?:generate|show|yes|create)\b", re.IGNORECASE)

# Categories that keep the session in OPTIMIZATION.
_ANALYSIS_CATEGORIES = frozenset({CommandCategory.OPTIMIZATION, CommandCategory.FORECASTING})


def detect_strategy(text: str) -> Strategy | None:
    """Strategy named by a BUDGETING reply, if any."""
    lowered = text.lower()
    if "70/20/10" in lowered:
        return Strategy.BALANCED
    if "digital" in lowered:
        return Strategy.DIGITAL
    if any(word in lowered for word in ("awareness", "tv", "ooh")):
        return Strategy.AWARENESS
    return None


class AgentBrain:
    """Conversation state machine over one media plan.

    Usage:
        brain = AgentBrain()
        brain.welcome_message()
        message = brain.process_input("Create plan for Nike ($500k)")
        message = brain.process_input("Apply 70/20/10 Rule")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        context_manager: ContextManager | None = None,
        registry: CommandRegistry | None = None,
        session_id: str | None = None,
        dispatcher: CommandDispatcher | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._context = context_manager or ContextManager(settings=self._settings)
        self._registry = registry or default_registry
        self._dispatcher = dispatcher or build_dispatcher()
        self._classifier = IntentClassifier()
        self._session = PlannerSession(
            session_id=session_id or str(uuid.uuid4()),
            settings=self._settings,
            context=self._context,
            rng=random.Random(self._settings.seed),
            history=ActionHistory(self._settings.max_action_history),
        )

    # -- accessors -----------------------------------------------------------

    @property
    def session(self) -> PlannerSession:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def context(self) -> ContextManager:
        return self._context

    @property
    def state(self) -> AgentState:
        return self._session.state

    @property
    def plan(self) -> MediaPlan | None:
        return self._session.plan

    @property
    def history(self) -> ActionHistory:
        return self._session.history

    @property
    def rng(self) -> random.Random:
        return self._session.rng

    # -- public API ----------------------------------------------------------

    def welcome_message(self) -> AgentMessage:
        return reply(WELCOME, NEW_PLAN_SUGGESTIONS)

    def process_input(self, text: str, window_context: WindowContext | None = None) -> AgentMessage:
        """Run one turn. Always returns exactly one message."""
        try:
            return self._process(text.strip(), window_context)
        except Exception as e:
            logger.exception("Turn failed for session %s", self.session_id)
            return apology(e)

    # -- pipeline ------------------------------------------------------------

    def _process(self, text: str, window_context: WindowContext | None) -> AgentMessage:
        session_id = self.session_id
        self._context.track_frustration(session_id, text)

        intent = self._classifier.classify(text)
        entities = extract_all_entities(text)
        self._context.add_message(session_id, "user", text, intent=intent, entities=entities)

        message = self._respond(text, window_context)

        if self._context.should_offer_human_escalation(session_id):
            message = self._offer_escalation(message)

        self._context.add_message(session_id, "assistant", message.content)
        return message

    def _respond(self, text: str, window_context: WindowContext | None) -> AgentMessage:
        follow_up = self._context.get_follow_up(self.session_id)
        if follow_up is not None:
            if _YES_RE.match(text):
                self._context.clear_follow_up(self.session_id)
                logger.debug("Follow-up accepted: %s", follow_up.yes_action)
                return self._route(follow_up.yes_action, window_context)
            if _NO_RE.match(text):
                self._context.clear_follow_up(self.session_id)
                if follow_up.no_action is None:
                    return reply("No problem.", LISTENING_SUGGESTIONS if self.plan else NEW_PLAN_SUGGESTIONS)
                logger.debug("Follow-up declined: %s", follow_up.no_action)
                return self._route(follow_up.no_action, window_context)
        return self._route(text, window_context)

    def _route(self, text: str, window_context: WindowContext | None) -> AgentMessage:
        ctx = window_context or self._session.window_context()
        found = self._registry.find_eligible_command(text, ctx)

        if found is not None and found.eligibility.eligible:
            command = found.match.command
            logger.debug("Dispatching %s for %r", command.id, text[:80])
            message = self._dispatcher.dispatch(Turn(text=text, match=found.match, session=self._session))
            self._after_command(command.category, message)
            return message

        refusal = found.eligibility.reason if found is not None else None
        return self._fallback(text, refusal)

    def _after_command(self, category: CommandCategory, message: AgentMessage) -> None:
        """Leave OPTIMIZATION once the user goes back to editing the plan."""
        if (
            self.state == AgentState.OPTIMIZATION
            and category not in _ANALYSIS_CATEGORIES
            and message.updated_media_plan is not None
        ):
            self._session.transition(AgentState.REFINEMENT)

    def _offer_escalation(self, message: AgentMessage) -> AgentMessage:
        self._context.mark_escalation_offered(self.session_id)
        follow_up = self._context.set_follow_up(
            self.session_id, yes_action="talk to a human", question=ESCALATION_OFFER
        )
        return message.model_copy(
            update={
                "content": f"{message.content}\n\n{ESCALATION_OFFER}",
                "suggested_actions": [*message.suggested_actions, "Talk to a human"],
                "follow_up": follow_up,
            }
        )

    # -- state-specific fallback ---------------------------------------------

    def _fallback(self, text: str, refusal: str | None) -> AgentMessage:
        state = self.state
        if state == AgentState.INIT:
            return self._on_init(text, refusal)
        if state == AgentState.BUDGETING:
            return self._on_budgeting(text)
        if state == AgentState.CHANNEL_SELECTION:
            return self._generate(detect_strategy(text), ["Insights Agent", "Performance Agent", "Yield Agent"])
        if state == AgentState.FINISHED:
            self._session.transition(AgentState.INIT)
            return reply("Starting a new session. Who is the client?", ["Create plan for Nike ($500k)"])

        # REFINEMENT / OPTIMIZATION
        if refusal:
            return reply(refusal, LISTENING_SUGGESTIONS)
        return reply(LISTENING, LISTENING_SUGGESTIONS)

    def _on_init(self, text: str, refusal: str | None) -> AgentMessage:
        plan = self.plan
        if plan is None:
            if refusal and not _PLAN_REQUEST_RE.search(text):
                return reply(refusal, NEW_PLAN_SUGGESTIONS)
            return initialize_campaign(self._session, text)

        advertiser = plan.campaign.advertiser
        if _NEW_PLAN_RE.search(text):
            return initialize_campaign(self._session, text)
        if _CONTINUE_RE.search(text):
            self._session.transition(AgentState.REFINEMENT)
            return reply(
                f"Picking up where we left off with the **{advertiser}** plan. What would you like to change?",
                LISTENING_SUGGESTIONS,
            )

        suggestions = ["Start a new plan", "Continue editing current plan"]
        if any(ch.isdigit() for ch in text):
            return reply(
                f"You already have a plan for **{advertiser}**. Did you mean to start a new campaign "
                f"with that budget, or to change the current plan?",
                suggestions,
            )
        return reply(
            f"You already have a plan for **{advertiser}** in progress. "
            "Would you like to start a new plan or keep editing this one?",
            suggestions,
        )

    def _on_budgeting(self, text: str) -> AgentMessage:
        strategy = detect_strategy(text)
        if strategy is not None or _GENERATE_RE.search(text):
            return self._generate(strategy, ["Insights Agent", "Yield Agent"])

        channels = sorted(extract_channels(text))
        if channels:
            self._session.transition(AgentState.CHANNEL_SELECTION)
            follow_up = self._context.set_follow_up(
                self.session_id, yes_action="generate plan", question="Generate the plan?"
            )
            return reply(
                f"Noted your interest in **{', '.join(channels)}**. Ready to generate the plan?",
                ["Generate plan"],
                follow_up=follow_up,
            )

        follow_up = self._context.set_follow_up(
            self.session_id, yes_action="show me the plan", question="Ready to see the placements?"
        )
        return reply(
            "I'll draft a Balanced plan. Ready to see the placements?",
            ["Show me the plan"],
            follow_up=follow_up,
        )

    def _generate(self, strategy: Strategy | None, agents: list[str]) -> AgentMessage:
        session = self._session
        plan = session.require_plan()
        before = session.snapshot()
        plan.strategy = strategy or plan.strategy or Strategy.BALANCED
        populate_plan(plan, session.rng, self._settings)
        updated = session.commit(
            ActionType.UPDATE_CAMPAIGN,
            f"Generated {plan.strategy.value.title()} plan",
            f"generate {plan.strategy.value.lower()} plan",
            before,
        )
        session.transition(AgentState.REFINEMENT)
        return reply(
            f"I've generated a **{plan.strategy.value}** media plan with "
            f"{len(plan.campaign.placements)} placements.\n\n"
            "I've optimized the channel mix for your strategy. How does it look?",
            ["Optimize for Reach", "Optimize for Conversions", "Looks good"],
            agents_invoked=agents,
            updated_media_plan=updated,
        )
