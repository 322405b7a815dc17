"""Pydantic DTOs for the cognitive layer.

Entities and intents are produced by pure functions over a single turn's
text; the conversation records are owned by ContextManager and mutated
only through its methods.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]
ExpertiseLevel = Literal["beginner", "intermediate", "expert"]
MetricOperator = Literal["increase", "decrease", "target"]


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class DateEntities(BaseModel):
    start: date | None = None
    end: date | None = None
    relative: str | None = None  # raw phrase, e.g. "next month"


class MetricEntity(BaseModel):
    name: str
    value: float | None = None
    operator: MetricOperator | None = None


class AudienceEntities(BaseModel):
    demographics: list[str] | None = None
    behaviors: list[str] | None = None
    geography: list[str] | None = None


class PlacementSpecs(BaseModel):
    count: int | None = None
    channel: str | None = None
    network: str | None = None


class ExtractedEntities(BaseModel):
    """Everything the extractors found in one input. Unmatched fields stay None."""

    budget: float | None = None
    channels: set[str] | None = None
    dates: DateEntities | None = None
    metrics: list[MetricEntity] | None = None
    audience: AudienceEntities | None = None
    placements: PlacementSpecs | None = None
    campaign_name: str | None = None


# ---------------------------------------------------------------------------
# Intent
# ---------------------------------------------------------------------------


class IntentCategory(StrEnum):
    CAMPAIGN_SETUP = "campaign_setup"
    AUDIENCE_TARGETING = "audience_targeting"
    BUDGET_ALLOCATION = "budget_allocation"
    PERFORMANCE_MONITORING = "performance_monitoring"
    OPTIMIZATION = "optimization"
    REPORTING = "reporting"
    FORECASTING = "forecasting"
    HELP = "help"
    CREATIVE = "creative"
    NAVIGATION = "navigation"
    UNKNOWN = "unknown"


class DetectedIntent(BaseModel):
    """Result of intent classification. A pure function of the input text."""

    category: IntentCategory
    sub_intent: str
    confidence: float = Field(ge=0.0, le=1.0)
    entities: dict[str, Any] = Field(default_factory=dict)
    requires_clarification: bool = False
    patterns: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Conversation context
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """One turn of history. Never mutated after it is appended."""

    model_config = {"frozen": True}

    role: Role
    content: str
    timestamp: datetime
    intent: DetectedIntent | None = None
    entities: ExtractedEntities | None = None


class ConversationFocus(BaseModel):
    brand_id: str | None = None
    campaign_id: str | None = None
    flight_id: str | None = None
    placement_id: str | None = None


class UserProfile(BaseModel):
    expertise_level: ExpertiseLevel = "intermediate"
    preferred_channels: list[str] = Field(default_factory=list)
    common_objectives: list[str] = Field(default_factory=list)
    interaction_count: int = 0


class PendingActionType(StrEnum):
    PAUSE_UNDERPERFORMERS = "PAUSE_UNDERPERFORMERS"
    SCALE_WINNERS = "SCALE_WINNERS"


class PendingAction(BaseModel):
    """A proposed plan mutation awaiting an explicit yes/no."""

    id: str
    type: PendingActionType
    description: str
    details: list[str] = Field(default_factory=list)
    estimated_impact: float = 0.0
    data: dict[str, Any] = Field(default_factory=dict)


class FrustrationState(BaseModel):
    consecutive_corrections: int = 0
    last_correction_time: datetime | None = None
    escalated_to_human: bool = False


class FollowUp(BaseModel):
    """Single-slot yes/no question the next turn is expected to answer.

    ``yes_action`` and ``no_action`` are command phrases that are fed
    back through the normal dispatch path when the user answers.
    """

    question: str = ""
    yes_action: str
    no_action: str | None = None
    pending_action_id: str | None = None  # proposal this question confirms
    timestamp: datetime


class ConversationContext(BaseModel):
    session_id: str
    history: list[Message] = Field(default_factory=list)
    current_focus: ConversationFocus = Field(default_factory=ConversationFocus)
    user_profile: UserProfile = Field(default_factory=UserProfile)
    pending_actions: list[PendingAction] = Field(default_factory=list)
    accumulated_entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    frustration: FrustrationState = Field(default_factory=FrustrationState)
    last_follow_up: FollowUp | None = None
