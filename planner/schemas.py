"""Pydantic DTOs for media plans and agent messages.

AgentMessage is the only artifact the UI consumes: plan mutations travel
as a full ``updated_media_plan`` snapshot and navigation travels as a
closed ``AgentAction`` tag.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from planner.cognitive.schemas import FollowUp, PendingAction


def new_id() -> str:
    return uuid4().hex[:12]


class AgentState(StrEnum):
    INIT = "INIT"
    BUDGETING = "BUDGETING"
    CHANNEL_SELECTION = "CHANNEL_SELECTION"
    REFINEMENT = "REFINEMENT"
    OPTIMIZATION = "OPTIMIZATION"
    FINISHED = "FINISHED"


class Strategy(StrEnum):
    BALANCED = "BALANCED"
    DIGITAL = "DIGITAL"
    AWARENESS = "AWARENESS"


class CostMethod(StrEnum):
    CPM = "CPM"
    CPC = "CPC"
    FLAT = "Flat"
    SPOT = "Spot"


class PlacementStatus(StrEnum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"


class GroupingMode(StrEnum):
    CHANNEL = "CHANNEL"
    DETAILED = "DETAILED"


class AgentAction(StrEnum):
    """UI navigation events. Closed set: handlers may only emit these."""

    LAYOUT_LEFT = "LAYOUT_LEFT"
    LAYOUT_RIGHT = "LAYOUT_RIGHT"
    LAYOUT_BOTTOM = "LAYOUT_BOTTOM"

    EXPORT_PDF = "EXPORT_PDF"
    EXPORT_PPT = "EXPORT_PPT"

    WINDOW_OPEN = "WINDOW_OPEN"
    WINDOW_CLOSE = "WINDOW_CLOSE"
    WINDOW_MINIMIZE = "WINDOW_MINIMIZE"
    WINDOW_MAXIMIZE = "WINDOW_MAXIMIZE"
    WINDOW_RESTORE = "WINDOW_RESTORE"
    WINDOW_FOCUS = "WINDOW_FOCUS"
    WINDOW_TILE_HORIZONTAL = "WINDOW_TILE_HORIZONTAL"
    WINDOW_TILE_VERTICAL = "WINDOW_TILE_VERTICAL"
    WINDOW_CASCADE = "WINDOW_CASCADE"
    WINDOW_MINIMIZE_ALL = "WINDOW_MINIMIZE_ALL"
    WINDOW_RESTORE_ALL = "WINDOW_RESTORE_ALL"
    WINDOW_CLOSE_ALL = "WINDOW_CLOSE_ALL"
    WINDOW_GATHER = "WINDOW_GATHER"
    WINDOW_PIN = "WINDOW_PIN"
    WINDOW_UNPIN = "WINDOW_UNPIN"

    OPEN_ATTRIBUTION = "OPEN_ATTRIBUTION"
    OPEN_ATTRIBUTION_OVERVIEW = "OPEN_ATTRIBUTION_OVERVIEW"
    OPEN_ATTRIBUTION_INCREMENTALITY = "OPEN_ATTRIBUTION_INCREMENTALITY"
    OPEN_ATTRIBUTION_TIME = "OPEN_ATTRIBUTION_TIME"
    OPEN_ATTRIBUTION_FREQUENCY = "OPEN_ATTRIBUTION_FREQUENCY"
    OPEN_ATTRIBUTION_MODELS = "OPEN_ATTRIBUTION_MODELS"
    OPEN_ATTRIBUTION_PATHS = "OPEN_ATTRIBUTION_PATHS"
    POPOUT_ATTRIBUTION_OVERVIEW = "POPOUT_ATTRIBUTION_OVERVIEW"
    POPOUT_ATTRIBUTION_INCREMENTALITY = "POPOUT_ATTRIBUTION_INCREMENTALITY"
    POPOUT_ATTRIBUTION_TIME = "POPOUT_ATTRIBUTION_TIME"
    POPOUT_ATTRIBUTION_FREQUENCY = "POPOUT_ATTRIBUTION_FREQUENCY"
    POPOUT_ATTRIBUTION_MODELS = "POPOUT_ATTRIBUTION_MODELS"
    SET_ATTRIBUTION_MODEL_FIRST_TOUCH = "SET_ATTRIBUTION_MODEL_FIRST_TOUCH"
    SET_ATTRIBUTION_MODEL_LAST_TOUCH = "SET_ATTRIBUTION_MODEL_LAST_TOUCH"
    SET_ATTRIBUTION_MODEL_LINEAR = "SET_ATTRIBUTION_MODEL_LINEAR"
    SET_ATTRIBUTION_MODEL_TIME_DECAY = "SET_ATTRIBUTION_MODEL_TIME_DECAY"
    SET_ATTRIBUTION_MODEL_POSITION_BASED = "SET_ATTRIBUTION_MODEL_POSITION_BASED"
    CREATE_INCREMENTALITY_TEST = "CREATE_INCREMENTALITY_TEST"
    OPEN_INCREMENTALITY_FORM = "OPEN_INCREMENTALITY_FORM"
    ANALYZE_CHANNEL = "ANALYZE_CHANNEL"
    SHOW_ATTRIBUTION_INSIGHTS = "SHOW_ATTRIBUTION_INSIGHTS"


WindowType = Literal[
    "campaign",
    "flight",
    "portfolio",
    "report",
    "settings",
    "media-plan",
    "audience-insights",
    "chat",
    "client",
    "client-list",
    "attribution",
    "attribution-overview",
    "attribution-incrementality",
]


# ---------------------------------------------------------------------------
# Plan model
# ---------------------------------------------------------------------------


class Creative(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    format: str = "Display"
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0  # percent


class PerformanceMetrics(BaseModel):
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    ctr: float = 0.0
    cvr: float = 0.0
    cpa: float = 0.0
    revenue: float = 0.0
    roas: float = 0.0
    status: PlacementStatus = PlacementStatus.ACTIVE


class Placement(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    channel: str
    vendor: str
    ad_unit: str
    segment: str
    rate: float = Field(gt=0)
    cost_method: CostMethod
    quantity: int = 0
    total_cost: float = 0.0
    start_date: date
    end_date: date
    flight_id: str | None = None
    performance: PerformanceMetrics | None = None
    creatives: list[Creative] = Field(default_factory=list)

    @property
    def is_paused(self) -> bool:
        return self.performance is not None and self.performance.status == PlacementStatus.PAUSED


class Flight(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    budget: float
    start_date: date
    end_date: date


class Campaign(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    advertiser: str
    budget: float = Field(ge=0)
    start_date: date
    end_date: date
    placements: list[Placement] = Field(default_factory=list)
    flights: list[Flight] = Field(default_factory=list)
    goals: dict[str, int] = Field(default_factory=dict)
    creative_library: list[Creative] = Field(default_factory=list)


class PlanMetrics(BaseModel):
    impressions: int = 0
    reach: int = 0
    frequency: float = 0.0
    cpm: float = 0.0


class MediaPlan(BaseModel):
    id: str = Field(default_factory=new_id)
    campaign: Campaign
    total_spend: float = 0.0
    remaining_budget: float = 0.0
    version: int = 1
    grouping_mode: GroupingMode = GroupingMode.DETAILED
    strategy: Strategy | None = None
    active_flight_id: str | None = None
    metrics: PlanMetrics = Field(default_factory=PlanMetrics)


# ---------------------------------------------------------------------------
# Dispatch boundary
# ---------------------------------------------------------------------------


class WindowContext(BaseModel):
    """What the UI currently has open. Drives command eligibility."""

    window_type: WindowType | None = None
    has_media_plan: bool = False
    has_campaign: bool = False
    has_flight: bool = False
    has_windows: bool = False
    active_window_id: str | None = None


class AgentMessage(BaseModel):
    id: str = Field(default_factory=new_id)
    role: Literal["user", "agent"] = "agent"
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    suggested_actions: list[str] = Field(default_factory=list)
    action: AgentAction | None = None
    action_target: str | None = None  # window, channel or view the action applies to
    agents_invoked: list[str] | None = None
    updated_media_plan: MediaPlan | None = None
    pending_action: PendingAction | None = None
    follow_up: FollowUp | None = None
