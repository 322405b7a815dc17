"""Settings via pydantic-settings with PLANNER_ env prefix.

Every behavioral constant of the conversational core (history bound,
follow-up TTL, frustration window, placement generation thresholds)
lives here so a deployment can tune it from the environment or a .env
file without touching code.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PLANNER_", env_file=".env")

    log_level: str = "info"

    # Conversation context
    history_limit: int = 20
    follow_up_ttl_seconds: int = 120
    frustration_window_seconds: int = 300
    escalation_threshold: int = 2
    expert_min_interactions: int = 3

    # Plan defaults
    default_budget: float = 100000
    default_flight_budget: float = 100000
    max_action_history: int = 50

    # Placement generation
    offline_threshold: float = 50000
    fill_target_ratio: float = Field(0.95, ge=0.0, le=1.0)
    fill_max_iterations: int = 20
    min_fill_cost: float = 10.0
    seed: int | None = None  # fixed RNG seed for reproducible plans
