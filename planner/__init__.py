"""Campaign planner: a conversational core for building media plans.

Text in, one AgentMessage out. AgentBrain drives the conversation;
the cognitive package reads the text, the command registry decides
which handler runs, and the handlers edit the active MediaPlan.
"""

from planner.brain import AgentBrain
from planner.commands import CommandRegistry, registry
from planner.config import Settings
from planner.schemas import AgentMessage, AgentState, MediaPlan, WindowContext

__all__ = [
    "AgentBrain",
    "AgentMessage",
    "AgentState",
    "CommandRegistry",
    "MediaPlan",
    "Settings",
    "WindowContext",
    "registry",
]
