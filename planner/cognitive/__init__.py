"""Cognitive layer: entity extraction, intent classification, session context.

Everything here is per-turn text analysis or per-session memory. No
component calls back into the orchestrator.
"""

from planner.cognitive.context import ContextManager, InMemorySessionStore, SessionStore
from planner.cognitive.entities import extract_all_entities, extract_budget, extract_channels
from planner.cognitive.intent import IntentClassifier, classify_intent, requires_clarification
from planner.cognitive.schemas import (
    ConversationContext,
    DetectedIntent,
    ExtractedEntities,
    FollowUp,
    IntentCategory,
    PendingAction,
    PendingActionType,
)

__all__ = [
    "ContextManager",
    "ConversationContext",
    "DetectedIntent",
    "ExtractedEntities",
    "FollowUp",
    "InMemorySessionStore",
    "IntentCategory",
    "IntentClassifier",
    "PendingAction",
    "PendingActionType",
    "SessionStore",
    "classify_intent",
    "extract_all_entities",
    "extract_budget",
    "extract_channels",
    "requires_clarification",
]
