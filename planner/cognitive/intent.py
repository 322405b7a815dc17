"""Intent classification for planner input.

Deterministic pattern-group matching, no model calls. Each group scores
``matched / len(patterns)``; the best group wins and earlier groups win
ties. The result depends only on the input text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from planner.cognitive.entities import extract_all_entities
from planner.cognitive.schemas import DetectedIntent, ExtractedEntities, IntentCategory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentPattern:
    category: IntentCategory
    sub_intent: str
    patterns: tuple[re.Pattern[str], ...]


def _group(category: IntentCategory, sub_intent: str, *patterns: str) -> IntentPattern:
    return IntentPattern(
        category=category,
        sub_intent=sub_intent,
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
    )


# Declaration order is the tie-break order.
INTENT_PATTERNS: tuple[IntentPattern, ...] = (
    # Campaign setup
    _group(
        IntentCategory.CAMPAIGN_SETUP,
        "create_campaign",
        r"(?:create|start|launch|set up|build|make)\s+(?:a|an)?\s*(?:new)?\s*campaign",
        r"i need (?:to )?(run|create|launch)\s+(?:a )?campaign",
        r"(?:plan|setup) (?:a )?(?:q\d|campaign)",
        r"campaign (?:for|targeting)",
    ),
    _group(
        IntentCategory.CAMPAIGN_SETUP,
        "clone_campaign",
        r"(?:clone|copy|duplicate)\s+(?:the )?\s*campaign",
        r"similar to (?:what we ran|last|previous)",
        r"same as .+ but",
    ),
    # Budget
    _group(
        IntentCategory.BUDGET_ALLOCATION,
        "budget_inquiry",
        r"(?:how much|what.*budget|minimum.*spend|cost.*to)",
        r"what.*(?:should i|can i) spend",
        r"(?:budget|spend) (?:for|on)",
    ),
    _group(
        IntentCategory.BUDGET_ALLOCATION,
        "allocate_budget",
        r"(?:allocate|distribute|split|spread)\s+(?:\$?[\d,k]+\s+)?(?:budget|spend)",
        r"how (?:should|do) i (?:allocate|split|distribute)",
        r"\$[\d,k]+ across",
    ),
    # Audience
    _group(
        IntentCategory.AUDIENCE_TARGETING,
        "build_audience",
        r"(?:target|reach|find)\s+(?:people|users|audience)",
        r"i want to (?:target|reach)",
        r"audience (?:of|targeting)",
        r"(?:build|create) (?:an )?audience",
        r"targeting .+(?:with|,)",
    ),
    _group(
        IntentCategory.AUDIENCE_TARGETING,
        "audience_size",
        r"how (?:big|large) is (?:this|the|my) audience",
        r"audience size",
        r"how many people",
    ),
    # Performance monitoring
    _group(
        IntentCategory.PERFORMANCE_MONITORING,
        "check_performance",
        r"how (?:is|are|did|does)\s+(?:the|my)?\s*(?:campaign|campaigns?)\s+(?:doing|performing)",
        r"(?:show|tell me|what's)\s+(?:my|the)?\s*(?:performance|results)",
        r"(?:campaign|performance) (?:metrics|stats|numbers)",
        r"why is (?:my|the) campaign (?:under)?performing",
        r"campaign (?:is |isn't )?(?:under)?performing",
    ),
    _group(
        IntentCategory.PERFORMANCE_MONITORING,
        "check_pacing",
        r"(?:are we|am i)\s+on (?:pace|track)",
        r"(?:pacing|spending) (?:on track|correctly)",
        r"will (?:i|we) (?:hit|reach|meet)",
    ),
    # Optimization
    _group(
        IntentCategory.OPTIMIZATION,
        "improve_performance",
        r"(?:improve|optimize|increase|boost|enhance)",
        r"(?:reduce|lower|decrease|cut)\s+(?:cpa|cpc|cost)",
        r"make it (?:better|more efficient)",
        r"what (?:should|can) i (?:do|change)",
        r"(?:cpa|cpc|roas|ctr|cost) (?:is |are )?too (?:high|low)",
        r"(?:the |my )?(?:cpa|cpc|roas) .+ what should",
    ),
    _group(
        IntentCategory.OPTIMIZATION,
        "budget_reallocation",
        r"(?:shift|move|reallocate|transfer)\s+budget",
        r"(?:pause|stop) (?:the )?underperforming",
        r"(?:add|give) more (?:budget|spend) to",
    ),
    # Forecasting
    _group(
        IntentCategory.FORECASTING,
        "predict_performance",
        r"(?:predict|forecast|estimate|expect|project)",
        r"what (?:results|performance) (?:should|will|can) i (?:expect|get)",
        r"how (?:many|much) (?:will|should)",
    ),
    _group(
        IntentCategory.FORECASTING,
        "reach_forecast",
        r"(?:how many people|reach)",
        r"what (?:reach|audience size)",
    ),
    # Reporting
    _group(
        IntentCategory.REPORTING,
        "generate_report",
        r"(?:show|give|create|generate)\s+(?:me\s+)?(?:a\s+)?report",
        r"(?:breakdown|summary) (?:of|for)",
        r"(?:export|download) (?:the )?data",
    ),
    # Creative
    _group(
        IntentCategory.CREATIVE,
        "creative_performance",
        r"(?:which|what) creative (?:is|are) (?:performing|working)",
        r"creative (?:performance|results|metrics)",
        r"(?:swap|change|update|rotate)\s+creative",
    ),
    # Navigation
    _group(
        IntentCategory.NAVIGATION,
        "view_predictive_analytics",
        r"(?:show|view|open|display)\s+(?:me\s+)?(?:the\s+)?predictive\s+analytics",
        r"(?:show|view|open)\s+(?:me\s+)?(?:the\s+)?predictions?",
        r"(?:show|view|open)\s+(?:me\s+)?(?:the\s+)?insights?",
        r"predictive\s+analytics?\s+(?:dashboard|view)",
        r"(?:go to|navigate to)\s+predictive",
        r"(?:show|view)\s+(?:me\s+)?(?:the\s+)?(?:ai\s+)?insights",
    ),
    _group(
        IntentCategory.NAVIGATION,
        "view_attribution",
        r"(?:show|view|open|display)\s+(?:me\s+)?(?:the\s+)?attribution",
        r"attribution\s+(?:analysis|dashboard|view|model)",
        r"(?:go to|navigate to)\s+attribution",
        r"(?:show|view)\s+(?:me\s+)?(?:the\s+)?attribution\s+(?:data|results)",
    ),
    _group(
        IntentCategory.NAVIGATION,
        "view_portfolio",
        r"(?:show|view|open|display)\s+(?:me\s+)?(?:the\s+)?portfolio",
        r"portfolio\s+(?:dashboard|view)",
        r"(?:go to|navigate to)\s+portfolio",
        r"(?:show|view)\s+(?:me\s+)?(?:the\s+)?portfolio\s+(?:data|analysis)",
    ),
    _group(
        IntentCategory.NAVIGATION,
        "view_integrations",
        r"(?:show|view|open|display)\s+(?:me\s+)?(?:the\s+)?integrations?",
        r"integrations?\s+(?:dashboard|view)",
        r"(?:go to|navigate to)\s+integrations?",
        r"(?:show|view)\s+(?:me\s+)?(?:platform|system)\s+integrations",
    ),
    _group(
        IntentCategory.NAVIGATION,
        "view_analytics",
        r"(?:show|view|open|display)\s+(?:me\s+)?(?:the\s+)?(?:agency\s+)?analytics",
        r"analytics\s+(?:dashboard|view)",
        r"(?:go to|navigate to)\s+analytics",
        r"(?:show|view)\s+(?:me\s+)?(?:overall|agency)\s+analytics",
    ),
    # Help
    _group(
        IntentCategory.HELP,
        "explain_feature",
        r"how (?:does|do) .+ work",
        r"(?:explain|tell me about) .+",
        r"what (?:is|are) .+",
        r"what's (?:the )?(?:difference|meaning)",
    ),
    _group(
        IntentCategory.HELP,
        "best_practice",
        r"best practice",
        r"(?:should|recommended|typical)",
        r"what's (?:the )?(?:right|optimal|best) (?:way|frequency|approach)",
        r"right .+ for",
    ),
)

# Entities an intent cannot act on without, keyed "category.sub_intent".
REQUIRED_ENTITIES: dict[str, tuple[str, ...]] = {
    "campaign_setup.create_campaign": ("objective", "budget"),
    "budget_allocation.allocate_budget": ("budget", "channels"),
    "audience_targeting.build_audience": ("audience",),
}


class IntentClassifier:
    """Classify planner input into a category/sub-intent with a confidence."""

    def __init__(self, patterns: tuple[IntentPattern, ...] = INTENT_PATTERNS) -> None:
        self._patterns = patterns

    def classify(self, input_text: str) -> DetectedIntent:
        normalized = input_text.strip().lower()

        best: IntentPattern | None = None
        best_confidence = 0.0
        best_matched: list[str] = []

        for group in self._patterns:
            matched = [p.pattern for p in group.patterns if p.search(normalized)]
            if not matched:
                continue
            confidence = len(matched) / len(group.patterns)
            # Strict improvement only, so the earlier group keeps ties.
            if confidence > best_confidence:
                best, best_confidence, best_matched = group, confidence, matched

        if best is None:
            return DetectedIntent(
                category=IntentCategory.UNKNOWN,
                sub_intent="unknown",
                confidence=0.0,
                requires_clarification=True,
            )

        entities = extract_all_entities(input_text.strip()).model_dump(exclude_none=True)
        intent = DetectedIntent(
            category=best.category,
            sub_intent=best.sub_intent,
            confidence=best_confidence,
            entities=entities,
            patterns=best_matched,
        )
        logger.debug(
            "Intent %s.%s (%.2f) for %r",
            intent.category.value,
            intent.sub_intent,
            intent.confidence,
            normalized[:80],
        )
        return intent


_default_classifier = IntentClassifier()


def classify_intent(input_text: str) -> DetectedIntent:
    return _default_classifier.classify(input_text)


def required_entities(category: IntentCategory, sub_intent: str) -> tuple[str, ...]:
    return REQUIRED_ENTITIES.get(f"{category.value}.{sub_intent}", ())


def requires_clarification(
    intent: DetectedIntent,
    context: Mapping[str, Any] | ExtractedEntities | None = None,
) -> bool:
    """True when the intent is too weak or is missing an entity it needs.

    ``context`` is the session's accumulated entities; an entity counts as
    present if either the intent or the context has a truthy value for it.
    """
    if intent.confidence < 0.5:
        return True

    if isinstance(context, ExtractedEntities):
        ambient: Mapping[str, Any] = context.model_dump(exclude_none=True)
    else:
        ambient = context or {}

    for key in required_entities(intent.category, intent.sub_intent):
        if not intent.entities.get(key) and not ambient.get(key):
            return True
    return False
