"""Unit tests for IntentClassifier: pure pattern matching, no session needed."""

from planner.cognitive.intent import IntentClassifier, classify_intent, requires_clarification
from planner.cognitive.schemas import DetectedIntent, ExtractedEntities, IntentCategory

classifier = IntentClassifier()


# ---------------------------------------------------------------------------
# classify() tests
# ---------------------------------------------------------------------------


def test_classify_is_pure():
    """Identical input gives an identical DetectedIntent on every call."""
    text = "I need to create a campaign for Nike"
    first = classifier.classify(text)
    for _ in range(3):
        assert classifier.classify(text) == first


def test_create_campaign_confidence():
    """Three of the four create_campaign patterns match."""
    intent = classifier.classify("I need to create a campaign for Nike")
    assert intent.category == IntentCategory.CAMPAIGN_SETUP
    assert intent.sub_intent == "create_campaign"
    assert intent.confidence == 0.75
    assert intent.entities["campaign_name"] == "Nike"
    assert len(intent.patterns) == 3


def test_allocate_budget_with_entities():
    """Budget and channel entities ride along on the intent."""
    intent = classifier.classify("How should I allocate $50k across social and search")
    assert intent.category == IntentCategory.BUDGET_ALLOCATION
    assert intent.sub_intent == "allocate_budget"
    assert intent.entities["budget"] == 50_000
    assert intent.entities["channels"] == {"Social", "Search"}


def test_forecast_keyword():
    """A single keyword is enough to classify forecasting."""
    intent = classifier.classify("forecast")
    assert intent.category == IntentCategory.FORECASTING
    assert intent.sub_intent == "predict_performance"


def test_unknown_input():
    """Unmatched text is UNKNOWN with zero confidence."""
    intent = classifier.classify("hello there")
    assert intent.category == IntentCategory.UNKNOWN
    assert intent.sub_intent == "unknown"
    assert intent.confidence == 0.0
    assert intent.requires_clarification is True
    assert intent.entities == {}


def test_classify_intent_uses_default_classifier():
    """The module-level helper matches a fresh classifier."""
    assert classify_intent("forecast") == classifier.classify("forecast")


# ---------------------------------------------------------------------------
# requires_clarification() tests
# ---------------------------------------------------------------------------


def test_low_confidence_requires_clarification():
    """Confidence under the threshold asks for clarification."""
    intent = DetectedIntent(category=IntentCategory.HELP, sub_intent="best_practice", confidence=0.25)
    assert requires_clarification(intent) is True


def test_missing_required_entity():
    """create_campaign needs an objective and a budget."""
    intent = classifier.classify("I need to create a campaign for Nike")
    assert requires_clarification(intent) is True


def test_context_fills_missing_entities():
    """Entities from earlier turns satisfy the required ones."""
    intent = classifier.classify("I need to create a campaign for Nike")
    assert requires_clarification(intent, {"objective": "awareness", "budget": 100_000}) is False


def test_accumulated_entities_accepted_as_context():
    """An empty ExtractedEntities works as the context argument."""
    intent = classifier.classify("How should I allocate $50k across social and search")
    assert requires_clarification(intent, ExtractedEntities()) is False


def test_intent_without_requirements():
    """A confident intent with no required entities proceeds."""
    intent = DetectedIntent(category=IntentCategory.FORECASTING, sub_intent="predict_performance", confidence=0.9)
    assert requires_clarification(intent) is False
