"""Unit tests for entity extraction: pure functions over one turn's text."""

from datetime import date

import pytest

from planner.cognitive.entities import (
    extract_all_entities,
    extract_audience,
    extract_budget,
    extract_campaign_name,
    extract_channels,
    extract_dates,
    extract_metrics,
    extract_placement_specs,
    resolve_relative_date,
)

# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("$2.5M", 2_500_000),
        ("100k", 100_000),
        ("50,000", 50_000),
        ("set budget to $1 million", 1_000_000),
        ("Create plan for Nike ($500k)", 500_000),
    ],
)
def test_extract_budget(text, expected):
    """Suffixed and comma-grouped amounts both parse."""
    assert extract_budget(text) == expected


def test_extract_budget_none_without_number():
    """Budget words without a number give None."""
    assert extract_budget("increase the budget a bit") is None


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


def test_extract_channels_maps_aliases():
    """Vendor names map to their canonical channel."""
    channels = extract_channels("Put more into facebook and google")
    assert channels == {"Social", "Search"}


def test_extract_channels_ctv_is_substring_of_tv():
    """Substring matching: 'ctv' also contains 'tv'."""
    channels = extract_channels("add ctv")
    assert "Connected TV" in channels
    assert "Linear TV" in channels


def test_extract_channels_empty():
    """Text with no channel names gives an empty set."""
    assert extract_channels("hello there") == set()


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def test_extract_dates_relative():
    """Relative phrases are kept as written."""
    dates = extract_dates("launch next month")
    assert dates is not None
    assert dates.relative == "next month"


def test_extract_dates_absolute_pair():
    """Two slash dates become the start and end."""
    dates = extract_dates("run from 3/1/2025 to 4/15/2025")
    assert dates.start == date(2025, 3, 1)
    assert dates.end == date(2025, 4, 15)


def test_extract_dates_none():
    """Text with no dates gives None."""
    assert extract_dates("add social") is None


def test_resolve_relative_date():
    """Month arithmetic clamps to the end of a short month."""
    today = date(2025, 1, 31)
    assert resolve_relative_date("next month", today) == date(2025, 2, 28)
    assert resolve_relative_date("in 2 weeks", today) == date(2025, 2, 14)
    assert resolve_relative_date("someday", today) is None


# ---------------------------------------------------------------------------
# Metrics / audience
# ---------------------------------------------------------------------------


def test_extract_metrics_with_operator_and_value():
    """The verb "reduce" reads as a decrease target."""
    metrics = extract_metrics("reduce CPA to 25")
    assert metrics is not None
    cpa = metrics[0]
    assert cpa.name == "CPA"
    assert cpa.operator == "decrease"
    assert cpa.value == 25


def test_extract_metrics_none():
    """Text with no metric names gives None."""
    assert extract_metrics("add social") is None


def test_extract_audience():
    """Age ranges and generations become demographics; regions become geography."""
    audience = extract_audience("millennials 25-34 in the northeast")
    assert audience is not None
    assert "Age 25-34" in audience.demographics
    assert "Millennials" in audience.demographics
    assert audience.geography == ["northeast"]


def test_extract_audience_behavior_stops_at_clause():
    """A behavior ends at the next comma."""
    audience = extract_audience("people shopping for running shoes, mostly parents")
    assert audience.behaviors == ["running shoes"]
    assert "Parents" in audience.demographics


# ---------------------------------------------------------------------------
# Placements / campaign name
# ---------------------------------------------------------------------------


def test_extract_placement_specs():
    """The count and channel come out of one phrase along with the network."""
    specs = extract_placement_specs("add 5 display placements on espn")
    assert specs.count == 5
    assert specs.channel == "Display"
    assert specs.network == "espn"


def test_extract_campaign_name_quoted_wins():
    """Quoted names win; otherwise the name stops at punctuation."""
    assert extract_campaign_name('create campaign for "Summer Sale"') == "Summer Sale"
    assert extract_campaign_name("new campaign for Acme Co, please") == "Acme Co"
    assert extract_campaign_name("add tv") is None


def test_extract_all_entities_absent_fields_are_none():
    """Fields with no match stay None rather than empty."""
    entities = extract_all_entities("hello")
    assert entities.budget is None
    assert entities.channels is None
    assert entities.dates is None
    assert entities.placements is None
