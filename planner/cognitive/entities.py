"""Entity extraction from free-text planner input.

Pure, stateless functions. Each extractor returns only what it positively
matched: absent fields are None, never defaulted. ``extract_all_entities``
composes them without cross-field validation.
"""

from __future__ import annotations

import re
from datetime import date

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

from planner.cognitive.schemas import (
    AudienceEntities,
    DateEntities,
    ExtractedEntities,
    MetricEntity,
    PlacementSpecs,
)

# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------

# Most specific suffix first: millions, then thousands, then a bare number.
_BUDGET_PATTERNS = [
    (re.compile(r"\$?(\d[\d,]*\.?\d*)\s*m(?:illion)?\b", re.IGNORECASE), 1_000_000),
    (re.compile(r"\$?(\d[\d,]*\.?\d*)\s*k\b", re.IGNORECASE), 1_000),
    (re.compile(r"\$?(\d[\d,]*(?:\.\d+)?)"), 1),
]


def extract_budget(text: str) -> float | None:
    """Parse a money amount: "$2.5M" -> 2500000, "100k" -> 100000, "50,000" -> 50000."""
    for pattern, multiplier in _BUDGET_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        raw = match.group(1).replace(",", "").rstrip(".")
        try:
            return float(raw) * multiplier
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

# Order matters for extract_placement_specs, which takes the first hit.
CHANNEL_KEYWORDS: dict[str, str] = {
    "ctv": "Connected TV",
    "connected tv": "Connected TV",
    "streaming": "Connected TV",
    "tv": "Linear TV",
    "linear tv": "Linear TV",
    "broadcast": "Linear TV",
    "display": "Display",
    "banner": "Display",
    "native": "Native",
    "social": "Social",
    "facebook": "Social",
    "instagram": "Social",
    "tiktok": "Social",
    "search": "Search",
    "google": "Search",
    "sem": "Search",
    "dooh": "DOOH",
    "out-of-home": "DOOH",
    "ooh": "DOOH",
    "audio": "Audio",
    "podcast": "Audio",
    "radio": "Audio",
    "streaming audio": "Audio",
    "email": "Email",
    "retail media": "Retail Media",
    "amazon": "Retail Media",
    "walmart": "Retail Media",
    "video": "Video",
    "youtube": "Video",
    "vod": "VOD",
    "addressable": "Addressable TV",
}


def _channels_in_order(text: str) -> list[str]:
    lowered = text.lower()
    found: list[str] = []
    for keyword, channel in CHANNEL_KEYWORDS.items():
        if keyword in lowered and channel not in found:
            found.append(channel)
    return found


def extract_channels(text: str) -> set[str]:
    """Canonical channel names mentioned anywhere in the text (substring match)."""
    return set(_channels_in_order(text))


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_RELATIVE_DATE_PATTERNS = [
    (re.compile(r"next month", re.IGNORECASE), relativedelta(months=1)),
    (re.compile(r"next week", re.IGNORECASE), relativedelta(weeks=1)),
    (re.compile(r"next quarter|\bq\d\b", re.IGNORECASE), relativedelta(months=3)),
    (re.compile(r"in (\d+) (day|week|month)s?", re.IGNORECASE), None),
]

_ABSOLUTE_DATE_RE = re.compile(r"\b(\d{1,2}/\d{1,2}/\d{2,4})\b")


def _parse_date(raw: str) -> date | None:
    try:
        return dateutil_parser.parse(raw).date()
    except (ValueError, OverflowError):
        return None


def extract_dates(text: str) -> DateEntities | None:
    """Relative phrase (last match wins) and up to two absolute m/d/y dates."""
    result = DateEntities()

    for pattern, _offset in _RELATIVE_DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            result.relative = match.group(0)

    absolutes = _ABSOLUTE_DATE_RE.findall(text)
    if absolutes:
        result.start = _parse_date(absolutes[0])
        if len(absolutes) > 1:
            result.end = _parse_date(absolutes[1])

    if result.relative is None and result.start is None and result.end is None:
        return None
    return result


def resolve_relative_date(relative: str, today: date) -> date | None:
    """Turn a phrase kept by extract_dates into a concrete date."""
    for pattern, offset in _RELATIVE_DATE_PATTERNS:
        match = pattern.search(relative)
        if not match:
            continue
        if offset is not None:
            return today + offset
        amount = int(match.group(1))
        unit = match.group(2).lower()
        return today + relativedelta(**{f"{unit}s": amount})
    return None


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

_METRIC_PATTERNS = [
    ("CPA", re.compile(r"cpa", re.IGNORECASE)),
    ("ROAS", re.compile(r"roas", re.IGNORECASE)),
    ("CTR", re.compile(r"ctr|click(?:-|\s+)through", re.IGNORECASE)),
    ("Conversions", re.compile(r"conversion|convert", re.IGNORECASE)),
    ("Impressions", re.compile(r"impression", re.IGNORECASE)),
    ("Reach", re.compile(r"reach", re.IGNORECASE)),
    ("Frequency", re.compile(r"frequency", re.IGNORECASE)),
]

_INCREASE_RE = re.compile(r"increase|improve|boost|raise|higher", re.IGNORECASE)
_DECREASE_RE = re.compile(r"decrease|reduce|lower|cut", re.IGNORECASE)
_TARGET_RE = re.compile(r"target|goal|aim", re.IGNORECASE)


def extract_metrics(text: str) -> list[MetricEntity] | None:
    metrics: list[MetricEntity] = []

    operator = None
    if _INCREASE_RE.search(text):
        operator = "increase"
    elif _DECREASE_RE.search(text):
        operator = "decrease"
    elif _TARGET_RE.search(text):
        operator = "target"

    for name, pattern in _METRIC_PATTERNS:
        if not pattern.search(text):
            continue
        metric = MetricEntity(name=name, operator=operator)
        value = re.search(rf"{re.escape(name)}.*?(\d+(?:\.\d+)?)", text, re.IGNORECASE)
        if value:
            metric.value = float(value.group(1))
        metrics.append(metric)

    return metrics or None


# ---------------------------------------------------------------------------
# Audience
# ---------------------------------------------------------------------------

_AGE_RANGE_RE = re.compile(r"\b(\d{2})-(\d{2})\b")
_INCOME_RE = re.compile(r"(?:household )?income (?:over|above) \$?([\d,k]+)", re.IGNORECASE)
_DEMOGRAPHIC_LABELS = [
    (re.compile(r"millennials?", re.IGNORECASE), "Millennials"),
    (re.compile(r"gen z", re.IGNORECASE), "Gen Z"),
    (re.compile(r"parents?", re.IGNORECASE), "Parents"),
]
_BEHAVIOR_RE = [
    re.compile(r"shopping for|in-market for", re.IGNORECASE),
    re.compile(r"interested in", re.IGNORECASE),
]
_GEO_RE = [
    re.compile(r"(?:in|targeting) ([\w\s]+(?:dma|metro|market|state|city|zip)s?)", re.IGNORECASE),
    re.compile(r"(?:northeast|southeast|midwest|southwest|west coast|east coast)", re.IGNORECASE),
    re.compile(r"top (\d+) (?:dma|market)s?", re.IGNORECASE),
]


def extract_audience(text: str) -> AudienceEntities | None:
    demographics: list[str] = []
    age = _AGE_RANGE_RE.search(text)
    if age:
        demographics.append(f"Age {age.group(1)}-{age.group(2)}")
    for pattern, label in _DEMOGRAPHIC_LABELS:
        if pattern.search(text):
            demographics.append(label)
    income = _INCOME_RE.search(text)
    if income:
        demographics.append(f"HHI ${income.group(1)}+")

    behaviors: list[str] = []
    for pattern in _BEHAVIOR_RE:
        match = pattern.search(text)
        if match:
            # Phrase up to the next clause break is the behavior.
            tail = text[match.end():].strip()
            behavior = re.split(r"[,;.]", tail)[0].strip()
            if behavior:
                behaviors.append(behavior)

    geography = [m.group(0) for p in _GEO_RE if (m := p.search(text))]

    if not (demographics or behaviors or geography):
        return None
    return AudienceEntities(
        demographics=demographics or None,
        behaviors=behaviors or None,
        geography=geography or None,
    )


# ---------------------------------------------------------------------------
# Placements / campaign name
# ---------------------------------------------------------------------------

_COUNT_RE = re.compile(r"(?:add|create|generate|make)\s+(\d+)\s+", re.IGNORECASE)
_NETWORK_RE = re.compile(r"on (espn|cnn|fox|nbc|cbs|abc|hulu|netflix)", re.IGNORECASE)


def extract_placement_specs(text: str) -> PlacementSpecs | None:
    """Batch specs: "add 5 ctv placements on espn" -> count=5, channel, network."""
    specs = PlacementSpecs()

    count = _COUNT_RE.search(text)
    if count:
        specs.count = int(count.group(1))

    channels = _channels_in_order(text)
    if channels:
        specs.channel = channels[0]

    network = _NETWORK_RE.search(text)
    if network:
        specs.network = network.group(1)

    if specs.count is None and specs.channel is None and specs.network is None:
        return None
    return specs


_QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")
_CAMPAIGN_FOR_RE = re.compile(r"campaign for ([^,;.]+)", re.IGNORECASE)


def extract_campaign_name(text: str) -> str | None:
    quoted = _QUOTED_RE.search(text)
    if quoted:
        return quoted.group(1)
    named = _CAMPAIGN_FOR_RE.search(text)
    if named:
        return named.group(1).strip()
    return None


def extract_all_entities(text: str) -> ExtractedEntities:
    return ExtractedEntities(
        budget=extract_budget(text),
        channels=extract_channels(text) or None,
        dates=extract_dates(text),
        metrics=extract_metrics(text),
        audience=extract_audience(text),
        placements=extract_placement_specs(text),
        campaign_name=extract_campaign_name(text),
    )
