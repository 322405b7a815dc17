"""Channel catalog: vendors, ad units, segments and rate cards per channel.

Rates are 2024-2025 industry ranges. TV is bought on CPM (data-driven
linear) rather than per spot; print still trades at a flat rate.
"""

from __future__ import annotations

from dataclasses import dataclass

from planner.schemas import CostMethod


@dataclass(frozen=True)
class RateCard:
    method: CostMethod
    min_rate: float
    max_rate: float


DIGITAL_CHANNELS = ("Search", "Social", "Display")
OFFLINE_CHANNELS = ("TV", "Radio", "OOH", "Print")

VENDORS: dict[str, tuple[str, ...]] = {
    "Search": ("Google Ads", "Microsoft Ads", "Amazon Ads"),
    "Social": ("Meta", "TikTok", "LinkedIn", "Snapchat", "Pinterest", "X (Twitter)"),
    "Display": ("Google Display Network", "Taboola", "Outbrain", "Criteo", "The Trade Desk"),
    "TV": ("Linear TV", "CTV"),
    "Radio": ("iHeartRadio", "SiriusXM", "Audacy", "Cumulus"),
    "Streaming Audio": ("Spotify", "Pandora", "iHeartRadio Digital"),
    "Podcast": ("Spotify Podcasts", "iHeart Podcasts", "SiriusXM Podcasts"),
    "OOH": ("Clear Channel", "Lamar", "Outfront Media", "JCDecaux"),
    "Print": ("The New York Times", "WSJ", "USA Today", "Local Newspapers"),
}

AD_UNITS: dict[str, tuple[str, ...]] = {
    "Search": ("Responsive Search Ad", "Exact Match Keyword", "Shopping Ad"),
    "Social": ("Newsfeed Image", "Story Video", "Carousel", "Reels"),
    "Display": ("300x250", "728x90", "160x600", "Native"),
    "TV": (":30 Spot", ":15 Spot", "Sponsorship"),
    "Radio": ("Audio Spot :30", "Host Read", "Live Read"),
    "Streaming Audio": ("Audio :30", "Audio :15", "Companion Banner"),
    "Podcast": ("Host Read :60", "Pre-roll :15", "Mid-roll :30", "Baked-in"),
    "OOH": ("Digital Billboard", "Transit Shelter", "Highway Bulletin"),
    "Print": ("Full Page Color", "Half Page", "Quarter Page"),
}

SEGMENTS: dict[str, tuple[str, ...]] = {
    "Search": ("High Intent", "Brand Keywords", "Competitor Conquesting"),
    "Social": ("A18-34", "Parents", "Interest: Tech", "Lookalike 1%"),
    "Display": ("Retargeting", "In-Market Auto", "Affinity: Luxury"),
    "TV": ("Broad Reach", "Sports Fans", "Morning News"),
    "Radio": ("Commuters", "Drive Time", "Morning Show"),
    "Streaming Audio": ("Music Listeners", "Workout", "Commute", "Focus"),
    "Podcast": ("True Crime", "Business", "Comedy", "News & Politics"),
    "OOH": ("Urban Centers", "Highway Traffic"),
    "Print": ("Affluent Readers", "Local Community"),
}

RATE_CARDS: dict[str, RateCard] = {
    "Search": RateCard(CostMethod.CPC, 1.5, 8),
    "Social": RateCard(CostMethod.CPM, 5, 15),
    "Display": RateCard(CostMethod.CPM, 2.5, 12),
    "TV": RateCard(CostMethod.CPM, 15, 35),
    "Radio": RateCard(CostMethod.CPM, 8, 15),
    "Streaming Audio": RateCard(CostMethod.CPM, 15, 25),
    "Podcast": RateCard(CostMethod.CPM, 18, 60),
    "OOH": RateCard(CostMethod.CPM, 2, 15),
    "Print": RateCard(CostMethod.FLAT, 500, 10000),
}

# Unknown channels price and describe themselves like TV.
FALLBACK_CHANNEL = "TV"

# Networks and services a user can name directly ("add espn").
TV_NETWORKS = frozenset(
    {
        "espn", "cbs", "nbc", "abc", "fox", "cnn", "msnbc", "hgtv", "discovery", "tlc",
        "bravo", "tnt", "f1", "nfl", "nba", "mlb", "nhl",
    }
)
CTV_SERVICES = frozenset(
    {
        "netflix", "hulu", "amazon", "disney", "hbo", "apple", "paramount", "peacock",
        "youtube", "roku", "tubi", "pluto", "dazn", "sling",
    }
)

# Free-text channel names to catalog channels, for add/batch commands.
CHANNEL_ALIASES: dict[str, str] = {
    "search": "Search",
    "sem": "Search",
    "social": "Social",
    "display": "Display",
    "native": "Display",
    "video": "Display",
    "tv": "TV",
    "ctv": "TV",
    "connected tv": "TV",
    "linear tv": "TV",
    "radio": "Radio",
    "audio": "Streaming Audio",
    "podcast": "Podcast",
    "ooh": "OOH",
    "print": "Print",
}


def canonical_channel(name: str) -> str:
    """Map a user-typed channel or network to a catalog channel."""
    key = name.strip().lower()
    if key in CHANNEL_ALIASES:
        return CHANNEL_ALIASES[key]
    if key in TV_NETWORKS or key in CTV_SERVICES:
        return "TV"
    return FALLBACK_CHANNEL


def display_network(name: str) -> str:
    """Network names read better upper-cased ("ESPN"), services title-cased ("Hulu")."""
    key = name.strip().lower()
    if key in TV_NETWORKS:
        return key.upper()
    return name.strip().title()
