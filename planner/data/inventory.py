"""Canned inventory answers: TV programming by genre, DOOH by city, vertical video.

Answers are looked up in table order; the first entry whose trigger words
and qualifier words both appear in the query wins.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InventoryAnswer:
    triggers: tuple[str, ...]
    qualifiers: tuple[str, ...]
    content: str
    suggestions: tuple[str, ...]

    def matches(self, query: str) -> bool:
        if not any(t in query for t in self.triggers):
            return False
        return not self.qualifiers or any(q in query for q in self.qualifiers)


_LISTING = ("show", "program", "available", "avail")

GENRES: tuple[InventoryAnswer, ...] = (
    InventoryAnswer(
        ("sports",),
        ("tv", "program", "show"),
        "**Available Sports Programming:**\n\n"
        "**ESPN:**\n"
        "• SportsCenter (2-5M viewers)\n"
        "• Monday Night Football (12-15M viewers)\n"
        "• NBA on ESPN (3-6M viewers)\n\n"
        "**Fox Sports:**\n"
        "• NFL on Fox (15-20M viewers)\n"
        "• UEFA Champions League (2-4M viewers)\n\n"
        "**NBC Sports:**\n"
        "• Sunday Night Football (18-22M viewers)\n"
        "• Premier League (1-3M viewers)",
        ("Add ESPN Monday Night Football", "Add NFL Sunday slot"),
    ),
    InventoryAnswer(
        ("news", "current events"),
        _LISTING,
        "**Available News Programming:**\n\n"
        "**Cable News:**\n"
        "• CNN Prime Time (1-3M viewers)\n"
        "• Fox News Tonight (3-5M viewers)\n"
        "• MSNBC Evening (1.5-2.5M viewers)\n\n"
        "**Broadcast News:**\n"
        "• NBC Nightly News (6-8M viewers)\n"
        "• ABC World News Tonight (7-9M viewers)\n"
        "• CBS Evening News (5-6M viewers)",
        ("Add CNN Prime", "Add NBC Nightly News"),
    ),
    InventoryAnswer(
        ("drama", "series"),
        _LISTING,
        "**Available Drama Programming:**\n\n"
        "**Network Drama:**\n"
        "• Law & Order SVU - NBC (4-6M viewers)\n"
        "• Chicago Fire - NBC (6-8M viewers)\n"
        "• FBI - CBS (6-7M viewers)\n\n"
        "**Streaming Originals:**\n"
        "• The Bear - Hulu\n"
        "• Yellowstone - Paramount+",
        ("Add Law & Order SVU", "Add Yellowstone"),
    ),
    InventoryAnswer(
        ("comedy", "sitcom"),
        _LISTING,
        "**Available Comedy Programming:**\n\n"
        "**Network Comedy:**\n"
        "• Abbott Elementary - ABC (3-4M viewers)\n"
        "• Young Sheldon - CBS (6-8M viewers)\n\n"
        "**Late Night:**\n"
        "• The Tonight Show - NBC (1.5-2M viewers)\n"
        "• Jimmy Kimmel Live - ABC (1.8-2.3M viewers)",
        ("Add Abbott Elementary", "Add Tonight Show"),
    ),
    InventoryAnswer(
        ("reality", "competition"),
        _LISTING,
        "**Available Reality Programming:**\n\n"
        "**Competition Shows:**\n"
        "• The Voice - NBC (6-8M viewers)\n"
        "• American Idol - ABC (5-6M viewers)\n"
        "• Survivor - CBS (6-7M viewers)\n\n"
        "**Lifestyle/Home:**\n"
        "• Fixer Upper - HGTV (2-3M viewers)",
        ("Add The Voice", "Add Survivor"),
    ),
    InventoryAnswer(
        ("kids", "family", "children"),
        _LISTING,
        "**Available Kids/Family Programming:**\n\n"
        "**Preschool:**\n"
        "• Bluey - Disney Jr (1-2M viewers)\n"
        "• Sesame Street - PBS\n\n"
        "**Family Prime:**\n"
        "• America's Funniest Home Videos - ABC (3-4M viewers)\n"
        "• The Simpsons - Fox (2-3M viewers)",
        ("Add Bluey", "Add SpongeBob"),
    ),
    InventoryAnswer(
        ("documentary", "educational", "nature"),
        _LISTING,
        "**Available Documentary Programming:**\n\n"
        "**Nature/Science:**\n"
        "• Planet Earth - Discovery/BBC\n"
        "• Cosmos - National Geographic\n\n"
        "**True Crime:**\n"
        "• Dateline NBC (3-4M viewers)\n"
        "• 48 Hours - CBS (2-3M viewers)",
        ("Add Planet Earth", "Add Dateline"),
    ),
)

DOOH_TRIGGERS = ("dooh", "outdoor", "billboard")

DOOH_CITIES: tuple[InventoryAnswer, ...] = (
    InventoryAnswer(
        ("seoul", "korea"),
        (),
        "**DOOH Inventory - Seoul (City-Wide):**\n\n"
        "**Clear Channel Korea:**\n"
        "• Gangnam Station (120 screens, 2.5M monthly impr)\n"
        "• Seoul Station Hub (85 screens, 1.8M impr)\n\n"
        "**JCDecaux Korea:**\n"
        "• Hongdae District (150 screens, 1.9M impr)\n"
        "• ICN Terminals (240 screens, 20M impr)\n\n"
        "**Total: 708 screens, 32.5M monthly impressions**",
        ("Add Gangnam Station DOOH", "Add ICN Airport"),
    ),
    InventoryAnswer(
        ("new york", "nyc"),
        (),
        "**DOOH Inventory - NYC (City-Wide):**\n\n"
        "**Clear Channel:**\n"
        "• Times Square (25 screens, 15M monthly impr)\n"
        "• Penn Station (180 screens, 4.5M impr)\n\n"
        "**Outfront Media:**\n"
        "• MTA Subway (4,500+ screens, 25M impr)\n"
        "• LinkNYC Kiosks (1,750 screens, 12M impr)\n\n"
        "**Total: 7,100+ screens, 101.5M monthly impressions**",
        ("Add Times Square DOOH", "Add MTA Subway"),
    ),
    InventoryAnswer(
        ("los angeles",),
        (),
        "**DOOH Inventory - Los Angeles (City-Wide):**\n\n"
        "**Clear Channel:**\n"
        "• Hollywood Blvd (85 screens, 8M monthly impr)\n"
        "• LAX Airport (320 screens, 16M impr)\n\n"
        "**Outfront Media:**\n"
        "• Metro Network (1,200 screens, 15M impr)\n\n"
        "**Total: 1,830 screens, 50M monthly impressions**",
        ("Add Hollywood Blvd DOOH", "Add LAX Airport"),
    ),
    InventoryAnswer(
        ("chicago",),
        (),
        "**DOOH Inventory - Chicago (City-Wide):**\n\n"
        "**Clear Channel:**\n"
        "• O'Hare Airport (ORD) (350 screens, 22M monthly impr)\n"
        "• Loop District (95 screens, 6M impr)\n\n"
        "**Outfront Media:**\n"
        "• CTA Train Network (2,100 screens, 18M impr)\n\n"
        "**Total: 2,760 screens, 62M monthly impressions**",
        ("Add ORD Airport DOOH", "Add CTA Network"),
    ),
    InventoryAnswer(
        ("dallas",),
        (),
        "**DOOH Inventory - Dallas/Fort Worth (City-Wide):**\n\n"
        "**Clear Channel:**\n"
        "• DFW Airport (280 screens, 18M monthly impr)\n"
        "• Downtown Dallas (65 screens, 4.5M impr)\n\n"
        "**Outfront Media:**\n"
        "• Highway Digital Bulletins (220 screens, 12M impr)\n\n"
        "**Total: 1,200 screens, 55M monthly impressions**",
        ("Add DFW Airport DOOH", "Add Downtown Dallas"),
    ),
)

DOOH_OVERVIEW = InventoryAnswer(
    DOOH_TRIGGERS,
    (),
    "**DOOH Available in:**\n\n"
    "• New York (7,000+ screens)\n"
    "• Los Angeles (5,500+ screens)\n"
    "• Seoul (2,100+ screens)\n"
    "• Tokyo (6,500+ screens)\n\n"
    "Try asking about a specific city!",
    ("Show New York DOOH", "Show Seoul DOOH"),
)

VERTICAL_VIDEO = InventoryAnswer(
    ("vertical", "9:16"),
    ("video",),
    "**Vertical Video Options:**\n\n"
    "**Social:**\n"
    "• TikTok (up to 60s, 9:16)\n"
    "• Instagram Reels (up to 90s, 9:16)\n"
    "• Snapchat (up to 60s, 9:16)\n"
    "• YouTube Shorts (up to 60s, 9:16)\n\n"
    "**Best for engagement:** TikTok & Instagram Reels",
    ("Add TikTok vertical video", "Add Instagram Reels"),
)

FALLBACK = InventoryAnswer(
    (),
    (),
    "I can help you find inventory! Try:\n\n"
    "• 'What sports programming is available?'\n"
    "• 'What DOOH is in [city]?'\n"
    "• 'Where can I run vertical video?'",
    ("Show sports programming",),
)


def find_inventory_answer(query: str) -> InventoryAnswer:
    """Best canned answer for an inventory question; never None."""
    lowered = query.lower()
    for answer in GENRES:
        if answer.matches(lowered):
            return answer
    if any(t in lowered for t in DOOH_TRIGGERS):
        for answer in DOOH_CITIES:
            if answer.matches(lowered):
                return answer
        return DOOH_OVERVIEW
    if VERTICAL_VIDEO.matches(lowered):
        return VERTICAL_VIDEO
    return FALLBACK
