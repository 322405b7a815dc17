"""Broadcast stations by designated market area (DMA)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Station:
    call_sign: str
    network: str
    channel: str
    owner: str | None = None


@dataclass(frozen=True)
class DMA:
    rank: int
    name: str
    stations: tuple[Station, ...]


DMA_DATA: dict[str, DMA] = {
    "new york": DMA(1, "New York", (
        Station("WABC", "ABC", "7", "Disney"),
        Station("WCBS", "CBS", "2", "CBS"),
        Station("WNBC", "NBC", "4", "NBC"),
        Station("WNYW", "FOX", "5", "Fox"),
        Station("WPIX", "CW", "11", "Mission"),
        Station("WNET", "PBS", "13", "WNET"),
    )),
    "los angeles": DMA(2, "Los Angeles", (
        Station("KABC", "ABC", "7", "Disney"),
        Station("KCBS", "CBS", "2", "CBS"),
        Station("KNBC", "NBC", "4", "NBC"),
        Station("KTTV", "FOX", "11", "Fox"),
        Station("KTLA", "CW", "5", "Nexstar"),
    )),
    "chicago": DMA(3, "Chicago", (
        Station("WLS", "ABC", "7", "Disney"),
        Station("WBBM", "CBS", "2", "CBS"),
        Station("WMAQ", "NBC", "5", "NBC"),
        Station("WFLD", "FOX", "32", "Fox"),
        Station("WGN", "Independent", "9", "Nexstar"),
    )),
    "philadelphia": DMA(4, "Philadelphia", (
        Station("WPVI", "ABC", "6", "Disney"),
        Station("KYW", "CBS", "3", "CBS"),
        Station("WCAU", "NBC", "10", "NBC"),
        Station("WTXF", "FOX", "29", "Fox"),
    )),
    "dallas": DMA(5, "Dallas-Ft. Worth", (
        Station("WFAA", "ABC", "8", "Tegna"),
        Station("KTVT", "CBS", "11", "CBS"),
        Station("KXAS", "NBC", "5", "NBC"),
        Station("KDFW", "FOX", "4", "Fox"),
    )),
    "atlanta": DMA(6, "Atlanta", (
        Station("WSB", "ABC", "2", "Cox"),
        Station("WANF", "CBS", "46", "Gray"),
        Station("WXIA", "NBC", "11", "Tegna"),
        Station("WAGA", "FOX", "5", "Fox"),
    )),
    "houston": DMA(7, "Houston", (
        Station("KTRK", "ABC", "13", "Disney"),
        Station("KHOU", "CBS", "11", "Tegna"),
        Station("KPRC", "NBC", "2", "Graham"),
        Station("KRIV", "FOX", "26", "Fox"),
    )),
    "des moines": DMA(68, "Des Moines-Ames", (
        Station("WOI", "ABC", "5", "Tegna"),
        Station("KCCI", "CBS", "8", "Hearst"),
        Station("WHO", "NBC", "13", "Nexstar"),
        Station("KDSM", "FOX", "17", "Sinclair"),
        Station("KCWI", "CW", "23", "Tegna"),
    )),
}

# Abbreviation -> DMA key. Checked after full city names.
_ALIASES = (
    ("nyc", "new york"),
    ("philly", "philadelphia"),
    ("dfw", "dallas"),
    ("atl", "atlanta"),
    ("chi ", "chicago"),
)


def get_dma_by_city(query: str) -> DMA | None:
    """Find the DMA a free-text query mentions, by name or common abbreviation."""
    lowered = query.lower().strip()
    if lowered in DMA_DATA:
        return DMA_DATA[lowered]
    for key, dma in DMA_DATA.items():
        if key in lowered:
            return dma
    for alias, key in _ALIASES:
        if alias in lowered:
            return DMA_DATA[key]
    if lowered == "la" or "la " in lowered:
        return DMA_DATA["los angeles"]
    return None
