"""Inventory questions: canned programming answers and DMA station lookup."""

from __future__ import annotations

from planner.data.dma import DMA, get_dma_by_city
from planner.data.inventory import find_inventory_answer
from planner.handlers import Handler, Turn, reply
from planner.schemas import AgentMessage

_BROADCAST_WORDS = ("channel", "station", "broadcast", "tv")


def _stations_reply(dma: DMA) -> AgentMessage:
    stations = "\n".join(
        f"• **{s.call_sign}** ({s.network}) - Ch {s.channel}" + (f" [{s.owner}]" if s.owner else "")
        for s in dma.stations
    )
    return reply(
        f"**Broadcast Stations - {dma.name} (Rank #{dma.rank}):**\n\n{stations}",
        [f"Add {s.call_sign} ({s.network})" for s in dma.stations[:2]],
    )


def inventory_query(turn: Turn) -> AgentMessage:
    if any(word in turn.lowered for word in _BROADCAST_WORDS):
        dma = get_dma_by_city(turn.text)
        if dma is not None:
            return _stations_reply(dma)
    answer = find_inventory_answer(turn.text)
    return reply(answer.content, answer.suggestions)


def dma_query(turn: Turn) -> AgentMessage:
    dma = get_dma_by_city(turn.text)
    if dma is not None:
        return _stations_reply(dma)
    answer = find_inventory_answer(turn.text)
    return reply(answer.content, answer.suggestions)


HANDLERS: dict[str, Handler] = {
    "inventory_query": inventory_query,
    "dma_query": dma_query,
}
