"""Undo, redo and change history over plan snapshots."""

from __future__ import annotations

import logging

from planner.handlers import Handler, Turn, plural, reply
from planner.schemas import AgentMessage

logger = logging.getLogger(__name__)


def undo(turn: Turn) -> AgentMessage:
    session = turn.session
    requested = turn.group()
    count = int(requested) if requested and requested.isdigit() else 1

    undone = []
    for _ in range(max(count, 1)):
        entry = session.history.undo()
        if entry is None:
            break
        session.restore(entry.state_before)
        undone.append(entry)

    if not undone:
        return reply("Nothing to undo.", ["Show history"])

    logger.info("Session %s undid %d action(s)", session.session_id, len(undone))
    if len(undone) == 1:
        content = f"Undid: **{undone[0].description}**."
    else:
        content = f"Undid {plural(len(undone), 'change')}:\n" + "\n".join(
            f"- {entry.description}" for entry in undone
        )
    return reply(content, ["Redo", "Show history"], updated_media_plan=session.plan.model_copy(deep=True))


def redo(turn: Turn) -> AgentMessage:
    session = turn.session
    entry = session.history.redo()
    if entry is None:
        return reply("Nothing to redo.", ["Show history"])
    updated = session.restore(entry.state_after)
    return reply(f"Redid: **{entry.description}**.", ["Undo", "Show history"], updated_media_plan=updated)


def show_history(turn: Turn) -> AgentMessage:
    entries = turn.session.history.recent()
    if not entries:
        return reply("No changes recorded yet.", ["Help"])
    lines = ["**Recent Changes** (newest first)\n"]
    for idx, entry in enumerate(entries, 1):
        lines.append(f"{idx}. {entry.description} ({entry.timestamp:%H:%M:%S})")
    return reply("\n".join(lines), ["Undo", "Redo"])


HANDLERS: dict[str, Handler] = {
    "undo": undo,
    "redo": redo,
    "show_history": show_history,
}
