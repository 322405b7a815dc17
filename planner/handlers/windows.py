"""Window management commands.

These only describe what the UI should do: each reply carries a window
action tag, and the UI owns the actual window state.
"""

from __future__ import annotations

from dataclasses import dataclass

from planner.handlers import Handler, Turn, reply
from planner.schemas import AgentAction, AgentMessage


@dataclass(frozen=True)
class WindowReply:
    action: AgentAction
    content: str
    suggestions: tuple[str, ...]


_SIMPLE: dict[str, WindowReply] = {
    "close_window": WindowReply(
        AgentAction.WINDOW_CLOSE, "Closing the window.", ("Open portfolio", "Show campaigns")
    ),
    "minimize_window": WindowReply(
        AgentAction.WINDOW_MINIMIZE, "Minimizing the window.", ("Restore window", "Show all windows")
    ),
    "maximize_window": WindowReply(AgentAction.WINDOW_MAXIMIZE, "Maximizing the window.", ("Restore window",)),
    "restore_window": WindowReply(
        AgentAction.WINDOW_RESTORE, "Restoring the window.", ("Maximize window", "Tile windows")
    ),
    "cascade_windows": WindowReply(
        AgentAction.WINDOW_CASCADE, "Cascading windows.", ("Tile windows", "Minimize all")
    ),
    "minimize_all": WindowReply(
        AgentAction.WINDOW_MINIMIZE_ALL, "Minimizing all windows.", ("Restore all", "Open campaign")
    ),
    "restore_all": WindowReply(
        AgentAction.WINDOW_RESTORE_ALL, "Restoring all windows.", ("Tile windows", "Cascade windows")
    ),
    "close_all": WindowReply(
        AgentAction.WINDOW_CLOSE_ALL, "Closing all windows.", ("Open portfolio", "Open campaign")
    ),
    "gather_windows": WindowReply(
        AgentAction.WINDOW_GATHER,
        "Bringing all windows back to the visible area.",
        ("Tile windows", "Cascade windows"),
    ),
    "pin_window": WindowReply(
        AgentAction.WINDOW_PIN,
        "Pinning this window. It will persist across sessions.",
        ("Unpin window", "Close window"),
    ),
    "unpin_window": WindowReply(
        AgentAction.WINDOW_UNPIN,
        "Unpinning this window. It won't persist after you close it.",
        ("Pin window", "Close window"),
    ),
}


def _simple(command_id: str) -> Handler:
    spec = _SIMPLE[command_id]

    def handle(turn: Turn) -> AgentMessage:
        return reply(spec.content, spec.suggestions, action=spec.action, action_target=turn.group())

    handle.__name__ = command_id
    return handle


def tile_windows(turn: Turn) -> AgentMessage:
    direction = (turn.group() or "horizontal").lower()
    action = AgentAction.WINDOW_TILE_VERTICAL if direction == "vertical" else AgentAction.WINDOW_TILE_HORIZONTAL
    return reply(f"Tiling windows {direction}ly.", ["Cascade windows", "Minimize all"], action=action)


def focus_window(turn: Turn) -> AgentMessage:
    name = turn.group() or "requested"
    return reply(
        f"Focusing on the {name} window.",
        ["Tile windows", "Close window"],
        action=AgentAction.WINDOW_FOCUS,
        action_target=name,
    )


def open_window(turn: Turn) -> AgentMessage:
    window_type = (turn.group() or "campaign").lower()
    return reply(
        f"Opening a new {window_type} window.",
        ["Tile windows", "Close window"],
        action=AgentAction.WINDOW_OPEN,
        action_target=window_type,
    )


HANDLERS: dict[str, Handler] = {
    **{command_id: _simple(command_id) for command_id in _SIMPLE},
    "tile_windows": tile_windows,
    "focus_window": focus_window,
    "open_window": open_window,
}
