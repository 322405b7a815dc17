"""Command handlers for the planner.

Each handler module exposes ``HANDLERS``: a map from command id (see
``planner.commands``) to a callable that takes a Turn and returns
exactly one AgentMessage. ``build_dispatcher`` wires every module into
a CommandDispatcher, which is the single place handler faults are
caught and turned into an apology.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from planner.commands import CommandMatch
from planner.errors import CommandError, PlanRequiredError
from planner.schemas import AgentMessage
from planner.session import PlannerSession

logger = logging.getLogger(__name__)

NEW_PLAN_SUGGESTIONS = ["Create plan for Nike ($500k)", "Create plan for Local Coffee Shop ($5k)"]


@dataclass(frozen=True)
class Turn:
    """One user input resolved to a command, plus the session it acts on."""

    text: str
    match: CommandMatch
    session: PlannerSession

    @property
    def lowered(self) -> str:
        return self.text.lower()

    def group(self, index: int = 1) -> str | None:
        value = self.match.group(index)
        return value.strip() if value else None


Handler = Callable[[Turn], AgentMessage]


def reply(content: str, suggestions: Iterable[str] = (), **fields: Any) -> AgentMessage:
    return AgentMessage(content=content, suggested_actions=list(suggestions), **fields)


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def apology(error: Exception | str) -> AgentMessage:
    return reply(
        f"I'm sorry, I ran into a problem with that request: {error}",
        ["Help", "Show Performance"],
    )


# ---------------------------------------------------------------------------
# CommandDispatcher
# ---------------------------------------------------------------------------


class CommandDispatcher:
    """Maps command ids to handlers and runs them behind an error boundary."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, command_id: str, handler: Handler) -> None:
        self._handlers[command_id] = handler

    def register_all(self, handlers: dict[str, Handler]) -> None:
        for command_id, handler in handlers.items():
            self.register(command_id, handler)

    def __contains__(self, command_id: str) -> bool:
        return command_id in self._handlers

    @property
    def command_ids(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def dispatch(self, turn: Turn) -> AgentMessage:
        """Run the handler for the matched command. Never raises."""
        command = turn.match.command
        handler = self._handlers.get(command.id)
        if handler is None:
            logger.warning("No handler registered for command %s", command.id)
            return reply(f"I understood **{command.name}**, but I can't do that yet.", ["Help"])
        try:
            return handler(turn)
        except PlanRequiredError as e:
            return reply(f"{e} Tell me the client and total budget to create one.", NEW_PLAN_SUGGESTIONS)
        except CommandError as e:
            logger.info("Command %s rejected: %s", command.id, e)
            return apology(e)
        except Exception as e:
            logger.exception("Handler error for %s", command.id)
            return apology(e)


def build_dispatcher() -> CommandDispatcher:
    """Dispatcher with every handler module registered."""
    from planner.handlers import (
        attribution,
        budget,
        creatives,
        display,
        forecast,
        goals,
        history,
        inventory,
        optimization,
        placements,
        session,
        templates,
        windows,
    )

    dispatcher = CommandDispatcher()
    for module in (
        session,
        display,
        history,
        optimization,
        forecast,
        goals,
        templates,
        creatives,
        budget,
        placements,
        inventory,
        windows,
        attribution,
    ):
        dispatcher.register_all(module.HANDLERS)
    return dispatcher
