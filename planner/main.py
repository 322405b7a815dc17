"""Planner entry point.

Runs a line-oriented chat loop over one AgentBrain:
  Settings -> logging -> AgentBrain -> read/print loop

Each line is one turn. Suggested actions are printed as numbered quick
replies; typing the number sends that suggestion. ``quit`` or EOF exits.
"""

from __future__ import annotations

import logging

from planner.brain import AgentBrain
from planner.config import Settings
from planner.schemas import AgentMessage

logger = logging.getLogger(__name__)

_EXIT_WORDS = frozenset({"quit", "exit", ":q"})


def render(message: AgentMessage) -> str:
    """Plain-text rendering of a message for the terminal."""
    lines = [message.content]
    if message.action is not None:
        target = f" ({message.action_target})" if message.action_target else ""
        lines.append(f"[{message.action.value}{target}]")
    if message.suggested_actions:
        lines.append("")
        lines.extend(f"  {i}. {label}" for i, label in enumerate(message.suggested_actions, 1))
    return "\n".join(lines)


def main() -> None:
    """Entry point: configure logging, then chat until EOF."""
    settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    brain = AgentBrain(settings)
    logger.info("Planner session %s started", brain.session_id)

    message = brain.welcome_message()
    print(render(message))
    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue
        if line.lower() in _EXIT_WORDS:
            break
        # Numbered quick replies
        if line.isdigit() and 0 < int(line) <= len(message.suggested_actions):
            line = message.suggested_actions[int(line) - 1]
            print(f"> {line}")
        message = brain.process_input(line)
        print(render(message))

    logger.info("Planner session %s ended", brain.session_id)


if __name__ == "__main__":
    main()
