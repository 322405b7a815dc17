"""Exceptions raised by command handlers.

The dispatcher converts any of these (and any unexpected error) into an
apology message, so they never escape ``AgentBrain.process_input``.
"""


class PlannerError(Exception):
    """Base class for planner errors."""


class CommandError(PlannerError):
    """A command matched but its arguments could not be used."""


class PlanRequiredError(PlannerError):
    """A handler that mutates the plan was reached with no active plan."""

    def __init__(self, message: str = "There is no active media plan yet.") -> None:
        super().__init__(message)
