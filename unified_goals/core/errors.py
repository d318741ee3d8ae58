"""
Error taxonomy for the Unified Goal Engine.

Validation failures are raised before anything crosses the command boundary.
Transport failures come back from the boundary itself; NotFoundError is kept
as its own type so callers and tests can tell a stale id apart, even though
the UI reports both the same way.
"""

from typing import Optional


class GoalEngineError(Exception):
    """Base class for all goal engine errors."""


class ValidationError(GoalEngineError):
    """A draft or value was rejected before any request was sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class TransportError(GoalEngineError):
    """The external command failed or was rejected."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class NotFoundError(TransportError):
    """Update or delete targeted an id the boundary does not know."""

    def __init__(self, message: str, command: Optional[str] = None,
                 goal_id: Optional[str] = None):
        super().__init__(message, command=command)
        self.goal_id = goal_id


def error_type(exc: Exception) -> str:
    """Short machine-readable category for an engine error."""
    if isinstance(exc, ValidationError):
        return "validation"
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, TransportError):
        return "transport"
    return "internal"
