"""Error taxonomy shared by the access gate, directory and application workflow.

Adapters (CLI, HTTP) map these to transport responses using ``code``, which is
a stable machine-readable identifier.
"""

from __future__ import annotations

from typing import Any, Optional


class RosterMatchError(Exception):
    """Base class for failures surfaced to callers of the core."""

    code = "error"

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class Forbidden(RosterMatchError):
    code = "forbidden"

    def __init__(self, message: str, *, decision: Any = None):
        super().__init__(message, details=decision)
        self.decision = decision


class Conflict(RosterMatchError):
    code = "conflict"


class NotFound(RosterMatchError):
    code = "not_found"


class InvalidFilter(RosterMatchError):
    code = "invalid_filter"


class InvalidTransition(RosterMatchError):
    code = "invalid_transition"

    def __init__(self, message: str, *, current: Any = None, requested: Any = None):
        super().__init__(message, details={"current": current, "requested": requested})
        self.current = current
        self.requested = requested


class AlreadyResolved(InvalidTransition):
    """Raised for any resolve attempt on an application that is already terminal.

    ``same_decision`` tells a retrying client whether the stored outcome is the
    one it asked for.
    """

    code = "already_resolved"

    @property
    def same_decision(self) -> bool:
        return self.current == self.requested


__all__ = [
    "RosterMatchError",
    "Forbidden",
    "Conflict",
    "NotFound",
    "InvalidFilter",
    "InvalidTransition",
    "AlreadyResolved",
]
