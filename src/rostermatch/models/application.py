"""Application records and the status transition function."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from rostermatch.errors import AlreadyResolved, InvalidTransition


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApplicationStatus.PENDING


TERMINAL_STATUSES = frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED})


class Application(BaseModel):
    """A player's request to join an agency's roster."""

    application_id: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)
    agent_id: str = Field(..., min_length=1)
    status: ApplicationStatus = ApplicationStatus.PENDING
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def is_active(self) -> bool:
        return self.status is ApplicationStatus.PENDING


def next_status(current: ApplicationStatus, decision: ApplicationStatus) -> ApplicationStatus:
    """Return the status reached by applying ``decision`` to ``current``.

    ``pending`` may move to either terminal status; terminal statuses have no
    outgoing transitions.
    """

    current = ApplicationStatus(current)
    try:
        decision = ApplicationStatus(decision)
    except ValueError as exc:
        raise InvalidTransition(
            f"Unknown application status {decision!r}",
            current=current,
            requested=decision,
        ) from exc
    if current.is_terminal:
        raise AlreadyResolved(
            f"Application is already {current.value}",
            current=current,
            requested=decision,
        )
    if decision not in TERMINAL_STATUSES:
        raise InvalidTransition(
            f"Cannot move application from {current.value} to {decision.value}",
            current=current,
            requested=decision,
        )
    return decision
