"""Domain models."""

from .application import TERMINAL_STATUSES, Application, ApplicationStatus, next_status
from .player import AgentRecord, ContractStatus, PlayerRecord, PositionCategory
from .principal import Principal, Role

__all__ = [
    "AgentRecord",
    "Application",
    "ApplicationStatus",
    "ContractStatus",
    "PlayerRecord",
    "PositionCategory",
    "Principal",
    "Role",
    "TERMINAL_STATUSES",
    "next_status",
]
