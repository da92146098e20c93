"""Role-based access gate."""

from .gate import (
    ALLOW,
    Action,
    AgentScope,
    Allow,
    ApplicationDraft,
    Decision,
    Deny,
    DenyReason,
    DirectoryEntry,
    PlayerScope,
    authorize,
    enforce,
    enforce_role,
    is_permitted,
)

__all__ = [
    "ALLOW",
    "Action",
    "AgentScope",
    "Allow",
    "ApplicationDraft",
    "Decision",
    "Deny",
    "DenyReason",
    "DirectoryEntry",
    "PlayerScope",
    "authorize",
    "enforce",
    "enforce_role",
    "is_permitted",
]
