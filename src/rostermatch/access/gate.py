"""Closed capability table deciding what each role may do to which resource.

Every (action, role) pair that is not listed is denied. Decisions are computed
fresh on each call from the principal and the resource alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Tuple, Union

from rostermatch.errors import Forbidden
from rostermatch.models import ApplicationStatus, PlayerRecord, Principal, Role


logger = logging.getLogger(__name__)


class Action(str, Enum):
    SUBMIT_APPLICATION = "submit_application"
    READ_PLAYER_APPLICATIONS = "read_player_applications"
    READ_AGENT_APPLICATIONS = "read_agent_applications"
    RESOLVE_APPLICATION = "resolve_application"
    QUERY_DIRECTORY = "query_directory"
    VIEW_DIRECTORY_RECORD = "view_directory_record"


class DenyReason(str, Enum):
    ROLE_NOT_PERMITTED = "role_not_permitted"
    NOT_OWNER = "not_owner"
    NOT_PENDING = "not_pending"
    NOT_PUBLIC = "not_public"


@dataclass(frozen=True)
class Allow:
    allowed: ClassVar[bool] = True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    message: str
    allowed: ClassVar[bool] = False

    def __bool__(self) -> bool:
        return False


Decision = Union[Allow, Deny]

ALLOW = Allow()


@dataclass(frozen=True)
class ApplicationDraft:
    """An application that a player is about to submit."""

    player_id: str
    agent_id: str


@dataclass(frozen=True)
class PlayerScope:
    """Everything keyed on one player (e.g. the applications they sent)."""

    player_id: str


@dataclass(frozen=True)
class AgentScope:
    """Everything keyed on one agent (e.g. the applications addressed to them)."""

    agent_id: str


@dataclass(frozen=True)
class DirectoryEntry:
    """A player record together with its owning agency's public-listing flag."""

    player: PlayerRecord
    public_listing: bool


Rule = Callable[[Principal, Any], Decision]


def _always(principal: Principal, resource: Any) -> Decision:
    return ALLOW


def _own_player(principal: Principal, resource: Any) -> Decision:
    if getattr(resource, "player_id", None) == principal.id:
        return ALLOW
    return Deny(DenyReason.NOT_OWNER, "Resource belongs to another player")


def _own_agent(principal: Principal, resource: Any) -> Decision:
    if getattr(resource, "agent_id", None) == principal.id:
        return ALLOW
    return Deny(DenyReason.NOT_OWNER, "Resource is addressed to another agent")


def _pending(principal: Principal, resource: Any) -> Decision:
    if getattr(resource, "status", None) == ApplicationStatus.PENDING:
        return ALLOW
    return Deny(DenyReason.NOT_PENDING, "Application is no longer pending")


def _own_roster(principal: Principal, resource: Any) -> Decision:
    player = getattr(resource, "player", None)
    if player is not None and player.owner_agent_id == principal.id:
        return ALLOW
    return Deny(DenyReason.NOT_OWNER, "Player is not on this agent's roster")


def _publicly_listed(principal: Principal, resource: Any) -> Decision:
    player = getattr(resource, "player", None)
    if (
        player is not None
        and player.owner_agent_id is not None
        and getattr(resource, "public_listing", False)
        and player.marketplace_visible
    ):
        return ALLOW
    return Deny(DenyReason.NOT_PUBLIC, "Player is not publicly listed")


def _all_of(*rules: Rule) -> Rule:
    def rule(principal: Principal, resource: Any) -> Decision:
        for check in rules:
            decision = check(principal, resource)
            if not decision:
                return decision
        return ALLOW

    return rule


_CAPABILITIES: Dict[Tuple[Action, Role], Rule] = {
    (Action.SUBMIT_APPLICATION, Role.PLAYER): _own_player,
    (Action.READ_PLAYER_APPLICATIONS, Role.PLAYER): _own_player,
    (Action.READ_PLAYER_APPLICATIONS, Role.SUPERADMIN): _always,
    (Action.READ_AGENT_APPLICATIONS, Role.AGENT): _own_agent,
    (Action.READ_AGENT_APPLICATIONS, Role.SUPERADMIN): _always,
    # Ownership is checked before state so other agents never learn the status.
    (Action.RESOLVE_APPLICATION, Role.AGENT): _all_of(_own_agent, _pending),
    (Action.RESOLVE_APPLICATION, Role.SUPERADMIN): _pending,
    (Action.QUERY_DIRECTORY, Role.AGENT): _always,
    (Action.QUERY_DIRECTORY, Role.CLUB): _always,
    (Action.QUERY_DIRECTORY, Role.SUPERADMIN): _always,
    (Action.VIEW_DIRECTORY_RECORD, Role.AGENT): _own_roster,
    (Action.VIEW_DIRECTORY_RECORD, Role.CLUB): _publicly_listed,
    (Action.VIEW_DIRECTORY_RECORD, Role.SUPERADMIN): _always,
}


def is_permitted(principal: Principal, action: Action) -> bool:
    """Whether the role appears in the table for ``action`` at all."""

    return (Action(action), principal.role) in _CAPABILITIES


def authorize(principal: Principal, action: Action, resource: Any = None) -> Decision:
    """Evaluate ``action`` on ``resource`` for ``principal``."""

    rule = _CAPABILITIES.get((Action(action), principal.role))
    if rule is None:
        return Deny(
            DenyReason.ROLE_NOT_PERMITTED,
            f"Role {principal.role.value!r} may not {Action(action).value}",
        )
    return rule(principal, resource)


def enforce(principal: Principal, action: Action, resource: Any = None) -> None:
    """Raise :class:`Forbidden` unless ``principal`` may perform ``action``."""

    decision = authorize(principal, action, resource)
    if not decision:
        logger.warning(
            "Denied %s for %s:%s (%s)",
            Action(action).value,
            principal.role.value,
            principal.id,
            decision.reason.value,
        )
        raise Forbidden(decision.message, decision=decision)


def enforce_role(principal: Principal, action: Action) -> None:
    """Reject callers whose role can never perform ``action``, before any lookup."""

    if not is_permitted(principal, action):
        enforce(principal, action)


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
