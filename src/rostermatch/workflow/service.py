"""Application workflow: players ask to join an agency, the agency decides."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol
from uuid import uuid4

from rostermatch.access import (
    Action,
    AgentScope,
    ApplicationDraft,
    DenyReason,
    PlayerScope,
    authorize,
    enforce,
    enforce_role,
)
from rostermatch.errors import AlreadyResolved, Conflict, Forbidden, InvalidFilter, NotFound
from rostermatch.models import (
    AgentRecord,
    Application,
    ApplicationStatus,
    PlayerRecord,
    Principal,
    Role,
    next_status,
)


logger = logging.getLogger(__name__)


class ApplicationStore(Protocol):
    def get_agent(self, agent_id: str) -> Optional[AgentRecord]: ...

    def get_player(self, player_id: str) -> Optional[PlayerRecord]: ...

    def create_application(self, application: Application) -> Application: ...

    def get_application(self, application_id: str) -> Optional[Application]: ...

    def find_active_application(self, player_id: str, agent_id: str) -> Optional[Application]: ...

    def list_applications(
        self,
        *,
        player_id: str | None = None,
        agent_id: str | None = None,
        status: ApplicationStatus | None = None,
    ) -> List[Application]: ...

    def compare_and_set_status(
        self,
        application_id: str,
        *,
        expected: ApplicationStatus,
        new_status: ApplicationStatus,
        owner_agent_id: str | None = None,
        updated_at: datetime | None = None,
    ) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _status_filter(status: ApplicationStatus | str | None) -> ApplicationStatus | None:
    if status is None:
        return None
    try:
        return ApplicationStatus(status)
    except ValueError as exc:
        raise InvalidFilter(f"Unknown application status {status!r}") from exc


class ApplicationWorkflow:
    """State machine over :class:`Application` records.

    Applications start ``pending`` and move exactly once to ``accepted`` or
    ``rejected``. Acceptance puts the player on the addressed agent's roster in
    the same atomic write as the status change. Every operation is checked by
    the access gate before anything is read or written on the caller's behalf.
    """

    def __init__(
        self,
        store: ApplicationStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ):
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def submit(
        self,
        principal: Principal,
        player_id: str,
        agent_id: str,
        message: str | None = None,
    ) -> Application:
        enforce(principal, Action.SUBMIT_APPLICATION, ApplicationDraft(player_id, agent_id))

        if self._store.get_agent(agent_id) is None:
            raise NotFound(f"Agent {agent_id} not found")
        player = self._store.get_player(player_id)
        if player is None:
            raise NotFound(f"Player {player_id} not found")
        if player.owner_agent_id == agent_id:
            raise Conflict(
                "Player is already represented by this agent",
                details={"player_id": player_id, "agent_id": agent_id},
            )
        if self._store.find_active_application(player_id, agent_id) is not None:
            raise Conflict(
                "A pending application already exists for this player and agent",
                details={"player_id": player_id, "agent_id": agent_id},
            )

        now = self._clock()
        message = message.strip() if message else None
        application = self._store.create_application(
            Application(
                application_id=self._id_factory(),
                player_id=player_id,
                agent_id=agent_id,
                status=ApplicationStatus.PENDING,
                message=message or None,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Player %s applied to agent %s (application %s)",
            player_id,
            agent_id,
            application.application_id,
        )
        return application

    def get(self, principal: Principal, application_id: str) -> Application:
        action = (
            Action.READ_AGENT_APPLICATIONS
            if principal.role is Role.AGENT
            else Action.READ_PLAYER_APPLICATIONS
        )
        enforce_role(principal, action)
        application = self._require(application_id)
        enforce(principal, action, application)
        return application

    def list_for_player(
        self,
        principal: Principal,
        player_id: str,
        *,
        status: ApplicationStatus | str | None = None,
    ) -> List[Application]:
        """Every application the player submitted, newest first, optionally narrowed by ``status``."""

        enforce(principal, Action.READ_PLAYER_APPLICATIONS, PlayerScope(player_id))
        return self._store.list_applications(player_id=player_id, status=_status_filter(status))

    def list_for_agent(
        self,
        principal: Principal,
        agent_id: str,
        *,
        status: ApplicationStatus | str | None = None,
    ) -> List[Application]:
        """Applications addressed to the agent, newest first.

        The full history is returned unless the caller narrows it by ``status``.
        """

        enforce(principal, Action.READ_AGENT_APPLICATIONS, AgentScope(agent_id))
        return self._store.list_applications(agent_id=agent_id, status=_status_filter(status))

    def resolve(
        self,
        principal: Principal,
        application_id: str,
        decision: ApplicationStatus | str,
    ) -> Application:
        enforce_role(principal, Action.RESOLVE_APPLICATION)
        application = self._require(application_id)

        verdict = authorize(principal, Action.RESOLVE_APPLICATION, application)
        if not verdict:
            if verdict.reason is DenyReason.NOT_PENDING:
                next_status(application.status, decision)
            logger.warning(
                "Denied resolve of %s for %s:%s (%s)",
                application_id,
                principal.role.value,
                principal.id,
                verdict.reason.value,
            )
            raise Forbidden(verdict.message, decision=verdict)

        target = next_status(application.status, decision)
        owner_agent_id = application.agent_id if target is ApplicationStatus.ACCEPTED else None
        applied = self._store.compare_and_set_status(
            application_id,
            expected=ApplicationStatus.PENDING,
            new_status=target,
            owner_agent_id=owner_agent_id,
            updated_at=self._clock(),
        )
        if not applied:
            current = self._require(application_id)
            logger.warning(
                "Application %s was resolved concurrently as %s; %s not applied",
                application_id,
                current.status.value,
                target.value,
            )
            raise AlreadyResolved(
                f"Application is already {current.status.value}",
                current=current.status,
                requested=target,
            )

        logger.info("Application %s %s by %s:%s", application_id, target.value, principal.role.value, principal.id)
        return self._require(application_id)

    def _require(self, application_id: str) -> Application:
        application = self._store.get_application(application_id)
        if application is None:
            raise NotFound(f"Application {application_id} not found")
        return application
