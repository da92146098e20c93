"""Access-gated directory queries over the persisted player pool."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Mapping, Protocol

from rostermatch.access import Action, DirectoryEntry, authorize, enforce
from rostermatch.errors import NotFound
from rostermatch.models import AgentRecord, PlayerRecord, Principal, Role

from .filtering import DirectoryFilter, search, validate_filter


logger = logging.getLogger(__name__)


class DirectorySource(Protocol):
    def list_players(self, *, owner_agent_id: str | None = None) -> List[PlayerRecord]: ...

    def list_agents(self) -> List[AgentRecord]: ...

    def get_agent_by_slug(self, slug: str) -> AgentRecord | None: ...


def visible_players(
    principal: Principal,
    players: Iterable[PlayerRecord],
    public_listing: Mapping[str, bool],
) -> List[PlayerRecord]:
    """Drop the records ``principal`` may not see; order is preserved."""

    visible: List[PlayerRecord] = []
    for player in players:
        listed = public_listing.get(player.owner_agent_id or "", False)
        if authorize(principal, Action.VIEW_DIRECTORY_RECORD, DirectoryEntry(player, listed)):
            visible.append(player)
    return visible


class DirectoryService:
    """Runs directory searches scoped to what the caller's role may see.

    Agents search their own roster, clubs search publicly listed players and
    superadmins search everything. Records outside the caller's scope are
    filtered out silently, since the query itself is authorized.
    """

    def __init__(self, source: DirectorySource):
        self._source = source

    def query(
        self,
        principal: Principal,
        criteria: DirectoryFilter | None = None,
        *,
        today: date,
    ) -> List[PlayerRecord]:
        enforce(principal, Action.QUERY_DIRECTORY)
        criteria = validate_filter(criteria)

        if principal.role is Role.AGENT:
            players = self._source.list_players(owner_agent_id=principal.id)
        else:
            players = self._source.list_players()
        return self._run(principal, players, criteria, today)

    def portfolio(
        self,
        principal: Principal,
        slug: str,
        criteria: DirectoryFilter | None = None,
        *,
        today: date,
    ) -> List[PlayerRecord]:
        """Directory query restricted to the roster of the agency published as ``slug``."""

        enforce(principal, Action.QUERY_DIRECTORY)
        criteria = validate_filter(criteria)

        agent = self._source.get_agent_by_slug(slug)
        if agent is None:
            raise NotFound(f"Agency {slug!r} not found")
        players = self._source.list_players(owner_agent_id=agent.agent_id)
        return self._run(principal, players, criteria, today)

    def _run(
        self,
        principal: Principal,
        players: List[PlayerRecord],
        criteria: DirectoryFilter,
        today: date,
    ) -> List[PlayerRecord]:
        listing = {agent.agent_id: agent.public_listing for agent in self._source.list_agents()}
        scoped = visible_players(principal, players, listing)
        logger.debug(
            "Directory scope for %s:%s is %s/%s players",
            principal.role.value,
            principal.id,
            len(scoped),
            len(players),
        )
        return search(scoped, criteria, today=today)
