"""SQLite-backed store for agencies, players and applications."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rostermatch.errors import Conflict, NotFound
from rostermatch.models import AgentRecord, Application, ApplicationStatus, PlayerRecord


logger = logging.getLogger(__name__)


class MarketplaceStore:
    """Persistence collaborator used by the workflow and directory services.

    A partial unique index keeps at most one pending application per
    (player, agent) pair, and :meth:`compare_and_set_status` applies a status
    change together with the roster ownership change in one transaction.
    """

    def __init__(self, db_path: Path | str, *, timeout: float = 5.0):
        self._timeout = timeout
        if isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path: Path | str = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
            self._use_uri = False
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=self._timeout, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS agents (
                    id TEXT PRIMARY KEY,
                    agency_name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    public_listing INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL DEFAULT '',
                    owner_agent_id TEXT,
                    positions_json TEXT NOT NULL,
                    birth_date TEXT,
                    contract_status TEXT NOT NULL,
                    nationality TEXT,
                    passport TEXT,
                    marketplace_visible INTEGER NOT NULL DEFAULT 1
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    player_id TEXT NOT NULL,
                    agent_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    message TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS ux_applications_active
                ON applications (player_id, agent_id)
                WHERE status = 'pending'
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS ix_applications_agent ON applications (agent_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS ix_players_owner ON players (owner_agent_id)")
            try:
                conn.execute("ALTER TABLE players ADD COLUMN passport TEXT")
            except sqlite3.OperationalError:
                pass

    # Agents

    def save_agent(self, agent: AgentRecord) -> AgentRecord:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO agents (id, agency_name, slug, public_listing)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        agency_name = excluded.agency_name,
                        slug = excluded.slug,
                        public_listing = excluded.public_listing
                    """,
                    (agent.agent_id, agent.agency_name, agent.slug, int(agent.public_listing)),
                )
        except sqlite3.IntegrityError as exc:
            raise Conflict(f"Agency slug {agent.slug!r} is already taken") from exc
        return agent

    def get_agent(self, agent_id: str) -> Optional[AgentRecord]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        return self._row_to_agent(row) if row is not None else None

    def get_agent_by_slug(self, slug: str) -> Optional[AgentRecord]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM agents WHERE slug = ?", (slug,)).fetchone()
        return self._row_to_agent(row) if row is not None else None

    def list_agents(self) -> List[AgentRecord]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT * FROM agents ORDER BY rowid").fetchall()
        return [self._row_to_agent(row) for row in rows]

    # Players

    def save_player(self, player: PlayerRecord) -> PlayerRecord:
        """Insert or refresh a player profile.

        An existing roster owner is kept when ``player.owner_agent_id`` is unset;
        the stored record is returned.
        """

        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO players (
                    id, name, owner_agent_id, positions_json, birth_date,
                    contract_status, nationality, passport, marketplace_visible
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    owner_agent_id = COALESCE(excluded.owner_agent_id, players.owner_agent_id),
                    positions_json = excluded.positions_json,
                    birth_date = excluded.birth_date,
                    contract_status = excluded.contract_status,
                    nationality = excluded.nationality,
                    passport = excluded.passport,
                    marketplace_visible = excluded.marketplace_visible
                """,
                (
                    player.player_id,
                    player.name,
                    player.owner_agent_id,
                    json.dumps(list(player.positions)),
                    player.birth_date,
                    player.contract_status.value,
                    player.nationality,
                    player.passport,
                    int(player.marketplace_visible),
                ),
            )
        return self.get_player(player.player_id)

    def get_player(self, player_id: str) -> Optional[PlayerRecord]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return self._row_to_player(row) if row is not None else None

    def list_players(self, *, owner_agent_id: str | None = None) -> List[PlayerRecord]:
        query = "SELECT * FROM players"
        params: tuple = ()
        if owner_agent_id is not None:
            query += " WHERE owner_agent_id = ?"
            params = (owner_agent_id,)
        query += " ORDER BY rowid"
        with closing(self._connect()) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_player(row) for row in rows]

    # Applications

    def create_application(self, application: Application) -> Application:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO applications (
                        id, player_id, agent_id, status, message, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        application.application_id,
                        application.player_id,
                        application.agent_id,
                        application.status.value,
                        application.message,
                        application.created_at.isoformat(),
                        application.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise Conflict(
                "A pending application already exists for this player and agent",
                details={"player_id": application.player_id, "agent_id": application.agent_id},
            ) from exc
        return application

    def get_application(self, application_id: str) -> Optional[Application]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM applications WHERE id = ?", (application_id,)).fetchone()
        return self._row_to_application(row) if row is not None else None

    def find_active_application(self, player_id: str, agent_id: str) -> Optional[Application]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM applications WHERE player_id = ? AND agent_id = ? AND status = ?",
                (player_id, agent_id, ApplicationStatus.PENDING.value),
            ).fetchone()
        return self._row_to_application(row) if row is not None else None

    def list_applications(
        self,
        *,
        player_id: str | None = None,
        agent_id: str | None = None,
        status: ApplicationStatus | None = None,
    ) -> List[Application]:
        query = "SELECT * FROM applications"
        conditions: list[str] = []
        params: list[str] = []
        if player_id is not None:
            conditions.append("player_id = ?")
            params.append(player_id)
        if agent_id is not None:
            conditions.append("agent_id = ?")
            params.append(agent_id)
        if status is not None:
            conditions.append("status = ?")
            params.append(ApplicationStatus(status).value)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC, rowid DESC"
        with closing(self._connect()) as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_application(row) for row in rows]

    def compare_and_set_status(
        self,
        application_id: str,
        *,
        expected: ApplicationStatus,
        new_status: ApplicationStatus,
        owner_agent_id: str | None = None,
        updated_at: datetime | None = None,
    ) -> bool:
        """Move an application from ``expected`` to ``new_status`` atomically.

        When ``owner_agent_id`` is given the referenced player is moved onto that
        agent's roster in the same transaction. Returns ``False`` without
        changing anything if the stored status is no longer ``expected``.
        """

        updated_at = updated_at or datetime.now(timezone.utc)
        with closing(self._connect()) as conn, conn:
            conn.execute("BEGIN IMMEDIATE")
            cur = conn.execute(
                "UPDATE applications SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (
                    ApplicationStatus(new_status).value,
                    updated_at.isoformat(),
                    application_id,
                    ApplicationStatus(expected).value,
                ),
            )
            if cur.rowcount != 1:
                return False
            if owner_agent_id is not None:
                cur = conn.execute(
                    """
                    UPDATE players SET owner_agent_id = ?
                    WHERE id = (SELECT player_id FROM applications WHERE id = ?)
                    """,
                    (owner_agent_id, application_id),
                )
                if cur.rowcount != 1:
                    raise NotFound(f"Player referenced by application {application_id} not found")
        return True

    def _row_to_agent(self, row: sqlite3.Row) -> AgentRecord:
        return AgentRecord(
            agent_id=row["id"],
            agency_name=row["agency_name"],
            slug=row["slug"],
            public_listing=bool(row["public_listing"]),
        )

    def _row_to_player(self, row: sqlite3.Row) -> PlayerRecord:
        return PlayerRecord(
            player_id=row["id"],
            name=row["name"] or "",
            owner_agent_id=row["owner_agent_id"],
            positions=json.loads(row["positions_json"]),
            birth_date=row["birth_date"],
            contract_status=row["contract_status"],
            nationality=row["nationality"],
            passport=row["passport"],
            marketplace_visible=bool(row["marketplace_visible"]),
        )

    def _row_to_application(self, row: sqlite3.Row) -> Application:
        return Application(
            application_id=row["id"],
            player_id=row["player_id"],
            agent_id=row["agent_id"],
            status=row["status"],
            message=row["message"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


__all__ = ["MarketplaceStore"]
