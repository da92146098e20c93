import sqlite3
from contextlib import closing
from datetime import datetime, timezone

import pytest

from rostermatch.errors import Conflict, NotFound
from rostermatch.ingest import load_records_from_csv
from rostermatch.models import (
    AgentRecord,
    Application,
    ApplicationStatus,
    ContractStatus,
    PlayerRecord,
    Principal,
    Role,
)
from rostermatch.persistence import MarketplaceStore

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 10, 1, 13, 0, tzinfo=timezone.utc)


def _application(application_id, player_id="P1", agent_id="A1", created_at=T0, status=ApplicationStatus.PENDING):
    return Application(
        application_id=application_id,
        player_id=player_id,
        agent_id=agent_id,
        status=status,
        created_at=created_at,
        updated_at=created_at,
    )


def test_schema_is_idempotent(tmp_path):
    path = tmp_path / "nested" / "store.sqlite"
    MarketplaceStore(path).save_agent(AgentRecord(agent_id="A1", agency_name="Sur", slug="sur"))

    reopened = MarketplaceStore(path)

    assert reopened.get_agent("A1").agency_name == "Sur"


def test_agent_round_trip(store):
    assert store.get_agent("A1").public_listing is True
    assert store.get_agent_by_slug("norte").agent_id == "A2"
    assert store.get_agent("missing") is None
    assert store.get_agent_by_slug("missing") is None
    assert [agent.agent_id for agent in store.list_agents()] == ["A1", "A2"]


def test_save_agent_updates_in_place(store):
    store.save_agent(AgentRecord(agent_id="A2", agency_name="Norte Group", slug="norte", public_listing=True))

    assert store.get_agent("A2").public_listing is True
    assert len(store.list_agents()) == 2


def test_duplicate_slug_is_a_conflict(store):
    with pytest.raises(Conflict):
        store.save_agent(AgentRecord(agent_id="A3", agency_name="Copycat", slug="sur-sports"))


def test_player_round_trip(store):
    store.save_player(
        PlayerRecord(
            player_id="P3",
            name="Gonzalo Plata",
            owner_agent_id="A1",
            positions=["Extremo derecho", "Media Punta"],
            birth_date="2000-11-01",
            contract_status=ContractStatus.LOANED,
            nationality="Ecuador",
            passport="Ecuador",
            marketplace_visible=False,
        )
    )

    player = store.get_player("P3")

    assert player.positions == ["Extremo derecho", "Media Punta"]
    assert player.contract_status is ContractStatus.LOANED
    assert player.marketplace_visible is False
    assert player.passport == "Ecuador"
    assert [p.player_id for p in store.list_players(owner_agent_id="A1")] == ["P3"]
    assert [p.player_id for p in store.list_players()] == ["P1", "P2", "P3"]
    assert store.get_player("missing") is None


def test_second_pending_application_is_a_conflict(store):
    store.create_application(_application("app-1"))

    with pytest.raises(Conflict):
        store.create_application(_application("app-2"))


def test_terminal_applications_do_not_block_a_new_one(store):
    store.create_application(_application("app-1"))
    assert store.compare_and_set_status("app-1", expected=ApplicationStatus.PENDING, new_status=ApplicationStatus.REJECTED)

    store.create_application(_application("app-2", created_at=T1))

    assert store.find_active_application("P1", "A1").application_id == "app-2"


def test_list_applications_newest_first_with_filters(store):
    store.create_application(_application("app-1", created_at=T0))
    store.create_application(_application("app-2", agent_id="A2", created_at=T1))
    store.create_application(_application("app-3", player_id="P2", created_at=T0))

    assert [a.application_id for a in store.list_applications(player_id="P1")] == ["app-2", "app-1"]
    assert [a.application_id for a in store.list_applications(agent_id="A1")] == ["app-3", "app-1"]
    assert store.list_applications(agent_id="A1", status=ApplicationStatus.ACCEPTED) == []


def test_compare_and_set_accept_moves_player(store):
    store.create_application(_application("app-1"))

    applied = store.compare_and_set_status(
        "app-1",
        expected=ApplicationStatus.PENDING,
        new_status=ApplicationStatus.ACCEPTED,
        owner_agent_id="A1",
        updated_at=T1,
    )

    application = store.get_application("app-1")
    assert applied is True
    assert application.status is ApplicationStatus.ACCEPTED
    assert application.updated_at == T1
    assert application.created_at == T0
    assert store.get_player("P1").owner_agent_id == "A1"


def test_compare_and_set_refuses_stale_expectation(store):
    store.create_application(_application("app-1"))
    store.compare_and_set_status("app-1", expected=ApplicationStatus.PENDING, new_status=ApplicationStatus.REJECTED)

    applied = store.compare_and_set_status(
        "app-1",
        expected=ApplicationStatus.PENDING,
        new_status=ApplicationStatus.ACCEPTED,
        owner_agent_id="A1",
    )

    assert applied is False
    assert store.get_application("app-1").status is ApplicationStatus.REJECTED
    assert store.get_player("P1").owner_agent_id is None


def test_compare_and_set_unknown_application(store):
    assert not store.compare_and_set_status(
        "nope", expected=ApplicationStatus.PENDING, new_status=ApplicationStatus.REJECTED
    )


def test_compare_and_set_rolls_back_when_player_is_missing(store):
    store.create_application(_application("app-1", player_id="ghost"))

    with pytest.raises(NotFound):
        store.compare_and_set_status(
            "app-1",
            expected=ApplicationStatus.PENDING,
            new_status=ApplicationStatus.ACCEPTED,
            owner_agent_id="A1",
        )

    assert store.get_application("app-1").status is ApplicationStatus.PENDING


def test_save_player_keeps_owner_when_unset(store):
    store.save_player(PlayerRecord(player_id="P1", name="Alan Varela", owner_agent_id="A1", positions=["Pivote"]))

    saved = store.save_player(PlayerRecord(player_id="P1", name="Alan Varela", positions=["Volante Central"]))

    assert saved.owner_agent_id == "A1"
    assert saved.positions == ["Volante Central"]
    assert store.get_player("P1").owner_agent_id == "A1"


def test_save_player_with_explicit_owner_replaces_it(store):
    store.save_player(PlayerRecord(player_id="P1", owner_agent_id="A1"))

    assert store.save_player(PlayerRecord(player_id="P1", owner_agent_id="A2")).owner_agent_id == "A2"


def test_reimport_keeps_roster_from_accepted_application(workflow, store, tmp_path):
    player = Principal(id="P1", role=Role.PLAYER)
    agent = Principal(id="A1", role=Role.AGENT)
    application = workflow.submit(player, "P1", "A1")
    workflow.resolve(agent, application.application_id, "accepted")
    csv_path = tmp_path / "refresh.csv"
    csv_path.write_text(
        "id,name,position,birth_date,contract_status\nP1,Alan Varela,Pivote,2001-07-04,free\n",
        encoding="utf-8",
    )

    records, _ = load_records_from_csv(csv_path)
    for record in records:
        store.save_player(record)

    refreshed = store.get_player("P1")
    assert refreshed.owner_agent_id == "A1"
    assert refreshed.birth_date == "2001-07-04"
    assert [p.player_id for p in store.list_players(owner_agent_id="A1")] == ["P1"]


def test_passport_column_added_to_existing_database(tmp_path):
    path = tmp_path / "legacy.sqlite"
    with closing(sqlite3.connect(path)) as conn, conn:
        conn.execute(
            """
            CREATE TABLE players (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                owner_agent_id TEXT,
                positions_json TEXT NOT NULL,
                birth_date TEXT,
                contract_status TEXT NOT NULL,
                nationality TEXT,
                marketplace_visible INTEGER NOT NULL DEFAULT 1
            )
            """
        )
        conn.execute(
            "INSERT INTO players (id, positions_json, contract_status) VALUES ('P1', '[\"Portero\"]', 'free')"
        )

    store = MarketplaceStore(path)

    assert store.get_player("P1").passport is None
    assert store.save_player(PlayerRecord(player_id="P1", passport="Italia")).passport == "Italia"
