from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path

import pytest

from rostermatch.models import AgentRecord, PlayerRecord
from rostermatch.persistence import MarketplaceStore
from rostermatch.workflow import ApplicationWorkflow


@pytest.fixture
def store(tmp_path: Path) -> MarketplaceStore:
    store = MarketplaceStore(tmp_path / "rostermatch.sqlite")
    store.save_agent(AgentRecord(agent_id="A1", agency_name="Sur Sports", slug="sur-sports", public_listing=True))
    store.save_agent(AgentRecord(agent_id="A2", agency_name="Norte Group", slug="norte", public_listing=False))
    store.save_player(PlayerRecord(player_id="P1", name="Alan Varela", positions=["Pivote"], birth_date="2001-07-04"))
    store.save_player(PlayerRecord(player_id="P2", name="Valentin Barco", positions=["Lateral Izquierdo"]))
    return store


@pytest.fixture
def workflow(store: MarketplaceStore) -> ApplicationWorkflow:
    start = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    ticks = count()

    def clock() -> datetime:
        return start + timedelta(minutes=next(ticks))

    ids = count(1)
    return ApplicationWorkflow(store, clock=clock, id_factory=lambda: f"app-{next(ids)}")
