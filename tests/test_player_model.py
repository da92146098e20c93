from datetime import date

import pytest
from pydantic import ValidationError

from rostermatch.models import AgentRecord, ContractStatus, PlayerRecord, Principal, Role


def test_player_record_is_frozen():
    record = PlayerRecord(player_id="p1", name="Test Player", positions=["Volante Central"])

    assert record.positions == ["Volante Central"]
    assert record.contract_status is ContractStatus.FREE
    assert record.owner_agent_id is None

    with pytest.raises((TypeError, ValidationError)):
        record.owner_agent_id = "a1"  # type: ignore[misc]


def test_player_record_keeps_birth_date_as_iso_string():
    record = PlayerRecord(player_id="p1", birth_date=date(2004, 3, 9))
    assert record.birth_date == "2004-03-09"

    blank = PlayerRecord(player_id="p2", birth_date="   ", owner_agent_id="")
    assert blank.birth_date is None
    assert blank.owner_agent_id is None


def test_player_record_accepts_unparseable_birth_date():
    record = PlayerRecord(player_id="p1", birth_date="not a date")
    assert record.birth_date == "not a date"


def test_player_record_rejects_unknown_contract_status():
    with pytest.raises(ValidationError):
        PlayerRecord(player_id="p1", contract_status="retired")


def test_agent_public_listing_is_opt_in():
    agent = AgentRecord(agent_id="a1", agency_name="Sur", slug="sur")
    assert agent.public_listing is False


def test_principal_parse():
    principal = Principal.parse("Agent:a1")
    assert principal == Principal(id="a1", role=Role.AGENT)

    with pytest.raises(ValueError):
        Principal.parse("a1")
    with pytest.raises(ValueError):
        Principal.parse("coach:c1")
