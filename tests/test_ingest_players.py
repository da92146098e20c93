from pathlib import Path

import pytest

from rostermatch.config_loader import MappingProfile
from rostermatch.ingest import (
    load_player_csv,
    load_records_from_csv,
    parse_contract_status,
    split_positions,
)
from rostermatch.models import ContractStatus


def _write(tmp_path: Path, text: str, name: str = "players.csv") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_load_records_from_default_columns(tmp_path):
    path = _write(
        tmp_path,
        "id,name,position,birth_date,contract_status,nationality,passport,agent_id,marketplace_visible\n"
        "P1,Alan Varela,Volante Central,2001-07-04,Libre,Argentina,Italia,A1,si\n"
        "P2,Valentin Barco,Lateral Izquierdo / Extremo,2004-07-23,cedido,Argentina,,,\n"
        "P3,Oculto,Defensa,,contracted,,,A1,no\n",
    )

    records, report = load_records_from_csv(path)

    assert [r.player_id for r in records] == ["P1", "P2", "P3"]
    assert report.total_rows == 3
    assert report.imported == 3
    assert report.skipped_rows == []
    assert records[0].contract_status is ContractStatus.FREE
    assert records[0].owner_agent_id == "A1"
    assert records[0].passport == "Italia"
    assert records[1].passport is None
    assert records[1].positions == ["Lateral Izquierdo", "Extremo"]
    assert records[1].contract_status is ContractStatus.LOANED
    assert records[1].owner_agent_id is None
    assert records[1].marketplace_visible is True
    assert records[2].birth_date is None
    assert records[2].marketplace_visible is False


def test_bad_rows_are_reported_not_fatal(tmp_path):
    path = _write(
        tmp_path,
        "id,name,position,contract_status\n"
        ",Sin Id,Portero,free\n"
        "P2,Retirado,Delantero,retired\n"
        "P3,Bien,Delantero,\n",
    )

    records, report = load_records_from_csv(path)

    assert [r.player_id for r in records] == ["P3"]
    assert records[0].contract_status is ContractStatus.FREE
    assert report.imported == 1
    assert [line for line, _ in report.skipped_rows] == [2, 3]
    assert "missing player id" in report.skipped_rows[0][1]
    assert "retired" in report.skipped_rows[1][1]


def test_custom_mapping_combines_columns(tmp_path):
    path = _write(
        tmp_path,
        "Codigo,Nombre,Apellido,Puesto\n"
        "X1,Enzo,Perez,Mediocampista\n",
    )

    rows = load_player_csv(path, mapping={"player_id": "Codigo", "name": "Nombre|Apellido", "position": "Puesto"})

    assert rows[0].raw_id == "X1"
    assert rows[0].raw_name == "Enzo Perez"
    assert rows[0].raw_position == "Mediocampista"


def test_utf8_bom_header(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffid,position\nP1,Arquero\n".encode("utf-8"))

    records, _ = load_records_from_csv(path)

    assert records[0].player_id == "P1"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Central/Lateral", ["Central", "Lateral"]),
        ("Pivote, Interior ; Enganche", ["Pivote", "Interior", "Enganche"]),
        ("", []),
        (None, []),
    ],
)
def test_split_positions(raw, expected):
    assert split_positions(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ContractStatus.FREE),
        ("  ", ContractStatus.FREE),
        ("Préstamo", ContractStatus.LOANED),
        ("CONTRATADO", ContractStatus.CONTRACTED),
        ("free agent", ContractStatus.FREE),
        ("unknown", None),
    ],
)
def test_parse_contract_status(raw, expected):
    assert parse_contract_status(raw) is expected


def test_mapping_profile_round_trip(tmp_path):
    path = tmp_path / "profile.json"
    MappingProfile({"name": "Nombre|Apellido"}).save(path)

    assert MappingProfile.load(path).players_mapping == {"name": "Nombre|Apellido"}
