"""Load player CSV exports and emit canonical player records."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from rostermatch.models import ContractStatus, PlayerRecord


logger = logging.getLogger(__name__)

DEFAULT_PLAYERS_MAPPING = {
    "player_id": "id",
    "name": "name",
    "position": "position",
    "birth_date": "birth_date",
    "contract_status": "contract_status",
    "nationality": "nationality",
    "passport": "passport",
    "owner_agent_id": "agent_id",
    "marketplace_visible": "marketplace_visible",
}

_POSITION_SPLIT = re.compile(r"\s*[/,;|]\s*")

_CONTRACT_STATUS_ALIASES: dict[str, ContractStatus] = {
    "free": ContractStatus.FREE,
    "libre": ContractStatus.FREE,
    "free agent": ContractStatus.FREE,
    "agente libre": ContractStatus.FREE,
    "loaned": ContractStatus.LOANED,
    "loan": ContractStatus.LOANED,
    "cedido": ContractStatus.LOANED,
    "prestamo": ContractStatus.LOANED,
    "préstamo": ContractStatus.LOANED,
    "contracted": ContractStatus.CONTRACTED,
    "contratado": ContractStatus.CONTRACTED,
    "signed": ContractStatus.CONTRACTED,
    "under contract": ContractStatus.CONTRACTED,
}


class PlayerRow(BaseModel):
    raw_id: Optional[str] = None
    raw_name: str = ""
    raw_position: Optional[str] = None
    raw_birth_date: Optional[str] = None
    raw_contract_status: Optional[str] = None
    raw_nationality: Optional[str] = None
    raw_passport: Optional[str] = None
    raw_owner_agent_id: Optional[str] = None
    raw_marketplace_visible: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "PlayerRow":
        def extract(spec: Optional[str | Sequence[str]]) -> Optional[str]:
            if spec is None:
                return None
            if isinstance(spec, str):
                value = row.get(spec)
                return value.strip() if value is not None else None
            parts = [row.get(col, "").strip() for col in spec if row.get(col)]
            return " ".join(parts) if parts else None

        def parse_spec(key: str) -> Optional[str | Sequence[str]]:
            spec = mapping.get(key)
            if isinstance(spec, str) and "|" in spec:
                return tuple(part.strip() for part in spec.split("|"))
            return spec

        return cls(
            raw_id=extract(parse_spec("player_id")),
            raw_name=extract(parse_spec("name")) or "",
            raw_position=extract(parse_spec("position")),
            raw_birth_date=extract(parse_spec("birth_date")),
            raw_contract_status=extract(parse_spec("contract_status")),
            raw_nationality=extract(parse_spec("nationality")),
            raw_passport=extract(parse_spec("passport")),
            raw_owner_agent_id=extract(parse_spec("owner_agent_id")),
            raw_marketplace_visible=extract(parse_spec("marketplace_visible")),
        )


@dataclass
class ImportReport:
    total_rows: int = 0
    imported: int = 0
    skipped_rows: List[Tuple[int, str]] = field(default_factory=list)


def load_player_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[PlayerRow]:
    mapping = {**DEFAULT_PLAYERS_MAPPING, **(mapping or {})}
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        rows = [PlayerRow.from_mapping(row, mapping) for row in reader]
    return rows


def split_positions(raw_position: Optional[str]) -> List[str]:
    if not raw_position:
        return []
    return [part for part in _POSITION_SPLIT.split(raw_position.strip()) if part]


def parse_contract_status(value: Optional[str]) -> Optional[ContractStatus]:
    """Map English/Spanish contract labels to a status; blank means free."""

    if value is None or not value.strip():
        return ContractStatus.FREE
    return _CONTRACT_STATUS_ALIASES.get(value.strip().lower())


def _parse_flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "t", "yes", "y", "si", "sí"}:
        return True
    if text in {"0", "false", "f", "no", "n"}:
        return False
    return None


def rows_to_records(rows: Sequence[PlayerRow]) -> tuple[List[PlayerRecord], ImportReport]:
    records: List[PlayerRecord] = []
    report = ImportReport(total_rows=len(rows))
    for line, row in enumerate(rows, start=2):
        if not row.raw_id:
            report.skipped_rows.append((line, "missing player id"))
            logger.warning("Skipping row %s: missing player id", line)
            continue
        contract_status = parse_contract_status(row.raw_contract_status)
        if contract_status is None:
            report.skipped_rows.append((line, f"unknown contract status {row.raw_contract_status!r}"))
            logger.warning("Skipping row %s: unknown contract status %r", line, row.raw_contract_status)
            continue
        visible = _parse_flag(row.raw_marketplace_visible)
        try:
            record = PlayerRecord(
                player_id=row.raw_id,
                name=row.raw_name,
                owner_agent_id=row.raw_owner_agent_id,
                positions=split_positions(row.raw_position),
                birth_date=row.raw_birth_date,
                contract_status=contract_status,
                nationality=row.raw_nationality or None,
                passport=row.raw_passport or None,
                marketplace_visible=True if visible is None else visible,
            )
        except ValidationError as exc:
            report.skipped_rows.append((line, str(exc)))
            logger.warning("Skipping row %s: %s", line, exc)
            continue
        records.append(record)
    report.imported = len(records)
    return records, report


def load_records_from_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> tuple[List[PlayerRecord], ImportReport]:
    return rows_to_records(load_player_csv(path, mapping=mapping))
