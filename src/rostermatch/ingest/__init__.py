"""Input adapters that normalize raw player exports."""

from .players import (
    DEFAULT_PLAYERS_MAPPING,
    ImportReport,
    PlayerRow,
    load_player_csv,
    load_records_from_csv,
    parse_contract_status,
    rows_to_records,
    split_positions,
)

__all__ = [
    "DEFAULT_PLAYERS_MAPPING",
    "ImportReport",
    "PlayerRow",
    "load_player_csv",
    "load_records_from_csv",
    "parse_contract_status",
    "rows_to_records",
    "split_positions",
]
