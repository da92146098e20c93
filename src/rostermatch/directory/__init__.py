"""Directory query engine."""

from .filtering import (
    DirectoryFilter,
    calculate_age,
    parse_birth_date,
    search,
    validate_filter,
)
from .service import DirectoryService, visible_players

__all__ = [
    "DirectoryFilter",
    "DirectoryService",
    "calculate_age",
    "parse_birth_date",
    "search",
    "validate_filter",
    "visible_players",
]
