"""Filter player records by position category, contract status, name, nationality, passport and age."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterable, List, Optional

from rostermatch.errors import InvalidFilter
from rostermatch.models import ContractStatus, PlayerRecord, PositionCategory
from rostermatch.taxonomy import classify


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryFilter:
    """Directory query constraints; ``None`` fields impose no constraint.

    Age bounds are inclusive.
    """

    category: PositionCategory | None = None
    contract_status: ContractStatus | None = None
    min_age: int | None = None
    max_age: int | None = None
    nationality: str | None = None
    passport: str | None = None
    name_query: str | None = None

    @property
    def has_age_bound(self) -> bool:
        return self.min_age is not None or self.max_age is not None


def _coerce_enum(enum_cls, value, field: str):
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise InvalidFilter(f"Invalid {field} {value!r}; expected one of: {allowed}")


def _check_age(value, field: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFilter(f"{field} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidFilter(f"{field} must not be negative, got {value}")
    return value


def _clean_text(value) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


def validate_filter(criteria: DirectoryFilter | None) -> DirectoryFilter:
    """Return ``criteria`` with enum fields coerced, raising InvalidFilter if malformed."""

    if criteria is None:
        return DirectoryFilter()
    min_age = _check_age(criteria.min_age, "min_age")
    max_age = _check_age(criteria.max_age, "max_age")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise InvalidFilter(f"min_age ({min_age}) must not exceed max_age ({max_age})")
    return replace(
        criteria,
        category=_coerce_enum(PositionCategory, criteria.category, "category"),
        contract_status=_coerce_enum(ContractStatus, criteria.contract_status, "contract_status"),
        min_age=min_age,
        max_age=max_age,
        nationality=_clean_text(criteria.nationality),
        passport=_clean_text(criteria.passport),
        name_query=_clean_text(criteria.name_query),
    )


def parse_birth_date(value: str | date | None) -> Optional[date]:
    """Parse an ISO date or timestamp; anything else yields ``None``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def calculate_age(birth_date: str | date | None, today: date) -> Optional[int]:
    """Whole years between ``birth_date`` and ``today``, or ``None`` if unknown."""

    born = parse_birth_date(birth_date)
    if born is None:
        return None
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def _passes_filter(player: PlayerRecord, criteria: DirectoryFilter, today: date) -> bool:
    if criteria.contract_status is not None and player.contract_status != criteria.contract_status:
        return False

    if criteria.name_query is not None and not _contains(player.name, criteria.name_query):
        return False

    if criteria.nationality is not None and not _contains(player.nationality, criteria.nationality):
        return False

    if criteria.passport is not None and not _contains(player.passport, criteria.passport):
        return False

    if criteria.has_age_bound:
        age = calculate_age(player.birth_date, today)
        if age is None:
            return False
        if criteria.min_age is not None and age < criteria.min_age:
            return False
        if criteria.max_age is not None and age > criteria.max_age:
            return False

    if criteria.category is not None:
        if not any(criteria.category in classify(label) for label in player.positions):
            return False

    return True


def search(
    players: Iterable[PlayerRecord],
    criteria: DirectoryFilter | None = None,
    *,
    today: date,
) -> List[PlayerRecord]:
    """Return the players matching ``criteria`` in their input order."""

    criteria = validate_filter(criteria)
    player_list = list(players)
    selected = [player for player in player_list if _passes_filter(player, criteria, today)]
    logger.debug("Directory search kept %s/%s players", len(selected), len(player_list))
    return selected
