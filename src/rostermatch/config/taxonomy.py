"""Keyword rules mapping free-form position labels to canonical categories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from rostermatch.models.player import PositionCategory


@dataclass(frozen=True)
class KeywordRule:
    keyword: str
    category: PositionCategory
    precedence: int


@dataclass(frozen=True)
class NamedException:
    """Suppresses ``suppressed`` for labels containing every keyword in ``when_all``."""

    name: str
    when_all: Tuple[str, ...]
    suppressed: PositionCategory
    note: str = ""


_CATEGORY_KEYWORDS: Dict[PositionCategory, Tuple[str, ...]] = {
    PositionCategory.GOALKEEPER: ("portero", "arquero", "goalkeeper", "gk"),
    PositionCategory.DEFENDER: (
        "defensa",
        "defender",
        "central",
        "lateral",
        "carrilero",
        "libero",
        "stopper",
        "df",
        "cb",
        "rb",
        "lb",
    ),
    PositionCategory.MIDFIELDER: (
        "mediocampista",
        "medio",
        "midfielder",
        "volante",
        "enganche",
        "pivote",
        "interior",
        "mco",
        "mcd",
        "mc",
        "cm",
        "dm",
    ),
    PositionCategory.FORWARD: (
        "delantero",
        "forward",
        "atacante",
        "punta",
        "extremo",
        "ariete",
        "wing",
        "st",
        "fw",
        "rw",
        "lw",
    ),
}

# Longer keywords are more specific; precedence is used to order matches.
_KEYWORD_RULES: Tuple[KeywordRule, ...] = tuple(
    KeywordRule(keyword=keyword, category=category, precedence=len(keyword))
    for category, keywords in _CATEGORY_KEYWORDS.items()
    for keyword in keywords
)

VOLANTE_CENTRAL = NamedException(
    name="volante-central",
    when_all=("volante", "central"),
    suppressed=PositionCategory.DEFENDER,
    note="'Volante Central' is a central midfielder, not a centre back.",
)

_NAMED_EXCEPTIONS: Tuple[NamedException, ...] = (VOLANTE_CENTRAL,)


def iter_rules() -> Iterable[KeywordRule]:
    """Return an iterator over every keyword rule."""

    return iter(_KEYWORD_RULES)


def iter_exceptions() -> Iterable[NamedException]:
    return iter(_NAMED_EXCEPTIONS)


def get_keywords(category: PositionCategory | str) -> Tuple[str, ...]:
    """Keywords for a category, raising KeyError if it is not canonical."""

    try:
        key = PositionCategory(category.lower() if isinstance(category, str) else category)
    except ValueError as exc:
        raise KeyError(f"No keyword rules configured for category={category!r}") from exc
    return _CATEGORY_KEYWORDS[key]
