"""Classify free-form position labels into canonical categories.

Matching is substring based: a category matches when any of its keywords occurs
inside the case-folded, trimmed label. Because keywords of different
categories can overlap inside one label ("df" inside "midfielder", "st" inside
"stopper"), an occurrence loses when it overlaps a strictly longer occurrence
from another category. Occurrences of equal length never eliminate each other,
so an ambiguous label keeps every category it matches. Named exceptions from
the taxonomy config are applied last.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

from rostermatch.config.taxonomy import KeywordRule, NamedException, iter_exceptions, iter_rules
from rostermatch.errors import InvalidFilter
from rostermatch.models.player import PlayerRecord, PositionCategory


@dataclass(frozen=True)
class KeywordMatch:
    """Single keyword occurrence inside a normalized label."""

    rule: KeywordRule
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.rule.keyword)

    @property
    def category(self) -> PositionCategory:
        return self.rule.category

    def overlaps(self, other: "KeywordMatch") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class Classification:
    label: str
    normalized: str
    categories: frozenset[PositionCategory]
    matches: tuple[KeywordMatch, ...]
    overridden: tuple[KeywordMatch, ...]
    exceptions_applied: tuple[str, ...]


def normalize_label(label: Optional[str]) -> str:
    if not isinstance(label, str):
        return ""
    return label.strip().casefold()


def _find_matches(normalized: str, rules: Iterable[KeywordRule]) -> list[KeywordMatch]:
    matches: list[KeywordMatch] = []
    for rule in rules:
        start = normalized.find(rule.keyword)
        while start != -1:
            matches.append(KeywordMatch(rule=rule, start=start))
            start = normalized.find(rule.keyword, start + 1)
    matches.sort(key=lambda m: (m.start, -m.rule.precedence, m.rule.keyword))
    return matches


def _is_overridden(match: KeywordMatch, matches: Iterable[KeywordMatch]) -> bool:
    for other in matches:
        if other.category is match.category:
            continue
        if other.rule.precedence > match.rule.precedence and other.overlaps(match):
            return True
    return False


def _applies(exception: NamedException, normalized: str, categories: set[PositionCategory]) -> bool:
    return exception.suppressed in categories and all(word in normalized for word in exception.when_all)


@lru_cache(maxsize=4096)
def _classify_normalized(normalized: str) -> tuple[frozenset[PositionCategory], tuple, tuple, tuple]:
    matches = _find_matches(normalized, iter_rules())
    kept = [m for m in matches if not _is_overridden(m, matches)]
    overridden = tuple(m for m in matches if m not in kept)

    categories = {m.category for m in kept}
    applied: list[str] = []
    for exception in iter_exceptions():
        if _applies(exception, normalized, categories):
            categories.discard(exception.suppressed)
            applied.append(exception.name)

    return frozenset(categories), tuple(kept), overridden, tuple(applied)


def explain(label: Optional[str]) -> Classification:
    """Classify ``label`` and keep the evidence used to reach the result."""

    normalized = normalize_label(label)
    categories, kept, overridden, applied = _classify_normalized(normalized)
    return Classification(
        label=label if isinstance(label, str) else "",
        normalized=normalized,
        categories=categories,
        matches=kept,
        overridden=overridden,
        exceptions_applied=applied,
    )


def classify(label: Optional[str]) -> frozenset[PositionCategory]:
    """Return every canonical category ``label`` belongs to (possibly none)."""

    return _classify_normalized(normalize_label(label))[0]


def matches_category(label: Optional[str], category: PositionCategory | str) -> bool:
    if not isinstance(category, PositionCategory):
        try:
            category = PositionCategory(str(category).strip().lower())
        except ValueError as exc:
            raise InvalidFilter(f"Unknown position category {category!r}") from exc
    return category in classify(label)


def classify_positions(positions: Iterable[Optional[str]]) -> frozenset[PositionCategory]:
    """Union of the categories of each position label."""

    result: set[PositionCategory] = set()
    for label in positions:
        result.update(classify(label))
    return frozenset(result)


def category_breakdown(players: Iterable[PlayerRecord]) -> Counter:
    """Count players per category; unclassifiable players are counted under ``None``."""

    counts: Counter = Counter()
    for player in players:
        categories = classify_positions(player.positions)
        if not categories:
            counts[None] += 1
            continue
        for category in categories:
            counts[category] += 1
    return counts
