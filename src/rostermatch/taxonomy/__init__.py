"""Position taxonomy classifier."""

from .classifier import (
    Classification,
    KeywordMatch,
    category_breakdown,
    classify,
    classify_positions,
    explain,
    matches_category,
    normalize_label,
)

__all__ = [
    "Classification",
    "KeywordMatch",
    "category_breakdown",
    "classify",
    "classify_positions",
    "explain",
    "matches_category",
    "normalize_label",
]
