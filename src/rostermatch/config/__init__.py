"""Configuration helpers for the position taxonomy and runtime settings."""

from .settings import Settings
from .taxonomy import (
    VOLANTE_CENTRAL,
    KeywordRule,
    NamedException,
    get_keywords,
    iter_exceptions,
    iter_rules,
)

__all__ = [
    "KeywordRule",
    "NamedException",
    "Settings",
    "VOLANTE_CENTRAL",
    "get_keywords",
    "iter_exceptions",
    "iter_rules",
]
