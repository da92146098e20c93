"""Environment-driven runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "ROSTERMATCH_DB_PATH"
_LOG_LEVEL_ENV = "ROSTERMATCH_LOG_LEVEL"
_SQLITE_TIMEOUT_ENV = "ROSTERMATCH_SQLITE_TIMEOUT"

_DB_PATH_DEFAULT = Path("data") / "rostermatch.sqlite"
_LOG_LEVEL_DEFAULT = "INFO"
_SQLITE_TIMEOUT_DEFAULT = 5.0


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str
    sqlite_timeout: float

    @classmethod
    def from_env(cls) -> "Settings":
        db_path = os.getenv(_DB_PATH_ENV)
        log_level = (os.getenv(_LOG_LEVEL_ENV) or _LOG_LEVEL_DEFAULT).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            logger.warning("Invalid log level for %s: %s; using %s", _LOG_LEVEL_ENV, log_level, _LOG_LEVEL_DEFAULT)
            log_level = _LOG_LEVEL_DEFAULT
        return cls(
            db_path=Path(db_path) if db_path else _DB_PATH_DEFAULT,
            log_level=log_level,
            sqlite_timeout=_env_float(_SQLITE_TIMEOUT_ENV, _SQLITE_TIMEOUT_DEFAULT, clamp_min=0.0),
        )
