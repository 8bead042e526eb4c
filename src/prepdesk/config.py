"""Runtime configuration for import, export and sync commands."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Mapping


DEFAULT_DB_PATH = ".prepdesk.db"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool(*, name: str, raw_value: str) -> bool:
    value = raw_value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of: 0, 1, true, false, yes, no, on, off")


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Validated settings shared by the command-line entrypoints."""

    db_path: Path
    casefold_names: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ImportSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        db_path_raw = source.get("PREPDESK_DB_PATH", DEFAULT_DB_PATH).strip()
        if not db_path_raw:
            raise ValueError("PREPDESK_DB_PATH cannot be empty")

        casefold_names = _parse_bool(
            name="PREPDESK_CASEFOLD_NAMES",
            raw_value=source.get("PREPDESK_CASEFOLD_NAMES", "false"),
        )

        log_level = source.get("PREPDESK_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"PREPDESK_LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVELS))}")

        return cls(db_path=Path(db_path_raw), casefold_names=casefold_names, log_level=log_level)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, level.upper(), logging.INFO))
