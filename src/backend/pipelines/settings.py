from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()

_DATA_SOURCES = ("fixtures", "file")


@dataclass(frozen=True)
class LintSettings:
    data_source: str
    fixtures_dir: Optional[Path]
    policy_path: Optional[Path]
    log_level: str
    max_workers: Optional[int]


def get_lint_settings() -> LintSettings:
    """
    Load process settings from environment variables (a local .env is honoured).

    Reads:
      ROLLUP_LINT_DATA_SOURCE, ROLLUP_LINT_FIXTURES_DIR, ROLLUP_LINT_POLICY_PATH,
      ROLLUP_LINT_LOG_LEVEL, ROLLUP_LINT_MAX_WORKERS
    """
    data_source = os.getenv("ROLLUP_LINT_DATA_SOURCE", "fixtures").strip().lower()
    if data_source not in _DATA_SOURCES:
        raise ValueError(f"ROLLUP_LINT_DATA_SOURCE must be one of {', '.join(_DATA_SOURCES)}.")

    log_level = os.getenv("ROLLUP_LINT_LOG_LEVEL", "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"ROLLUP_LINT_LOG_LEVEL is not a logging level: {log_level}")

    return LintSettings(
        data_source=data_source,
        fixtures_dir=_optional_path("ROLLUP_LINT_FIXTURES_DIR"),
        policy_path=_optional_path("ROLLUP_LINT_POLICY_PATH"),
        log_level=log_level,
        max_workers=_optional_positive_int("ROLLUP_LINT_MAX_WORKERS"),
    )


def _optional_path(name: str) -> Optional[Path]:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


def _optional_positive_int(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be > 0")
    return parsed
