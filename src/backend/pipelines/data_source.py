from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Protocol

import yaml

from common.lint_engine.errors import DataUnavailableError
from common.lint_engine.facts import FactModel

logger = logging.getLogger(__name__)

FACT_FILE_SUFFIXES = (".json", ".yaml", ".yml")


class FactProvider(Protocol):
    def fetch_fact_model(self, chain_id: str, at_time: Optional[datetime] = None) -> FactModel:
        """Return the snapshot for `chain_id` as of `at_time` (latest when None)."""
        ...


def get_fact_provider(
    name: str,
    *,
    fixtures_dir: Optional[Path] = None,
    facts_file: Optional[Path] = None,
) -> FactProvider:
    """Resolve a fact provider implementation by name (fixtures|file)."""
    source = (name or "").strip().lower()
    if source in ("fixtures", ""):
        if fixtures_dir is None:
            raise ValueError("The fixtures fact provider requires a fixtures directory.")
        return FixturesFactProvider(fixtures_dir)
    if source == "file":
        if facts_file is None:
            raise ValueError("The file fact provider requires a facts file.")
        return FileFactProvider(facts_file)
    raise ValueError(f"Unknown fact provider '{name}' (expected 'fixtures' or 'file').")


def load_fact_documents(path: Path, chain_id: str) -> List[dict[str, Any]]:
    """Read one snapshot mapping, or a `snapshots:` list of them, from a JSON/YAML file."""
    if not path.exists():
        raise DataUnavailableError(chain_id, f"facts file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        raw = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DataUnavailableError(chain_id, f"could not read {path}: {exc}") from exc

    if isinstance(raw, dict) and "snapshots" in raw:
        documents = raw.get("snapshots") or []
    else:
        documents = [raw]
    if not isinstance(documents, list) or not all(isinstance(doc, dict) for doc in documents):
        raise DataUnavailableError(chain_id, f"{path} does not contain fact snapshot mappings")
    return documents


def select_snapshot(
    snapshots: List[FactModel],
    chain_id: str,
    at_time: Optional[datetime],
) -> FactModel:
    candidates = [s for s in snapshots if s.chain_id == chain_id]
    if at_time is not None:
        if at_time.tzinfo is None:
            at_time = at_time.replace(tzinfo=timezone.utc)
        candidates = [s for s in candidates if s.observed_at <= at_time]
    if not candidates:
        when = f" at or before {at_time.isoformat()}" if at_time is not None else ""
        raise DataUnavailableError(chain_id, f"no snapshot{when}")
    return max(candidates, key=lambda s: s.observed_at)


class FixturesFactProvider:
    """Snapshots stored as `<root>/<chain_id>/*.json|yaml|yml`, one snapshot per file."""

    def __init__(self, fixtures_root: Path) -> None:
        self._fixtures_root = fixtures_root

    def fetch_fact_model(self, chain_id: str, at_time: Optional[datetime] = None) -> FactModel:
        chain_dir = self._fixtures_root / chain_id
        if not chain_dir.is_dir():
            raise DataUnavailableError(chain_id, f"no fixtures directory at {chain_dir}")

        snapshots: List[FactModel] = []
        for path in sorted(chain_dir.iterdir()):
            if path.suffix.lower() not in FACT_FILE_SUFFIXES:
                continue
            for doc in load_fact_documents(path, chain_id):
                snapshots.append(FactModel.from_dict(doc))
        logger.debug("Loaded %d snapshots for %s from %s", len(snapshots), chain_id, chain_dir)
        return select_snapshot(snapshots, chain_id, at_time)


class FileFactProvider:
    def __init__(self, path: Path) -> None:
        self._path = path

    def fetch_fact_model(self, chain_id: str, at_time: Optional[datetime] = None) -> FactModel:
        snapshots = [FactModel.from_dict(doc) for doc in load_fact_documents(self._path, chain_id)]
        return select_snapshot(snapshots, chain_id, at_time)
