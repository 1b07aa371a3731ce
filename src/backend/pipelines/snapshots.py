from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol


class SnapshotStore(Protocol):
    def save_json(
        self,
        *,
        chain_id: str,
        observed_at: datetime,
        name: str,
        payload: dict[str, Any],
    ) -> Path:
        ...


def _timestamp_dirname(observed_at: datetime) -> str:
    # Colons are not portable in directory names.
    return observed_at.strftime("%Y-%m-%dT%H%M%SZ")


@dataclass(frozen=True)
class LocalSnapshotStore:
    """Keeps facts and reports on disk so a run can be replayed or audited later."""

    root_dir: Path

    def save_json(
        self,
        *,
        chain_id: str,
        observed_at: datetime,
        name: str,
        payload: dict[str, Any],
    ) -> Path:
        out_dir = self.root_dir / chain_id / _timestamp_dirname(observed_at)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"{name}.json"
        out_path.write_text(json.dumps(payload, indent=2, sort_keys=True))
        return out_path
