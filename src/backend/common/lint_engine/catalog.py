from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel

from .config import PolicyConfig
from .registry import RuleRegistry, build_registry

# Ensure built-in rules are imported/registered when generating a catalog.
from . import rules as _builtin_rules  # noqa: F401


class RuleCatalogEntry(BaseModel):
    rule_id: str
    rule_title: str
    category: str
    default_severity: str

    module: str
    class_name: str

    config_model: str
    config_schema: Dict[str, Any]


def build_catalog(registry: Optional[RuleRegistry] = None) -> List[RuleCatalogEntry]:
    registry = registry or build_registry(PolicyConfig())
    entries: List[RuleCatalogEntry] = []
    for rule in registry.all():
        cfg_model = type(rule.config)
        entries.append(
            RuleCatalogEntry(
                rule_id=rule.rule_id,
                rule_title=getattr(rule, "rule_title", ""),
                category=rule.category.value,
                default_severity=rule.default_severity.value,
                module=type(rule).__module__,
                class_name=type(rule).__name__,
                config_model=cfg_model.__name__,
                config_schema=cfg_model.model_json_schema(),
            )
        )

    entries.sort(key=lambda e: e.rule_id)
    return entries


def render_catalog(entries: List[RuleCatalogEntry], fmt: str = "yaml") -> str:
    """Serialize catalog entries as YAML or JSON with sorted keys."""
    payload = [entry.model_dump() for entry in entries]
    if fmt == "json":
        return json.dumps(payload, indent=2, sort_keys=True)
    return yaml.safe_dump(payload, sort_keys=True)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="List the registered rollup lint rules with their categories, severities and policy schemas."
    )
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Catalog output format for the rollup lint rules (default: yaml).",
    )
    args = parser.parse_args(argv)
    print(render_catalog(build_catalog(), args.format))


if __name__ == "__main__":
    main()
