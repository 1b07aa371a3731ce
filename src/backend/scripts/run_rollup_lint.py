from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


_ensure_backend_on_path()

from common.lint_engine import (  # noqa: E402
    Category,
    EvaluationOptions,
    LintEngineError,
    PolicyConfig,
    Report,
    Severity,
    build_registry,
    evaluate,
    load_policy_config,
)
from common.lint_engine.facts import FactModel  # noqa: E402
from pipelines.data_source import get_fact_provider  # noqa: E402
from pipelines.settings import get_lint_settings  # noqa: E402
from pipelines.snapshots import LocalSnapshotStore  # noqa: E402

logger = logging.getLogger("rollup_lint")

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


def _render_markdown(report: Report, facts: FactModel) -> str:
    worst = report.worst_severity()
    lines = [
        f"# Rollup Lint {facts.chain_id}",
        "",
        f"Observed at: {facts.observed_at.isoformat()}",
        f"Snapshot: {facts.snapshot_ref()}",
        f"Rules evaluated: {report.rules_evaluated}",
        f"Worst severity: {worst.value if worst else 'none'}",
        "",
        "## Totals",
    ]
    for severity, count in report.summary.by_severity.items():
        lines.append(f"- {severity}: {count}")
    for category, findings in report.by_category().items():
        lines.append("")
        lines.append(f"## {category.value}")
        for finding in findings:
            lines.append("")
            lines.append(f"### {finding.rule_id} [{finding.severity.value}] {finding.status.value}")
            if finding.rule_title:
                lines.append(finding.rule_title)
            lines.append(f"- Detail: {finding.detail}")
    return "\n".join(lines) + "\n"


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _import_plugins(modules: Sequence[str]) -> None:
    # Plugin modules register their rule classes with @register_rule on import.
    for module in modules:
        importlib.import_module(module)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate a rollup deployment's facts against the configuration lint rules."
    )
    parser.add_argument("--chain-id", default=None, help="Chain id to evaluate.")
    parser.add_argument(
        "--at",
        default=None,
        help="Evaluate the latest snapshot at or before this ISO-8601 time (default: latest).",
    )
    parser.add_argument(
        "--facts-file",
        default=None,
        help="Read facts from a single JSON/YAML file instead of a fixtures directory.",
    )
    parser.add_argument(
        "--fixtures-dir",
        default=None,
        help="Fixtures root containing <chain-id>/*.json|yaml snapshots (env: ROLLUP_LINT_FIXTURES_DIR).",
    )
    parser.add_argument(
        "--policy",
        default=None,
        help="Policy file (YAML/JSON) with per-rule constants (env: ROLLUP_LINT_POLICY_PATH).",
    )
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in Category],
        default=None,
        help="Only evaluate rules in this category (repeatable).",
    )
    parser.add_argument(
        "--min-severity",
        choices=[s.value for s in Severity],
        default=Severity.INFO.value,
        help="Drop findings below this severity from the report (default: info).",
    )
    parser.add_argument(
        "--fail-on",
        choices=[s.value for s in Severity],
        default=Severity.HIGH.value,
        help="Exit non-zero when a finding is at or above this severity (default: high).",
    )
    parser.add_argument("--parallel", action="store_true", help="Evaluate rules concurrently.")
    parser.add_argument("--max-workers", type=int, default=None, help="Worker threads for --parallel.")
    parser.add_argument("--timeout", type=float, default=None, help="Abandon the run after this many seconds.")
    parser.add_argument(
        "--plugin",
        action="append",
        default=[],
        help="Import this module before building the registry, so its rules register (repeatable).",
    )
    parser.add_argument(
        "--format",
        choices=("json", "markdown", "both"),
        default="json",
        help="Report format (default: json).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write report files here instead of printing JSON to stdout.",
    )
    parser.add_argument(
        "--snapshot-dir",
        default=None,
        help="Also store the facts and report under this directory for audit.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_lint_settings()
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    logging.basicConfig(
        level=settings.log_level,
        format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    facts_file = Path(args.facts_file).resolve() if args.facts_file else None
    fixtures_dir = Path(args.fixtures_dir).resolve() if args.fixtures_dir else settings.fixtures_dir
    policy_path = Path(args.policy).resolve() if args.policy else settings.policy_path
    source = "file" if facts_file is not None else settings.data_source

    try:
        at_time = _parse_time(args.at)
    except ValueError:
        print(f"error: --at is not an ISO-8601 time: {args.at}", file=sys.stderr)
        return EXIT_ERROR

    try:
        _import_plugins(args.plugin)
        policy = load_policy_config(policy_path) if policy_path else PolicyConfig()
        registry = build_registry(policy)

        provider = get_fact_provider(source, fixtures_dir=fixtures_dir, facts_file=facts_file)
        chain_id = args.chain_id
        if chain_id is None:
            if facts_file is None:
                raise ValueError("--chain-id is required unless --facts-file is given.")
            chain_id = _single_chain_id(facts_file)
        facts = provider.fetch_fact_model(chain_id, at_time)

        options = EvaluationOptions(
            categories=frozenset(Category(c) for c in args.category) if args.category else None,
            min_severity=Severity(args.min_severity),
            parallel=args.parallel,
            max_workers=args.max_workers or settings.max_workers,
            timeout_seconds=args.timeout,
        )
        report = evaluate(facts, registry, options)
    except (LintEngineError, ValueError, ImportError) as exc:
        logger.error("Evaluation failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR

    _write_outputs(args, report, facts)

    if args.snapshot_dir:
        store = LocalSnapshotStore(root_dir=Path(args.snapshot_dir).resolve())
        store.save_json(
            chain_id=facts.chain_id,
            observed_at=facts.observed_at,
            name="facts",
            payload=facts.model_dump(mode="json"),
        )
        store.save_json(
            chain_id=facts.chain_id,
            observed_at=facts.observed_at,
            name="report",
            payload=report.to_dict(),
        )

    fail_on = Severity(args.fail_on)
    return EXIT_FINDINGS if report.has_findings_at_or_above(fail_on) else EXIT_OK


def _single_chain_id(facts_file: Path) -> str:
    from pipelines.data_source import load_fact_documents

    chain_ids = {str(doc.get("chain_id") or "") for doc in load_fact_documents(facts_file, "")}
    chain_ids.discard("")
    if len(chain_ids) != 1:
        raise ValueError(f"{facts_file} holds {len(chain_ids)} chains; pass --chain-id.")
    return chain_ids.pop()


def _write_outputs(args: argparse.Namespace, report: Report, facts: FactModel) -> None:
    if not args.output_dir:
        if args.format == "markdown":
            print(_render_markdown(report, facts))
        else:
            print(report.to_json())
        return

    output_dir = Path(args.output_dir).resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    base_name = f"rollup_lint_{facts.chain_id}_{facts.observed_at.strftime('%Y%m%dT%H%M%SZ')}"
    if args.format in ("json", "both"):
        out_json = output_dir / f"{base_name}.json"
        payload = {
            "chain_id": facts.chain_id,
            "observed_at": facts.observed_at.isoformat(),
            "generated_at": datetime.now().astimezone().isoformat(),
            "report": report.to_dict(),
        }
        out_json.write_text(json.dumps(payload, indent=2, sort_keys=True))
        print(f"Wrote {out_json}")
    if args.format in ("markdown", "both"):
        out_md = output_dir / f"{base_name}.md"
        out_md.write_text(_render_markdown(report, facts))
        print(f"Wrote {out_md}")


if __name__ == "__main__":
    raise SystemExit(main())
