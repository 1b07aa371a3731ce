from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .models import (
    SEVERITY_ORDER,
    Category,
    Finding,
    OutcomeStatus,
    Report,
    ReportSummary,
    Severity,
)


def finding_sort_key(finding: Finding) -> Tuple:
    # Category, then most severe first, then rule id; the trailing fields only break ties between duplicates.
    return (
        finding.category.position,
        -finding.severity.rank,
        finding.rule_id,
        finding.fact_snapshot_ref,
        finding.status.value,
        finding.detail,
        finding.rule_title,
        finding.internal_error,
    )


def dedupe_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Keep one finding per (rule_id, snapshot), preferring the most severe."""
    kept: Dict[Tuple[str, str], Finding] = {}
    for finding in sorted(findings, key=finding_sort_key):
        kept.setdefault(finding.dedup_key, finding)
    return sorted(kept.values(), key=finding_sort_key)


def summarize(findings: Iterable[Finding]) -> ReportSummary:
    by_severity = {severity.value: 0 for severity in SEVERITY_ORDER}
    category_counts: Dict[Category, int] = {}
    total = 0
    for finding in findings:
        total += 1
        by_severity[finding.severity.value] += 1
        category_counts[finding.category] = category_counts.get(finding.category, 0) + 1

    by_category = {
        category.value: category_counts[category]
        for category in sorted(category_counts, key=lambda c: c.position)
    }
    return ReportSummary(total=total, by_severity=by_severity, by_category=by_category)


def aggregate(
    findings: Iterable[Finding],
    *,
    min_severity: Severity = Severity.INFO,
    rules_evaluated: int = 0,
    outcome_counts: Optional[Mapping[OutcomeStatus, int]] = None,
) -> Report:
    """Merge findings into a Report.

    The result depends only on the set of findings and the arguments, never on
    arrival order, so two runs over the same facts serialize identically.
    """
    ordered = [f for f in dedupe_findings(findings) if f.severity.at_least(min_severity)]
    counts = {status.value: 0 for status in OutcomeStatus}
    for status, count in (outcome_counts or {}).items():
        counts[OutcomeStatus(status).value] = count

    return Report(
        findings=tuple(ordered),
        summary=summarize(ordered),
        min_severity=min_severity,
        rules_evaluated=rules_evaluated,
        outcome_counts=counts,
    )
