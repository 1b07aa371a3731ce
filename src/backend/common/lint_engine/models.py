from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}

# Most severe first.
SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)


class Category(str, Enum):
    # Declaration order is the report grouping order.
    SEQUENCER = "sequencer"
    PROPOSER = "proposer"
    UPGRADE = "upgrade"
    WITHDRAWAL = "withdrawal"
    ANCHOR = "anchor"
    ORACLE = "oracle"
    BRIDGE = "bridge"
    DOS = "dos"
    FINALITY = "finality"
    GOVERNANCE = "governance"
    ACCESS = "access"
    EMERGENCY = "emergency"
    DATA_AVAILABILITY = "dataAvailability"
    PROOF_SYSTEM = "proofSystem"
    GAS = "gas"
    MESSAGING = "messaging"
    TIMESTAMP = "timestamp"
    ALIASING = "aliasing"
    DEPLOYMENT = "deployment"
    DOCUMENTATION = "documentation"

    @property
    def position(self) -> int:
        return _CATEGORY_POSITION[self]


_CATEGORY_POSITION = {category: idx for idx, category in enumerate(Category)}


class OutcomeStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    INCONCLUSIVE = "INCONCLUSIVE"


class Outcome(BaseModel):
    """Result of one rule predicate over one FactModel."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    detail: str = ""
    # Overrides the rule's severity for this outcome (Fail/Inconclusive only).
    severity: Optional[Severity] = None
    internal_error: bool = False

    @classmethod
    def passed(cls, detail: str = "") -> "Outcome":
        return cls(status=OutcomeStatus.PASS, detail=detail)

    @classmethod
    def fail(cls, detail: str, severity: Optional[Severity] = None) -> "Outcome":
        return cls(status=OutcomeStatus.FAIL, detail=detail, severity=severity)

    @classmethod
    def not_applicable(cls, reason: str) -> "Outcome":
        return cls(status=OutcomeStatus.NOT_APPLICABLE, detail=reason)

    @classmethod
    def inconclusive(
        cls,
        reason: str,
        *,
        severity: Optional[Severity] = None,
        internal_error: bool = False,
    ) -> "Outcome":
        return cls(
            status=OutcomeStatus.INCONCLUSIVE,
            detail=reason,
            severity=severity,
            internal_error=internal_error,
        )

    @property
    def reason(self) -> str:
        return self.detail

    @property
    def produces_finding(self) -> bool:
        return self.status in (OutcomeStatus.FAIL, OutcomeStatus.INCONCLUSIVE)


class Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_title: str = ""
    category: Category
    severity: Severity
    status: OutcomeStatus
    detail: str
    fact_snapshot_ref: str
    internal_error: bool = False

    @model_validator(mode="after")
    def _only_reportable_statuses(self) -> "Finding":
        if self.status not in (OutcomeStatus.FAIL, OutcomeStatus.INCONCLUSIVE):
            raise ValueError(f"Findings are only produced from FAIL/INCONCLUSIVE outcomes, got {self.status.value}")
        return self

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.rule_id, self.fact_snapshot_ref)


class ReportSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    # Keys are Severity / Category values; insertion order is the display order.
    by_severity: Dict[str, int] = Field(default_factory=dict)
    by_category: Dict[str, int] = Field(default_factory=dict)


class Report(BaseModel):
    """Immutable output of one evaluation run."""

    model_config = ConfigDict(frozen=True)

    findings: Tuple[Finding, ...] = ()
    summary: ReportSummary = Field(default_factory=ReportSummary)
    min_severity: Severity = Severity.INFO
    rules_evaluated: int = 0
    # Outcome counts across every evaluated rule, before severity filtering.
    outcome_counts: Dict[str, int] = Field(default_factory=dict)

    def worst_severity(self) -> Optional[Severity]:
        if not self.findings:
            return None
        return max((f.severity for f in self.findings), key=lambda s: s.rank)

    def has_findings_at_or_above(self, threshold: Severity) -> bool:
        worst = self.worst_severity()
        return worst is not None and worst.at_least(threshold)

    def by_category(self) -> Dict[Category, Tuple[Finding, ...]]:
        grouped: Dict[Category, List[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.category, []).append(finding)
        return {category: tuple(items) for category, items in grouped.items()}

    def to_dict(self) -> Dict[str, Any]:
        worst = self.worst_severity()
        return {
            "findings": [
                {
                    "rule_id": f.rule_id,
                    "rule_title": f.rule_title,
                    "category": f.category.value,
                    "severity": f.severity.value,
                    "status": f.status.value,
                    "detail": f.detail,
                    "fact_snapshot_ref": f.fact_snapshot_ref,
                    "internal_error": f.internal_error,
                }
                for f in self.findings
            ],
            "summary": {
                "total": self.summary.total,
                "by_severity": dict(self.summary.by_severity),
                "by_category": dict(self.summary.by_category),
                "worst_severity": worst.value if worst is not None else None,
            },
            "min_severity": self.min_severity.value,
            "rules_evaluated": self.rules_evaluated,
            "outcome_counts": dict(self.outcome_counts),
        }

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
