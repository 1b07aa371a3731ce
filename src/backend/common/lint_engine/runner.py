from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from .aggregator import aggregate
from .errors import EvaluationCancelledError
from .facts import FactModel
from .models import Category, Finding, Outcome, OutcomeStatus, Report, Severity
from .registry import RuleRegistry
from .rule import Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationOptions:
    categories: Optional[FrozenSet[Category]] = None
    rule_ids: Optional[FrozenSet[str]] = None
    min_severity: Severity = Severity.INFO
    parallel: bool = False
    max_workers: Optional[int] = None
    timeout_seconds: Optional[float] = None
    # Set by the caller to abandon the run; no report is produced.
    cancel_event: Optional[threading.Event] = None

    def selects(self, rule: Rule) -> bool:
        if self.categories is not None and rule.category not in self.categories:
            return False
        if self.rule_ids is not None and rule.rule_id not in self.rule_ids:
            return False
        return True


def run_rule(rule: Rule, facts: FactModel) -> Outcome:
    """Evaluate one rule, converting any fault into an internal-error Inconclusive."""
    try:
        outcome = rule.evaluate(facts)
    except Exception as exc:
        logger.warning("Rule %s raised during evaluation", rule.rule_id, exc_info=True)
        return Outcome.inconclusive(
            f"internal error: {type(exc).__name__}: {exc}",
            internal_error=True,
        )
    if not isinstance(outcome, Outcome):
        logger.warning("Rule %s returned %s instead of an Outcome", rule.rule_id, type(outcome).__name__)
        return Outcome.inconclusive(
            f"internal error: rule returned {type(outcome).__name__} instead of an Outcome",
            internal_error=True,
        )
    return outcome


def to_finding(rule: Rule, outcome: Outcome, snapshot_ref: str) -> Finding:
    return Finding(
        rule_id=rule.rule_id,
        rule_title=getattr(rule, "rule_title", ""),
        category=rule.category,
        severity=rule.severity_for(outcome),
        status=outcome.status,
        detail=outcome.detail,
        fact_snapshot_ref=snapshot_ref,
        internal_error=outcome.internal_error,
    )


class EvaluationEngine:
    def __init__(self, registry: RuleRegistry):
        self._registry = registry

    def evaluate(self, facts: FactModel, options: Optional[EvaluationOptions] = None) -> Report:
        options = options or EvaluationOptions()
        rules = [rule for rule in self._registry.all() if options.selects(rule)]
        snapshot_ref = facts.snapshot_ref()
        deadline = None
        if options.timeout_seconds is not None:
            deadline = time.monotonic() + options.timeout_seconds

        logger.debug(
            "Evaluating %d rules against chain %s (%s, parallel=%s)",
            len(rules),
            facts.chain_id,
            snapshot_ref,
            options.parallel,
        )
        if options.parallel and len(rules) > 1:
            outcomes = self._run_parallel(rules, facts, options, deadline)
        else:
            outcomes = self._run_sequential(rules, facts, options, deadline)

        counts: Dict[OutcomeStatus, int] = {}
        findings: List[Finding] = []
        for rule, outcome in zip(rules, outcomes):
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
            if outcome.produces_finding:
                findings.append(to_finding(rule, outcome, snapshot_ref))

        report = aggregate(
            findings,
            min_severity=options.min_severity,
            rules_evaluated=len(rules),
            outcome_counts=counts,
        )
        logger.debug(
            "Evaluation of chain %s finished: %d findings reported, worst=%s",
            facts.chain_id,
            report.summary.total,
            report.worst_severity(),
        )
        return report

    def _run_sequential(
        self,
        rules: List[Rule],
        facts: FactModel,
        options: EvaluationOptions,
        deadline: Optional[float],
    ) -> List[Outcome]:
        outcomes = []
        for rule in rules:
            _raise_if_cancelled(options, deadline)
            outcomes.append(run_rule(rule, facts))
        return outcomes

    def _run_parallel(
        self,
        rules: List[Rule],
        facts: FactModel,
        options: EvaluationOptions,
        deadline: Optional[float],
    ) -> List[Outcome]:
        def _task(rule: Rule) -> Optional[Outcome]:
            if options.cancel_event is not None and options.cancel_event.is_set():
                return None
            return run_rule(rule, facts)

        executor = ThreadPoolExecutor(max_workers=options.max_workers, thread_name_prefix="rollup-lint")
        try:
            futures = [executor.submit(_task, rule) for rule in rules]
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = wait(futures, timeout=timeout)
            if not_done:
                for future in not_done:
                    future.cancel()
                raise EvaluationCancelledError(
                    f"Evaluation timed out after {options.timeout_seconds} seconds"
                )
            _raise_if_cancelled(options, None)
            return [future.result() for future in futures]
        finally:
            # A timed-out rule may still be running; its result is discarded.
            executor.shutdown(wait=False, cancel_futures=True)


def _raise_if_cancelled(options: EvaluationOptions, deadline: Optional[float]) -> None:
    if options.cancel_event is not None and options.cancel_event.is_set():
        raise EvaluationCancelledError("Evaluation cancelled by caller")
    if deadline is not None and time.monotonic() >= deadline:
        raise EvaluationCancelledError(f"Evaluation timed out after {options.timeout_seconds} seconds")


def evaluate(
    facts: FactModel,
    registry: RuleRegistry,
    options: Optional[EvaluationOptions] = None,
) -> Report:
    return EvaluationEngine(registry).evaluate(facts, options)
