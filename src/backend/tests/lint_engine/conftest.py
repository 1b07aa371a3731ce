from datetime import datetime, timezone

import pytest

from common.lint_engine.config import PolicyConfig
from common.lint_engine.facts import FactModel
from common.lint_engine.models import Category, Outcome, Severity
from common.lint_engine.registry import RuleRegistry, build_registry
from common.lint_engine.rule import PredicateRule


@pytest.fixture
def observed_at() -> datetime:
    return datetime(2025, 12, 31, tzinfo=timezone.utc)


@pytest.fixture
def make_facts(observed_at):
    def _make(*, chain_id: str = "example-rollup", **sections) -> FactModel:
        data = {"chain_id": chain_id, "observed_at": observed_at}
        data.update(sections)
        return FactModel.from_dict(data)

    return _make


@pytest.fixture
def make_registry():
    def _make(*, policy_rules: dict | None = None, extra_rules=()) -> RuleRegistry:
        return build_registry(PolicyConfig(rules=policy_rules or {}), extra_rules=extra_rules)

    return _make


@pytest.fixture
def make_predicate_rule():
    def _make(
        rule_id: str,
        outcome=None,
        *,
        category: Category = Category.GOVERNANCE,
        severity: Severity = Severity.MEDIUM,
        predicate=None,
    ) -> PredicateRule:
        if predicate is None:
            fixed = outcome if outcome is not None else Outcome.passed()

            def predicate(_facts):
                return fixed

        return PredicateRule(
            rule_id,
            predicate,
            category=category,
            rule_title=f"Test rule {rule_id}",
            default_severity=severity,
        )

    return _make
