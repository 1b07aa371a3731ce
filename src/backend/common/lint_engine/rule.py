from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional, Type

from .config import RuleConfigBase
from .facts import FactModel
from .models import Category, Outcome, Severity


class Rule(ABC):
    """A single pure check over a FactModel.

    Subclasses implement `check`; `evaluate` applies the policy's `enabled`
    switch. Policy constants arrive through `config` when the registry is built,
    so `check` must read them from there rather than hardcoding values.
    """

    rule_id: str
    rule_title: str
    category: Category
    default_severity: Severity = Severity.MEDIUM
    config_model: Type[RuleConfigBase] = RuleConfigBase

    def __init__(self, config: Optional[RuleConfigBase] = None):
        if not getattr(self, "rule_id", None):
            raise ValueError("Rule must define rule_id")
        if not isinstance(getattr(self, "category", None), Category):
            raise ValueError(f"Rule {self.rule_id} must define a Category")
        self.config = config if config is not None else self.config_model()

    @property
    def severity(self) -> Severity:
        return self.config.severity or self.default_severity

    def severity_for(self, outcome: Outcome) -> Severity:
        # Policy override wins over outcome-scaled severity, which wins over the default.
        return self.config.severity or outcome.severity or self.default_severity

    def evaluate(self, facts: FactModel) -> Outcome:
        if not self.config.enabled:
            return Outcome.not_applicable("Rule disabled by policy configuration.")
        return self.check(facts)

    @abstractmethod
    def check(self, facts: FactModel) -> Outcome:  # pragma: no cover
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule_id}>"


class PredicateRule(Rule):
    """Wrap a plain function as a rule, for rules supplied at runtime."""

    def __init__(
        self,
        rule_id: str,
        predicate: Callable[[FactModel], Outcome],
        *,
        category: Category,
        rule_title: str = "",
        default_severity: Severity = Severity.MEDIUM,
        config: Optional[RuleConfigBase] = None,
    ):
        self.rule_id = rule_id
        self.rule_title = rule_title or rule_id
        self.category = category
        self.default_severity = default_severity
        self._predicate = predicate
        super().__init__(config)

    def check(self, facts: FactModel) -> Outcome:
        return self._predicate(facts)
