from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple, Type

from .config import PolicyConfig
from .errors import DuplicateRuleIdError, InvalidPolicyError
from .models import Category
from .rule import Rule


class RuleRegistry:
    """Ordered collection of rule instances with unique ids.

    Read-only once evaluation starts; a registry can be shared by concurrent
    runs because rules hold no mutable state.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: Dict[str, Rule] = {}
        self.extend(rules)

    def register(self, rule: Rule) -> Rule:
        rule_id = getattr(rule, "rule_id", None)
        if not rule_id:
            raise ValueError("Rule missing rule_id")
        if rule_id in self._rules:
            raise DuplicateRuleIdError(rule_id)
        self._rules[rule_id] = rule
        return rule

    def extend(self, rules: Iterable[Rule]) -> None:
        for rule in rules:
            self.register(rule)

    def rules_for(self, category: Category) -> Tuple[Rule, ...]:
        return tuple(rule for rule in self._rules.values() if rule.category == category)

    def all(self) -> Tuple[Rule, ...]:
        return tuple(self._rules.values())

    def get(self, rule_id: str) -> Rule:
        return self._rules[rule_id]

    def ids(self) -> Iterable[str]:
        return self._rules.keys()

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)


# Rule classes known to this process (built-ins plus imported plugins), in import order.
_rule_classes: Dict[str, Type[Rule]] = {}


def register_rule(rule_cls: Type[Rule]) -> Type[Rule]:
    rule_id = getattr(rule_cls, "rule_id", None)
    if not rule_id:
        raise ValueError("Rule class missing rule_id")
    if rule_id in _rule_classes:
        raise DuplicateRuleIdError(rule_id)
    _rule_classes[rule_id] = rule_cls
    return rule_cls


def registered_rule_classes() -> Tuple[Type[Rule], ...]:
    return tuple(_rule_classes.values())


def build_registry(
    policy: Optional[PolicyConfig] = None,
    *,
    rule_classes: Optional[Iterable[Type[Rule]]] = None,
    extra_rules: Iterable[Rule] = (),
) -> RuleRegistry:
    """Instantiate rule classes with their policy config into a fresh registry."""
    policy = policy or PolicyConfig()
    classes = registered_rule_classes() if rule_classes is None else tuple(rule_classes)
    extra_rules = tuple(extra_rules)

    known = {cls.rule_id for cls in classes} | {rule.rule_id for rule in extra_rules}
    unknown = sorted(set(policy.rules) - known)
    if unknown:
        raise InvalidPolicyError(f"Policy configures unknown rule ids: {', '.join(unknown)}")

    registry = RuleRegistry()
    for rule_cls in classes:
        cfg = policy.get_rule_config(rule_cls.rule_id, rule_cls.config_model)
        registry.register(rule_cls(cfg))
    registry.extend(extra_rules)
    return registry
