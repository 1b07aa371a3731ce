import pytest

from common.lint_engine import registry as registry_module
from common.lint_engine.config import AnchorFreshnessRuleConfig, PolicyConfig
from common.lint_engine.errors import DuplicateRuleIdError, InvalidPolicyError
from common.lint_engine.models import Category, Severity
from common.lint_engine.registry import RuleRegistry, build_registry, register_rule, registered_rule_classes
from common.lint_engine.rule import Rule


@pytest.fixture
def isolated_rule_classes(monkeypatch):
    monkeypatch.setattr(registry_module, "_rule_classes", dict(registry_module._rule_classes))


def test_duplicate_rule_id_is_rejected_regardless_of_order(make_predicate_rule):
    first = make_predicate_rule("governance.dup")
    second = make_predicate_rule("governance.dup", category=Category.ACCESS)

    for rules in ((first, second), (second, first)):
        registry = RuleRegistry()
        registry.register(rules[0])
        with pytest.raises(DuplicateRuleIdError) as exc:
            registry.register(rules[1])
        assert exc.value.rule_id == "governance.dup"
        assert len(registry) == 1


def test_rules_for_preserves_registration_order(make_predicate_rule):
    registry = RuleRegistry(
        [
            make_predicate_rule("governance.b"),
            make_predicate_rule("access.a", category=Category.ACCESS),
            make_predicate_rule("governance.a"),
        ]
    )
    assert [r.rule_id for r in registry.rules_for(Category.GOVERNANCE)] == ["governance.b", "governance.a"]
    assert registry.rules_for(Category.BRIDGE) == ()
    assert "access.a" in registry
    assert registry.get("access.a").category == Category.ACCESS


def test_builtin_rules_are_registered_once():
    registry = build_registry()
    assert len(registry) == len(registered_rule_classes()) == 26
    for rule in registry.all():
        assert rule.rule_id.startswith(rule.category.value + ".")


def test_each_build_creates_fresh_rule_instances():
    first = build_registry()
    second = build_registry()
    assert first.get("anchor.freshness") is not second.get("anchor.freshness")


def test_policy_constants_reach_rules():
    policy = PolicyConfig(
        rules={
            "anchor.freshness": {"freshness_bound_seconds": 60, "severity": "critical"},
            "documentation.comprehensive": {"enabled": False},
        }
    )
    registry = build_registry(policy)
    anchor = registry.get("anchor.freshness")
    assert isinstance(anchor.config, AnchorFreshnessRuleConfig)
    assert anchor.config.freshness_bound_seconds == 60
    assert anchor.severity == Severity.CRITICAL
    assert registry.get("documentation.comprehensive").config.enabled is False


def test_invalid_policy_fails_when_building_registry():
    policy = PolicyConfig(rules={"anchor.freshness": {"freshness_bound_seconds": -1}})
    with pytest.raises(InvalidPolicyError):
        build_registry(policy)

    unknown_key = PolicyConfig(rules={"upgrade.exitWindow": {"minimum_days": 3}})
    with pytest.raises(InvalidPolicyError):
        build_registry(unknown_key)


def test_extra_rules_are_appended(make_registry, make_predicate_rule):
    registry = make_registry(extra_rules=[make_predicate_rule("governance.custom")])
    assert list(registry.ids())[-1] == "governance.custom"

    with pytest.raises(DuplicateRuleIdError):
        make_registry(extra_rules=[make_predicate_rule("anchor.freshness", category=Category.ANCHOR)])


def test_register_rule_decorator_rejects_duplicate_class(isolated_rule_classes):
    @register_rule
    class GOVERNANCE_PLUGIN(Rule):
        rule_id = "governance.plugin"
        category = Category.GOVERNANCE

        def check(self, facts):
            raise AssertionError("not evaluated")

    assert GOVERNANCE_PLUGIN in registered_rule_classes()
    assert "governance.plugin" in build_registry()

    with pytest.raises(DuplicateRuleIdError):

        @register_rule
        class GOVERNANCE_PLUGIN_AGAIN(Rule):
            rule_id = "governance.plugin"
            category = Category.GOVERNANCE

            def check(self, facts):
                raise AssertionError("not evaluated")


def test_rule_requires_category():
    class NO_CATEGORY(Rule):
        rule_id = "governance.noCategory"
        category = "governance"

        def check(self, facts):
            raise AssertionError("not evaluated")

    with pytest.raises(ValueError):
        NO_CATEGORY()


def test_policy_for_unknown_rule_id_is_rejected(make_predicate_rule):
    with pytest.raises(InvalidPolicyError) as exc:
        build_registry(PolicyConfig(rules={"anchor.freshnes": {"freshness_bound_seconds": 60}}))
    assert "anchor.freshnes" in str(exc.value)

    custom = make_predicate_rule("governance.custom")
    registry = build_registry(
        PolicyConfig(rules={"governance.custom": {}}),
        extra_rules=[custom],
    )
    assert "governance.custom" in registry


def test_policy_duration_beyond_timedelta_range_is_rejected():
    policy = PolicyConfig(rules={"sequencer.liveness": {"max_inactivity_seconds": 2**256 - 1}})
    with pytest.raises(InvalidPolicyError):
        build_registry(policy)
