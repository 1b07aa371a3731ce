from __future__ import annotations

from datetime import timedelta

from ..config import OracleFreshnessBoundRuleConfig
from ..facts import FactModel, format_duration, format_seconds, is_unset_address
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ORACLE_BACKUP_CONFIGURED(Rule):
    rule_id = "oracle.backupConfigured"
    rule_title = "A backup oracle is configured"
    category = Category.ORACLE
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        oracle = facts.oracle
        if oracle is None:
            return Outcome.not_applicable("No oracle configuration in facts.")
        if is_unset_address(oracle.backup_address):
            return Outcome.fail("no backup oracle configured")
        return Outcome.passed(f"backup oracle {oracle.backup_address}")


@register_rule
class ORACLE_DISTINCT_SOURCES(Rule):
    rule_id = "oracle.distinctSources"
    rule_title = "Backup oracle differs from the primary"
    category = Category.ORACLE
    default_severity = Severity.MEDIUM

    def check(self, facts: FactModel) -> Outcome:
        oracle = facts.oracle
        if oracle is None or is_unset_address(oracle.primary_address) or is_unset_address(oracle.backup_address):
            return Outcome.not_applicable("Primary and backup oracle addresses not both present in facts.")
        if oracle.primary_address == oracle.backup_address:
            return Outcome.fail(f"backup oracle is the same address as the primary ({oracle.primary_address})")
        return Outcome.passed()


@register_rule
class ORACLE_FRESHNESS_BOUND(Rule):
    rule_id = "oracle.freshnessBound"
    rule_title = "Oracle enforces a freshness bound"
    category = Category.ORACLE
    default_severity = Severity.MEDIUM
    config_model = OracleFreshnessBoundRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: OracleFreshnessBoundRuleConfig = self.config
        oracle = facts.oracle
        if oracle is None:
            return Outcome.not_applicable("No oracle configuration in facts.")
        if oracle.freshness_bound_seconds is None:
            return Outcome.fail("oracle has no freshness bound configured")
        if oracle.freshness_bound_seconds > cfg.maximum_bound_seconds:
            return Outcome.fail(
                f"oracle freshness bound of {format_seconds(oracle.freshness_bound_seconds)} exceeds the "
                f"{format_seconds(cfg.maximum_bound_seconds)} maximum"
            )
        return Outcome.passed()


@register_rule
class ORACLE_STALENESS(Rule):
    rule_id = "oracle.staleness"
    rule_title = "Oracle data is within its own freshness bound"
    category = Category.ORACLE
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        oracle = facts.oracle
        if oracle is None or oracle.last_update_at is None or oracle.freshness_bound_seconds is None:
            return Outcome.not_applicable("Oracle update time or freshness bound not present in facts.")

        age = facts.elapsed_since(oracle.last_update_at)
        if age < timedelta(0):
            return Outcome.inconclusive(
                f"oracle update time is {format_duration(-age)} later than the observation time"
            )
        if age.total_seconds() > oracle.freshness_bound_seconds:
            return Outcome.fail(
                f"oracle last updated {format_duration(age)} ago, exceeding its "
                f"{format_seconds(oracle.freshness_bound_seconds)} freshness bound"
            )
        return Outcome.passed()
