from __future__ import annotations

from ..config import WithdrawalDelayRuleConfig, WithdrawalLiquidityRuleConfig
from ..facts import FactModel, format_seconds
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


@register_rule
class WITHDRAWAL_DELAY_BOUND(Rule):
    rule_id = "withdrawal.delayBound"
    rule_title = "Withdrawal delay stays within the maximum"
    category = Category.WITHDRAWAL
    default_severity = Severity.MEDIUM
    config_model = WithdrawalDelayRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: WithdrawalDelayRuleConfig = self.config
        withdrawal = facts.withdrawal
        if withdrawal is None or withdrawal.delay_seconds is None:
            return Outcome.not_applicable("Withdrawal delay not present in facts.")
        if withdrawal.delay_seconds > cfg.maximum_delay_seconds:
            return Outcome.fail(
                f"withdrawal delay of {format_seconds(withdrawal.delay_seconds)} exceeds the "
                f"{format_seconds(cfg.maximum_delay_seconds)} maximum"
            )
        return Outcome.passed()


@register_rule
class WITHDRAWAL_LIQUIDITY(Rule):
    rule_id = "withdrawal.liquidity"
    rule_title = "Withdrawal liquidity covers pending withdrawals"
    category = Category.WITHDRAWAL
    default_severity = Severity.HIGH
    config_model = WithdrawalLiquidityRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: WithdrawalLiquidityRuleConfig = self.config
        withdrawal = facts.withdrawal
        if withdrawal is None or withdrawal.liquidity_balance is None:
            return Outcome.not_applicable("Withdrawal liquidity not present in facts.")
        if withdrawal.pending_withdrawals_total is None:
            return Outcome.not_applicable("Pending withdrawal total not present in facts.")

        required = withdrawal.pending_withdrawals_total * cfg.minimum_coverage_ratio
        if withdrawal.liquidity_balance < required:
            return Outcome.fail(
                f"withdrawal liquidity {withdrawal.liquidity_balance} does not cover pending withdrawals "
                f"{withdrawal.pending_withdrawals_total} (required {required})"
            )
        return Outcome.passed()


@register_rule
class WITHDRAWAL_ESCAPE_HATCH(Rule):
    rule_id = "withdrawal.escapeHatch"
    rule_title = "An escape hatch lets users withdraw without the operator"
    category = Category.WITHDRAWAL
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        withdrawal = facts.withdrawal
        if withdrawal is None or withdrawal.escape_hatch_enabled is None:
            return Outcome.not_applicable("Escape hatch setting not present in facts.")
        if not withdrawal.escape_hatch_enabled:
            return Outcome.fail("escape hatch is disabled; withdrawals depend on the operator")
        return Outcome.passed()


@register_rule
class EMERGENCY_MODE_ACTIVE(Rule):
    rule_id = "emergency.modeActive"
    rule_title = "Emergency mode is not active"
    category = Category.EMERGENCY
    default_severity = Severity.CRITICAL

    def check(self, facts: FactModel) -> Outcome:
        withdrawal = facts.withdrawal
        if withdrawal is None or withdrawal.emergency_mode is None:
            return Outcome.not_applicable("Emergency mode flag not present in facts.")
        if withdrawal.emergency_mode:
            return Outcome.fail("emergency mode is active; normal withdrawals are suspended")
        return Outcome.passed()
