from __future__ import annotations

from datetime import timedelta

from ..config import ExitWindowRuleConfig, PendingUpgradeRuleConfig
from ..facts import FactModel, format_duration, format_seconds, is_unset_address
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


@register_rule
class UPGRADE_EXIT_WINDOW(Rule):
    rule_id = "upgrade.exitWindow"
    rule_title = "Upgrade delay leaves users a minimum exit window"
    category = Category.UPGRADE
    default_severity = Severity.HIGH
    config_model = ExitWindowRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: ExitWindowRuleConfig = self.config
        upgrade = facts.upgrade
        if upgrade is None or upgrade.delay_seconds is None:
            return Outcome.not_applicable("Upgrade delay not present in facts.")

        delay = upgrade.delay_seconds
        if delay >= cfg.minimum_delay_seconds:
            return Outcome.passed(f"upgrade delay of {format_seconds(delay)} meets the minimum exit window")

        severity = Severity.CRITICAL if delay < cfg.critical_below_seconds else Severity.HIGH
        return Outcome.fail(
            f"upgrade delay of {format_seconds(delay)} is below the "
            f"{format_seconds(cfg.minimum_delay_seconds)} minimum exit window",
            severity=severity,
        )


@register_rule
class UPGRADE_EXIT_WINDOW_COVERS_WITHDRAWAL(Rule):
    rule_id = "upgrade.exitWindowCoversWithdrawal"
    rule_title = "Upgrade delay is at least the withdrawal delay"
    category = Category.UPGRADE
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        upgrade, withdrawal = facts.upgrade, facts.withdrawal
        if upgrade is None or upgrade.delay_seconds is None:
            return Outcome.not_applicable("Upgrade delay not present in facts.")
        if withdrawal is None or withdrawal.delay_seconds is None:
            return Outcome.not_applicable("Withdrawal delay not present in facts.")

        if upgrade.delay_seconds < withdrawal.delay_seconds:
            return Outcome.fail(
                f"upgrade delay of {format_seconds(upgrade.delay_seconds)} is shorter than the withdrawal "
                f"delay of {format_seconds(withdrawal.delay_seconds)}; users cannot exit before an upgrade lands"
            )
        return Outcome.passed()


@register_rule
class UPGRADE_PENDING_ACTIVATION(Rule):
    rule_id = "upgrade.pendingActivation"
    rule_title = "Pending upgrades are scheduled with enough notice"
    category = Category.UPGRADE
    default_severity = Severity.MEDIUM
    config_model = PendingUpgradeRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: PendingUpgradeRuleConfig = self.config
        upgrade = facts.upgrade
        if upgrade is None:
            return Outcome.not_applicable("No upgrade configuration in facts.")
        pending = upgrade.pending_implementation
        if is_unset_address(pending):
            return Outcome.passed("No pending implementation.")

        if upgrade.scheduled_activation_at is None:
            return Outcome.fail(
                f"pending implementation {pending} has no scheduled activation time",
                severity=Severity.HIGH,
            )

        remaining = upgrade.scheduled_activation_at - facts.observed_at
        if remaining <= timedelta(0):
            return Outcome.inconclusive(
                f"activation time for pending implementation {pending} passed {format_duration(-remaining)} "
                "ago but it is still pending"
            )

        notice = timedelta(seconds=cfg.minimum_notice_seconds)
        if remaining < notice:
            return Outcome.fail(
                f"pending implementation {pending} activates in {format_duration(remaining)}, "
                f"less than the {format_duration(notice)} notice period"
            )
        return Outcome.passed(f"pending implementation {pending} activates in {format_duration(remaining)}")


@register_rule
class ACCESS_ADMIN_MULTISIG(Rule):
    rule_id = "access.adminMultisig"
    rule_title = "Upgrade admin is a multisig"
    category = Category.ACCESS
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        upgrade = facts.upgrade
        if upgrade is None or upgrade.admin_is_multisig is None:
            return Outcome.not_applicable("Upgrade admin type not present in facts.")
        if not upgrade.admin_is_multisig:
            admin = upgrade.admin_address or "upgrade admin"
            return Outcome.fail(f"{admin} controls upgrades and is not a multisig")
        return Outcome.passed()
