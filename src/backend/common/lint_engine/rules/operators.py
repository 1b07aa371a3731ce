from __future__ import annotations

from datetime import timedelta
from typing import Optional

from ..config import LivenessRuleConfig, ProposerLivenessRuleConfig
from ..facts import FactModel, OperatorConfig, format_duration, is_unset_address
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


def _failover_outcome(operator: Optional[OperatorConfig], role: str) -> Outcome:
    if operator is None:
        return Outcome.not_applicable(f"No {role} configuration in facts.")
    backups = operator.configured_backups()
    if backups:
        return Outcome.passed(f"{len(backups)} backup {role} address(es) configured")
    if operator.backup_addresses:
        return Outcome.fail(f"backup {role} addresses are unset or duplicate the primary {role} set")
    return Outcome.fail(f"no backup {role} configured")


def _liveness_outcome(
    facts: FactModel,
    operator: Optional[OperatorConfig],
    role: str,
    max_inactivity_seconds: int,
) -> Outcome:
    if operator is None or operator.last_activity_at is None:
        return Outcome.not_applicable(f"No {role} activity timestamp in facts.")
    idle = facts.elapsed_since(operator.last_activity_at)
    if idle < timedelta(0):
        return Outcome.inconclusive(
            f"{role} last activity is {format_duration(-idle)} later than the observation time"
        )
    bound = timedelta(seconds=max_inactivity_seconds)
    if idle > bound:
        return Outcome.fail(
            f"{role} inactive for {format_duration(idle)}, exceeding the {format_duration(bound)} liveness bound"
        )
    return Outcome.passed(f"{role} last active {format_duration(idle)} ago")


@register_rule
class SEQUENCER_FAILOVER_DEFINED(Rule):
    rule_id = "sequencer.failoverDefined"
    rule_title = "A backup sequencer is configured"
    category = Category.SEQUENCER
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        return _failover_outcome(facts.sequencer, "sequencer")


@register_rule
class SEQUENCER_LIVENESS(Rule):
    rule_id = "sequencer.liveness"
    rule_title = "Sequencer has been active recently"
    category = Category.SEQUENCER
    default_severity = Severity.HIGH
    config_model = LivenessRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: LivenessRuleConfig = self.config
        return _liveness_outcome(facts, facts.sequencer, "sequencer", cfg.max_inactivity_seconds)


@register_rule
class SEQUENCER_ROTATION_POLICY(Rule):
    rule_id = "sequencer.rotationPolicy"
    rule_title = "A single sequencer has a rotation policy"
    category = Category.SEQUENCER
    default_severity = Severity.LOW

    def check(self, facts: FactModel) -> Outcome:
        sequencer = facts.sequencer
        if sequencer is None or sequencer.rotation_policy is None:
            return Outcome.not_applicable("Sequencer rotation policy not present in facts.")
        active = {addr for addr in sequencer.addresses if not is_unset_address(addr)}
        if sequencer.rotation_policy in ("", "none") and len(active) <= 1:
            return Outcome.fail("single sequencer with no rotation policy")
        return Outcome.passed(f"rotation policy '{sequencer.rotation_policy}' over {len(active)} sequencer(s)")


@register_rule
class SEQUENCER_FORCE_INCLUSION(Rule):
    rule_id = "sequencer.forceInclusion"
    rule_title = "Users can force transaction inclusion through L1"
    category = Category.SEQUENCER
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        sequencer = facts.sequencer
        if sequencer is None or sequencer.force_inclusion_enabled is None:
            return Outcome.not_applicable("Force inclusion setting not present in facts.")
        if not sequencer.force_inclusion_enabled:
            return Outcome.fail("force inclusion through L1 is disabled; the sequencer can censor transactions")
        return Outcome.passed()


@register_rule
class PROPOSER_FAILOVER_DEFINED(Rule):
    rule_id = "proposer.failoverDefined"
    rule_title = "State proposals survive the loss of the proposer"
    category = Category.PROPOSER
    default_severity = Severity.HIGH

    def check(self, facts: FactModel) -> Outcome:
        proposer = facts.proposer
        if proposer is not None and proposer.permissionless_fallback:
            return Outcome.passed("permissionless proposing is available as a fallback")
        return _failover_outcome(proposer, "proposer")


@register_rule
class PROPOSER_LIVENESS(Rule):
    rule_id = "proposer.liveness"
    rule_title = "State roots have been proposed recently"
    category = Category.PROPOSER
    default_severity = Severity.MEDIUM
    config_model = ProposerLivenessRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: ProposerLivenessRuleConfig = self.config
        return _liveness_outcome(facts, facts.proposer, "proposer", cfg.max_inactivity_seconds)
