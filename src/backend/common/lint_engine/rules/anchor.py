from __future__ import annotations

from datetime import timedelta

from ..config import AnchorFreshnessRuleConfig, AnchorSourceRuleConfig
from ..facts import FactModel, format_duration
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ANCHOR_FRESHNESS(Rule):
    rule_id = "anchor.freshness"
    rule_title = "Anchor state root is within the freshness bound"
    category = Category.ANCHOR
    default_severity = Severity.HIGH
    config_model = AnchorFreshnessRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: AnchorFreshnessRuleConfig = self.config
        anchor = facts.anchor
        if anchor is None:
            return Outcome.not_applicable("No anchor metadata in facts.")

        age = facts.elapsed_since(anchor.timestamp)
        if age < timedelta(0):
            return Outcome.inconclusive(
                f"anchor timestamp is {format_duration(-age)} later than the observation time"
            )

        bound = timedelta(seconds=cfg.freshness_bound_seconds)
        if age > bound:
            return Outcome.fail(f"anchor root exceeds freshness bound by {format_duration(age - bound)}")
        return Outcome.passed(f"anchor root is {format_duration(age)} old")


@register_rule
class ANCHOR_SOURCE_REGISTRY(Rule):
    rule_id = "anchor.sourceRegistry"
    rule_title = "Anchor root comes from a trusted registry"
    category = Category.ANCHOR
    default_severity = Severity.MEDIUM
    config_model = AnchorSourceRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: AnchorSourceRuleConfig = self.config
        anchor = facts.anchor
        if anchor is None:
            return Outcome.not_applicable("No anchor metadata in facts.")
        if not anchor.source_registry:
            return Outcome.fail("anchor source registry is not recorded")

        trusted = {name.strip().lower() for name in cfg.trusted_registries}
        if trusted and anchor.source_registry.lower() not in trusted:
            return Outcome.fail(f"anchor source registry '{anchor.source_registry}' is not in the trusted set")
        return Outcome.passed(f"anchor sourced from '{anchor.source_registry}'")
