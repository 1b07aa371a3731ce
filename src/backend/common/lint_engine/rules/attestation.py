"""Checklist items that cannot be computed from facts.

These rules always report Inconclusive so a reviewer signs them off; they are
never defaulted to Pass.
"""

from __future__ import annotations

from ..facts import FactModel
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule


class AttestationRule(Rule):
    attestation: str

    def check(self, facts: FactModel) -> Outcome:
        return Outcome.inconclusive(f"requires external attestation: {self.attestation}")


@register_rule
class DEPLOYMENT_PRODUCTION_TESTED(AttestationRule):
    rule_id = "deployment.productionTested"
    rule_title = "Deployment has been exercised in production"
    category = Category.DEPLOYMENT
    default_severity = Severity.LOW
    attestation = "the deployment has run in production under realistic load"


@register_rule
class DOCUMENTATION_COMPREHENSIVE(AttestationRule):
    rule_id = "documentation.comprehensive"
    rule_title = "Integration documentation is comprehensive"
    category = Category.DOCUMENTATION
    default_severity = Severity.INFO
    attestation = "documentation covers trust assumptions, upgrade paths and exit procedures"


@register_rule
class PROOF_SYSTEM_EXTERNAL_AUDIT(AttestationRule):
    rule_id = "proofSystem.externalAudit"
    rule_title = "Proof system has been externally audited"
    category = Category.PROOF_SYSTEM
    default_severity = Severity.MEDIUM
    attestation = "an independent audit of the fraud/validity proof system"
