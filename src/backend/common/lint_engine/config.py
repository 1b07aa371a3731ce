from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import InvalidPolicyError
from .facts import MAX_TIMEDELTA_SECONDS
from .models import Severity

T = TypeVar("T", bound=BaseModel)

# All durations in policy configs are whole seconds.
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


class RuleConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    # Replaces the rule's default severity for every finding it produces.
    severity: Optional[Severity] = None


class AnchorFreshnessRuleConfig(RuleConfigBase):
    freshness_bound_seconds: int = Field(default=180 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)


class AnchorSourceRuleConfig(RuleConfigBase):
    # Empty means any non-empty source registry is accepted.
    trusted_registries: List[str] = Field(default_factory=list)


class ExitWindowRuleConfig(RuleConfigBase):
    minimum_delay_seconds: int = Field(default=3 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)
    # Delays below this are critical rather than high.
    critical_below_seconds: int = Field(default=1 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)

    @model_validator(mode="after")
    def _critical_within_minimum(self) -> "ExitWindowRuleConfig":
        if self.critical_below_seconds > self.minimum_delay_seconds:
            raise ValueError("critical_below_seconds must not exceed minimum_delay_seconds")
        return self


class PendingUpgradeRuleConfig(RuleConfigBase):
    minimum_notice_seconds: int = Field(default=3 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)


class LivenessRuleConfig(RuleConfigBase):
    max_inactivity_seconds: int = Field(default=1 * SECONDS_PER_HOUR, ge=0, le=MAX_TIMEDELTA_SECONDS)


class ProposerLivenessRuleConfig(LivenessRuleConfig):
    max_inactivity_seconds: int = Field(default=24 * SECONDS_PER_HOUR, ge=0, le=MAX_TIMEDELTA_SECONDS)


class WithdrawalDelayRuleConfig(RuleConfigBase):
    maximum_delay_seconds: int = Field(default=14 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)


class WithdrawalLiquidityRuleConfig(RuleConfigBase):
    # Liquidity must cover pending withdrawals times this ratio.
    minimum_coverage_ratio: Decimal = Field(default=Decimal("1"), ge=0)


class OracleFreshnessBoundRuleConfig(RuleConfigBase):
    maximum_bound_seconds: int = Field(default=1 * SECONDS_PER_DAY, ge=0, le=MAX_TIMEDELTA_SECONDS)


class BlockGasLimitRuleConfig(RuleConfigBase):
    parameter_name: str = "block_gas_limit"
    maximum_block_gas: int = Field(default=30_000_000, ge=0)


class TxRateLimitRuleConfig(RuleConfigBase):
    parameter_name: str = "max_txs_per_sender_per_block"
    maximum_txs_per_sender_per_block: int = Field(default=100, ge=1)


class ConfirmationDepthRuleConfig(RuleConfigBase):
    parameter_name: str = "l1_confirmation_blocks"
    minimum_confirmations: int = Field(default=12, ge=0)


class PolicyConfig(BaseModel):
    """Policy constants for all rules, keyed by rule id.

    Rules receive their typed config at registry build time via `get_rule_config`.
    """

    rules: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def get_rule_config(
        self,
        rule_id: str,
        model: Type[T],
        default: Optional[T] = None,
    ) -> T:
        if rule_id not in self.rules:
            if default is not None:
                return default
            return model()  # type: ignore[call-arg]
        raw = self.rules.get(rule_id) or {}
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            raise InvalidPolicyError(f"Invalid policy for rule '{rule_id}': {exc}") from exc


def load_policy_config(path: Path) -> PolicyConfig:
    """Load a policy file (YAML, or JSON when the suffix is .json)."""
    if not path.exists():
        raise InvalidPolicyError(f"Policy file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        raw = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidPolicyError(f"Policy file {path} could not be parsed: {exc}") from exc

    if raw is None:
        return PolicyConfig()
    if not isinstance(raw, dict):
        raise InvalidPolicyError("Policy file must contain a mapping with a top-level 'rules' object.")
    try:
        return PolicyConfig.model_validate(raw)
    except ValidationError as exc:
        raise InvalidPolicyError(f"Policy file {path} is invalid: {exc}") from exc
