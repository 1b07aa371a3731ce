from __future__ import annotations

import math
from typing import Optional, Tuple, Union

from ..config import BlockGasLimitRuleConfig, ConfirmationDepthRuleConfig, TxRateLimitRuleConfig
from ..facts import FactModel
from ..models import Category, Outcome, Severity
from ..registry import register_rule
from ..rule import Rule

Number = Union[int, float]


def _numeric_parameter(facts: FactModel, name: str) -> Tuple[Optional[Number], Optional[Outcome]]:
    value = facts.parameter(name)
    if value is None:
        return None, Outcome.not_applicable(f"Parameter '{name}' not present in facts.")
    # bool is an int subclass; a flag is not a quantity.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None, Outcome.inconclusive(f"parameter '{name}' is not numeric: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        return None, Outcome.inconclusive(f"parameter '{name}' is not a finite number: {value!r}")
    return value, None


@register_rule
class DOS_BLOCK_GAS_LIMIT(Rule):
    rule_id = "dos.blockGasLimit"
    rule_title = "Block gas limit stays within the DoS bound"
    category = Category.DOS
    default_severity = Severity.MEDIUM
    config_model = BlockGasLimitRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: BlockGasLimitRuleConfig = self.config
        value, early = _numeric_parameter(facts, cfg.parameter_name)
        if early is not None:
            return early
        if value > cfg.maximum_block_gas:
            return Outcome.fail(
                f"block gas limit of {value:,} exceeds the {cfg.maximum_block_gas:,} gas maximum"
            )
        return Outcome.passed()


@register_rule
class DOS_TX_RATE_LIMIT(Rule):
    rule_id = "dos.txRateLimit"
    rule_title = "Per-sender transaction rate limit is enforced"
    category = Category.DOS
    default_severity = Severity.MEDIUM
    config_model = TxRateLimitRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: TxRateLimitRuleConfig = self.config
        value, early = _numeric_parameter(facts, cfg.parameter_name)
        if early is not None:
            return early
        if value <= 0:
            return Outcome.fail("no per-sender transaction rate limit is enforced")
        if value > cfg.maximum_txs_per_sender_per_block:
            return Outcome.fail(
                f"per-sender rate limit of {value} transactions per block exceeds the "
                f"{cfg.maximum_txs_per_sender_per_block} maximum"
            )
        return Outcome.passed()


@register_rule
class FINALITY_CONFIRMATION_DEPTH(Rule):
    rule_id = "finality.confirmationDepth"
    rule_title = "L1 confirmation depth meets the minimum"
    category = Category.FINALITY
    default_severity = Severity.HIGH
    config_model = ConfirmationDepthRuleConfig

    def check(self, facts: FactModel) -> Outcome:
        cfg: ConfirmationDepthRuleConfig = self.config
        value, early = _numeric_parameter(facts, cfg.parameter_name)
        if early is not None:
            return early
        if value < cfg.minimum_confirmations:
            return Outcome.fail(
                f"L1 confirmation depth of {value} blocks is below the {cfg.minimum_confirmations} block minimum"
            )
        return Outcome.passed()
