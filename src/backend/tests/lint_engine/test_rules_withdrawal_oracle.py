from datetime import timedelta
from decimal import Decimal

from common.lint_engine.config import SECONDS_PER_DAY, WithdrawalLiquidityRuleConfig
from common.lint_engine.facts import ZERO_ADDRESS
from common.lint_engine.models import OutcomeStatus, Severity
from common.lint_engine.rules.oracle import (
    ORACLE_BACKUP_CONFIGURED,
    ORACLE_DISTINCT_SOURCES,
    ORACLE_FRESHNESS_BOUND,
    ORACLE_STALENESS,
)
from common.lint_engine.rules.withdrawal import (
    EMERGENCY_MODE_ACTIVE,
    WITHDRAWAL_DELAY_BOUND,
    WITHDRAWAL_ESCAPE_HATCH,
    WITHDRAWAL_LIQUIDITY,
)

PRIMARY = "0x" + "4" * 40
BACKUP = "0x" + "5" * 40


def test_withdrawal_delay_bound(make_facts):
    rule = WITHDRAWAL_DELAY_BOUND()
    assert rule.evaluate(make_facts(withdrawal={"delay_seconds": 7 * SECONDS_PER_DAY})).status == OutcomeStatus.PASS
    res = rule.evaluate(make_facts(withdrawal={"delay_seconds": 30 * SECONDS_PER_DAY}))
    assert res.status == OutcomeStatus.FAIL
    assert res.detail == "withdrawal delay of 30 days exceeds the 14 days maximum"


def test_withdrawal_liquidity_covers_pending(make_facts):
    rule = WITHDRAWAL_LIQUIDITY()
    short = make_facts(withdrawal={"liquidity_balance": "900", "pending_withdrawals_total": "1200"})
    covered = make_facts(withdrawal={"liquidity_balance": "1200", "pending_withdrawals_total": "1200"})
    assert rule.evaluate(short).status == OutcomeStatus.FAIL
    assert rule.evaluate(covered).status == OutcomeStatus.PASS
    assert rule.evaluate(make_facts(withdrawal={"liquidity_balance": "1"})).status == OutcomeStatus.NOT_APPLICABLE


def test_withdrawal_liquidity_coverage_ratio(make_facts):
    rule = WITHDRAWAL_LIQUIDITY(WithdrawalLiquidityRuleConfig(minimum_coverage_ratio=Decimal("1.5")))
    facts = make_facts(withdrawal={"liquidity_balance": "1200", "pending_withdrawals_total": "1000"})
    res = rule.evaluate(facts)
    assert res.status == OutcomeStatus.FAIL
    assert "required 1500" in res.detail


def test_escape_hatch_and_emergency_mode(make_facts):
    assert WITHDRAWAL_ESCAPE_HATCH().evaluate(
        make_facts(withdrawal={"escape_hatch_enabled": False})
    ).status == OutcomeStatus.FAIL

    rule = EMERGENCY_MODE_ACTIVE()
    active = make_facts(withdrawal={"emergency_mode": True})
    res = rule.evaluate(active)
    assert res.status == OutcomeStatus.FAIL
    assert rule.severity_for(res) == Severity.CRITICAL
    assert rule.evaluate(make_facts(withdrawal={"emergency_mode": False})).status == OutcomeStatus.PASS


def test_backup_oracle_must_be_set(make_facts):
    rule = ORACLE_BACKUP_CONFIGURED()
    for backup in ("", ZERO_ADDRESS, None):
        res = rule.evaluate(make_facts(oracle={"primary_address": PRIMARY, "backup_address": backup}))
        assert res.status == OutcomeStatus.FAIL
    ok = make_facts(oracle={"primary_address": PRIMARY, "backup_address": BACKUP})
    assert rule.evaluate(ok).status == OutcomeStatus.PASS
    assert rule.evaluate(make_facts()).status == OutcomeStatus.NOT_APPLICABLE


def test_backup_oracle_must_differ_from_primary(make_facts):
    rule = ORACLE_DISTINCT_SOURCES()
    same = make_facts(oracle={"primary_address": PRIMARY, "backup_address": PRIMARY})
    assert rule.evaluate(same).status == OutcomeStatus.FAIL
    assert rule.evaluate(make_facts(oracle={"primary_address": PRIMARY})).status == OutcomeStatus.NOT_APPLICABLE


def test_oracle_freshness_bound(make_facts):
    rule = ORACLE_FRESHNESS_BOUND()
    assert rule.evaluate(make_facts(oracle={"primary_address": PRIMARY})).detail == (
        "oracle has no freshness bound configured"
    )
    assert rule.evaluate(
        make_facts(oracle={"freshness_bound_seconds": 2 * SECONDS_PER_DAY})
    ).status == OutcomeStatus.FAIL
    assert rule.evaluate(make_facts(oracle={"freshness_bound_seconds": 3600})).status == OutcomeStatus.PASS


def test_oracle_staleness(make_facts, observed_at):
    rule = ORACLE_STALENESS()
    stale = make_facts(
        oracle={"freshness_bound_seconds": 3600, "last_update_at": observed_at - timedelta(hours=3)}
    )
    res = rule.evaluate(stale)
    assert res.status == OutcomeStatus.FAIL
    assert res.detail == "oracle last updated 3 hours ago, exceeding its 1 hour freshness bound"
    assert rule.evaluate(make_facts(oracle={"freshness_bound_seconds": 3600})).status == (
        OutcomeStatus.NOT_APPLICABLE
    )


MAX_UINT256 = 2**256 - 1


def test_max_uint_delays_are_judged_not_crashed(make_facts):
    facts = make_facts(
        upgrade={"delay_seconds": MAX_UINT256},
        withdrawal={"delay_seconds": MAX_UINT256},
        oracle={"freshness_bound_seconds": MAX_UINT256},
    )

    res = WITHDRAWAL_DELAY_BOUND().evaluate(facts)
    assert res.status == OutcomeStatus.FAIL
    assert res.detail == f"withdrawal delay of {MAX_UINT256} seconds exceeds the 14 days maximum"

    freshness = ORACLE_FRESHNESS_BOUND().evaluate(facts)
    assert freshness.status == OutcomeStatus.FAIL
    assert not freshness.internal_error


def test_oracle_staleness_with_unbounded_freshness(make_facts, observed_at):
    facts = make_facts(
        oracle={"freshness_bound_seconds": MAX_UINT256, "last_update_at": observed_at - timedelta(days=400)}
    )
    assert ORACLE_STALENESS().evaluate(facts).status == OutcomeStatus.PASS
