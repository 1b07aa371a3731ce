from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from common.lint_engine.errors import MalformedFactError
from common.lint_engine.facts import (
    MAX_TIMEDELTA_SECONDS,
    ZERO_ADDRESS,
    FactModel,
    format_duration,
    format_seconds,
    is_unset_address,
)

SEQ = "0x" + "a" * 40


def test_fact_model_is_frozen(make_facts):
    facts = make_facts()
    with pytest.raises(ValidationError):
        facts.chain_id = "other"


def test_with_override_returns_new_snapshot(make_facts):
    facts = make_facts(upgrade={"delay_seconds": 3600})
    changed = facts.with_override("upgrade.delay_seconds", 7200)

    assert changed is not facts
    assert facts.upgrade.delay_seconds == 3600
    assert changed.upgrade.delay_seconds == 7200
    assert changed.snapshot_ref() != facts.snapshot_ref()


def test_with_override_creates_missing_section(make_facts):
    facts = make_facts().with_override("sequencer.backup_addresses", [SEQ])
    assert facts.sequencer.backup_addresses == (SEQ,)


def test_with_override_sets_parameters_and_removes_sections(make_facts, observed_at):
    facts = make_facts(anchor={"timestamp": observed_at, "source_registry": "r"})
    facts = facts.with_override("parameters.block_gas_limit", 25_000_000).with_override("anchor", None)
    assert facts.parameter("block_gas_limit") == 25_000_000
    assert facts.anchor is None


def test_with_override_rejects_invalid_values(make_facts):
    facts = make_facts()
    with pytest.raises(MalformedFactError):
        facts.with_override("upgrade.delay_seconds", -1)
    with pytest.raises(MalformedFactError):
        facts.with_override("chain_id.nested", 1)


@pytest.mark.parametrize(
    "sections",
    [
        {"upgrade": {"delay_seconds": -1}},
        {"withdrawal": {"liquidity_balance": "-5"}},
        {"oracle": {"backup_address": "not-an-address"}},
        {"sequencer": {"addresses": ["0x1234"]}},
        {"unknown_section": {}},
        {"schema_version": 99},
        {"anchor": {"source_registry": "missing timestamp"}},
        {"parameters": {"nested": {"a": 1}}},
    ],
)
def test_malformed_facts_raise(make_facts, sections):
    with pytest.raises(MalformedFactError):
        make_facts(**sections)


def test_empty_chain_id_rejected_on_direct_construction(observed_at):
    with pytest.raises(MalformedFactError):
        FactModel(chain_id="  ", observed_at=observed_at)


def test_from_dict_rejects_non_mapping():
    with pytest.raises(MalformedFactError):
        FactModel.from_dict(["chain_id", "x"])


def test_naive_datetimes_are_treated_as_utc():
    facts = FactModel.from_dict({"chain_id": "c", "observed_at": datetime(2025, 1, 1, 12, 0)})
    assert facts.observed_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_addresses_are_normalized_to_lowercase(make_facts):
    facts = make_facts(oracle={"primary_address": "0x" + "AB" * 20})
    assert facts.oracle.primary_address == "0x" + "ab" * 20


def test_snapshot_ref_ignores_parameter_order(make_facts):
    a = make_facts(parameters={"b": 2, "a": 1})
    b = make_facts(parameters={"a": 1, "b": 2})
    assert a == b
    assert a.snapshot_ref() == b.snapshot_ref()
    assert a.snapshot_ref().startswith("sha256:")


def test_parameters_serialize_as_mapping(make_facts):
    facts = make_facts(parameters={"flag": True, "limit": 10, "name": "x"})
    assert facts.model_dump()["parameters"] == {"flag": True, "limit": 10, "name": "x"}
    assert facts.parameter("flag") is True
    assert facts.parameter("missing", 7) == 7


def test_unset_addresses():
    assert is_unset_address(None)
    assert is_unset_address("")
    assert is_unset_address(ZERO_ADDRESS)
    assert not is_unset_address(SEQ)


@pytest.mark.parametrize(
    "value,expected",
    [
        (timedelta(days=20), "20 days"),
        (timedelta(days=1), "1 day"),
        (timedelta(days=1, hours=3), "1 day 3 hours"),
        (timedelta(minutes=90), "1 hour 30 minutes"),
        (timedelta(seconds=1, microseconds=500000), "1.5 seconds"),
        (timedelta(0), "0 seconds"),
        (timedelta(seconds=-5), "-5 seconds"),
    ],
)
def test_format_duration_is_exact(value, expected):
    assert format_duration(value) == expected


def test_format_seconds_beyond_timedelta_range():
    assert format_seconds(3 * 86400) == "3 days"
    assert format_seconds(MAX_TIMEDELTA_SECONDS) == "999999999 days 23 hours 59 minutes 59 seconds"
    assert format_seconds(MAX_TIMEDELTA_SECONDS + 1) == f"{MAX_TIMEDELTA_SECONDS + 1} seconds"
    assert format_seconds(2**256 - 1) == f"{2**256 - 1} seconds"
