from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from .errors import MalformedFactError

FACT_SCHEMA_VERSION = 1

ZERO_ADDRESS = "0x" + "0" * 40
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

ParameterValue = Union[bool, int, float, str]

# Largest whole-second duration a timedelta can hold; on-chain "max uint" delays exceed it.
MAX_TIMEDELTA_SECONDS = timedelta.max.days * 86400 + timedelta.max.seconds


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "facts"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def _normalize_address(value: Optional[str]) -> Optional[str]:
    # Empty string means "configured but unset"; rules treat it like the zero address.
    if value is None:
        return None
    text = value.strip()
    if not text:
        return ""
    if not _ADDRESS_RE.match(text):
        raise ValueError(f"invalid address {value!r}; expected 0x followed by 40 hex digits")
    return text.lower()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_unset_address(value: Optional[str]) -> bool:
    return not value or value.lower() == ZERO_ADDRESS


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(value: timedelta) -> str:
    """Render a duration exactly, e.g. "20 days", "1 day 3 hours", "1.5 seconds"."""
    negative = value < timedelta(0)
    remaining = abs(value)
    hours, rem = divmod(remaining.seconds, 3600)
    minutes, seconds = divmod(rem, 60)

    parts = []
    if remaining.days:
        parts.append(_plural(remaining.days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    if remaining.microseconds:
        exact = Decimal(seconds) + Decimal(remaining.microseconds) / Decimal(1_000_000)
        parts.append(f"{exact} seconds")
    elif seconds or not parts:
        parts.append(_plural(seconds, "second"))

    text = " ".join(parts)
    return f"-{text}" if negative else text


def format_seconds(seconds: int) -> str:
    if abs(seconds) > MAX_TIMEDELTA_SECONDS:
        return _plural(seconds, "second")
    return format_duration(timedelta(seconds=seconds))


class _FactSection(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise MalformedFactError(_describe_validation_error(exc)) from exc


class OperatorConfig(_FactSection):
    """Sequencer or proposer set."""

    addresses: Tuple[str, ...] = ()
    backup_addresses: Tuple[str, ...] = ()
    rotation_policy: Optional[str] = None
    last_activity_at: Optional[datetime] = None
    # Sequencer only: users can force transactions through L1.
    force_inclusion_enabled: Optional[bool] = None
    # Proposer only: anyone may propose once the permissioned set stalls.
    permissionless_fallback: Optional[bool] = None

    @field_validator("addresses", "backup_addresses")
    @classmethod
    def _check_addresses(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(_normalize_address(addr) for addr in value)

    @field_validator("rotation_policy")
    @classmethod
    def _normalize_rotation_policy(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().lower()

    @field_validator("last_activity_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    def configured_backups(self) -> Tuple[str, ...]:
        primaries = set(self.addresses)
        return tuple(
            addr for addr in self.backup_addresses if not is_unset_address(addr) and addr not in primaries
        )


class UpgradeConfig(_FactSection):
    delay_seconds: Optional[int] = Field(default=None, ge=0)
    admin_address: Optional[str] = None
    admin_is_multisig: Optional[bool] = None
    pending_implementation: Optional[str] = None
    scheduled_activation_at: Optional[datetime] = None

    @field_validator("admin_address", "pending_implementation")
    @classmethod
    def _check_address(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_address(value)

    @field_validator("scheduled_activation_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class WithdrawalConfig(_FactSection):
    delay_seconds: Optional[int] = Field(default=None, ge=0)
    liquidity_balance: Optional[Decimal] = Field(default=None, ge=0)
    pending_withdrawals_total: Optional[Decimal] = Field(default=None, ge=0)
    emergency_mode: Optional[bool] = None
    escape_hatch_enabled: Optional[bool] = None


class AnchorMetadata(_FactSection):
    timestamp: datetime
    source_registry: str = ""
    state_root: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("source_registry")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class OracleConfig(_FactSection):
    primary_address: Optional[str] = None
    backup_address: Optional[str] = None
    freshness_bound_seconds: Optional[int] = Field(default=None, ge=0)
    last_update_at: Optional[datetime] = None

    @field_validator("primary_address", "backup_address")
    @classmethod
    def _check_address(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_address(value)

    @field_validator("last_update_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class FactModel(_FactSection):
    """Immutable snapshot of one rollup deployment's observable configuration.

    `observed_at` is the instant the facts describe; time-based rules measure
    against it and never read the wall clock. Build instances from loader
    output with `from_dict`, and derive variants with `with_override`.
    """

    schema_version: int = Field(default=FACT_SCHEMA_VERSION, ge=1, le=FACT_SCHEMA_VERSION)
    chain_id: str
    observed_at: datetime

    sequencer: Optional[OperatorConfig] = None
    proposer: Optional[OperatorConfig] = None
    upgrade: Optional[UpgradeConfig] = None
    withdrawal: Optional[WithdrawalConfig] = None
    anchor: Optional[AnchorMetadata] = None
    oracle: Optional[OracleConfig] = None

    # Stored as sorted (name, value) pairs so the snapshot stays immutable; serialized as a mapping.
    parameters: Tuple[Tuple[str, ParameterValue], ...] = ()

    @field_validator("chain_id")
    @classmethod
    def _check_chain_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("chain_id must not be empty")
        return value

    @field_validator("observed_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parameters_from_mapping(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, Mapping):
            items = list(value.items())
        elif isinstance(value, (list, tuple)):
            items = []
            for pair in value:
                if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                    raise ValueError("parameters must be a mapping or a sequence of (name, value) pairs")
                items.append((pair[0], pair[1]))
        else:
            raise ValueError("parameters must be a mapping or a sequence of (name, value) pairs")

        seen = set()
        for name, _ in items:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"parameter names must be non-empty strings, got {name!r}")
            if name in seen:
                raise ValueError(f"duplicate parameter: {name}")
            seen.add(name)
        return tuple(sorted(items, key=lambda kv: kv[0]))

    @field_serializer("parameters")
    def _parameters_as_mapping(self, value: Tuple[Tuple[str, ParameterValue], ...]) -> dict:
        return {name: val for name, val in value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FactModel":
        if not isinstance(data, Mapping):
            raise MalformedFactError(f"facts must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise MalformedFactError(_describe_validation_error(exc)) from exc

    def with_override(self, key: str, value: Any) -> "FactModel":
        """Return a new snapshot with the dotted `key` replaced by `value`."""
        parts = [p for p in key.split(".") if p]
        if not parts:
            raise MalformedFactError("override key must not be empty")

        data = self.model_dump()
        target = data
        for part in parts[:-1]:
            nested = target.get(part)
            if nested is None:
                nested = {}
                target[part] = nested
            elif not isinstance(nested, dict):
                raise MalformedFactError(f"cannot override '{key}': '{part}' is not a section")
            target = nested
        target[parts[-1]] = value
        return type(self).from_dict(data)

    def parameter(self, name: str, default: Any = None) -> Any:
        for key, value in self.parameters:
            if key == name:
                return value
        return default

    def elapsed_since(self, moment: datetime) -> timedelta:
        return self.observed_at - _as_utc(moment)

    def snapshot_ref(self) -> str:
        canonical = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()
