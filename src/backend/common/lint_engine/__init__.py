"""Source-agnostic rules engine for rollup configuration checks.

This package intentionally contains only domain logic:
- Rule inputs are immutable FactModel snapshots + policy config.
- No RPC, indexer, or rendering code lives here.
"""

from .aggregator import aggregate
from .config import PolicyConfig, load_policy_config
from .errors import (
    DataUnavailableError,
    DuplicateRuleIdError,
    EvaluationCancelledError,
    InvalidPolicyError,
    LintEngineError,
    MalformedFactError,
)
from .facts import FactModel
from .models import Category, Finding, Outcome, OutcomeStatus, Report, Severity
from .registry import RuleRegistry, build_registry, register_rule
from .rule import PredicateRule, Rule
from .runner import EvaluationEngine, EvaluationOptions, evaluate

# Import built-in rules so they self-register with the global rule catalog.
from . import rules as _builtin_rules  # noqa: F401
