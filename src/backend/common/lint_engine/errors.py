from __future__ import annotations


class LintEngineError(Exception):
    """Base class for errors raised by the lint engine and its collaborators."""


class MalformedFactError(LintEngineError):
    """A FactModel could not be constructed because its input is not well-formed."""


class DuplicateRuleIdError(LintEngineError):
    def __init__(self, rule_id: str):
        super().__init__(f"Duplicate rule_id registered: {rule_id}")
        self.rule_id = rule_id


class InvalidPolicyError(LintEngineError):
    """Policy configuration failed validation while building a registry."""


class DataUnavailableError(LintEngineError):
    def __init__(self, chain_id: str, message: str):
        super().__init__(f"Facts unavailable for chain '{chain_id}': {message}")
        self.chain_id = chain_id


class EvaluationCancelledError(LintEngineError):
    """An evaluation was cancelled or timed out before a report could be produced."""
