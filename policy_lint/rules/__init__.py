"""Rule and finding models."""

from policy_lint.rules.base import (
    SEVERITIES,
    TRIGGERS,
    Check,
    Finding,
    Rule,
    RuleCheckError,
    Severity,
    Trigger,
)

__all__ = [
    "SEVERITIES",
    "TRIGGERS",
    "Check",
    "Finding",
    "Rule",
    "RuleCheckError",
    "Severity",
    "Trigger",
]
