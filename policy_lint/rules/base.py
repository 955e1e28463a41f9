"""Base rule model, check protocol, and finding model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from policy_lint.target import Target

Trigger = Literal["always_on", "manual"]
Severity = Literal["info", "warning", "blocking"]

TRIGGERS: tuple[str, ...] = ("always_on", "manual")
SEVERITIES: tuple[str, ...] = ("info", "warning", "blocking")


class RuleCheckError(RuntimeError):
    """Raised when a rule check cannot produce a verdict."""


class Check(Protocol):
    """Protocol for executable rule checks."""

    def __call__(self, target: Target, options: Mapping[str, Any]) -> list[str]:
        """Return violation messages; an empty list means the target passes."""


@dataclass(frozen=True, slots=True)
class Rule:
    """A single policy loaded from a rule document."""

    id: str
    trigger: Trigger
    category: str
    description: str
    severity: Severity
    check: Check | None = field(default=None, compare=False)
    check_name: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict, hash=False)
    globs: tuple[str, ...] = ()
    title: str | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Rule id must be a non-empty string")
        if self.trigger not in TRIGGERS:
            raise ValueError(f"Rule {self.id}: unknown trigger '{self.trigger}'")
        if self.severity not in SEVERITIES:
            raise ValueError(f"Rule {self.id}: unknown severity '{self.severity}'")

    @property
    def is_documentation(self) -> bool:
        """True when the rule has nothing mechanically checkable."""
        return self.check is None


@dataclass(frozen=True, slots=True)
class Finding:
    """The outcome of evaluating one rule against one target."""

    rule_id: str
    passed: bool
    message: str
    severity: Severity = "info"
    category: str = "general"
    target: str | None = None

    @property
    def is_blocking_failure(self) -> bool:
        """True for a failed finding from a blocking rule."""
        return not self.passed and self.severity == "blocking"
