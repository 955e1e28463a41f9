"""Built-in checks that rule documents can reference by name."""

from __future__ import annotations

from dataclasses import dataclass

from policy_lint.checks.accessibility import img_alt, no_positive_tabindex
from policy_lint.checks.javascript import (
    no_console,
    no_debugger,
    no_explicit_any,
    no_var,
    prefer_const,
)
from policy_lint.checks.pull_request import pr_description, pr_title
from policy_lint.checks.security import no_hardcoded_secrets
from policy_lint.checks.text import forbidden_pattern, max_line_length, required_pattern
from policy_lint.rules.base import Check


@dataclass(frozen=True, slots=True)
class CheckInfo:
    """Check metadata for listing."""

    name: str
    description: str
    group: str


@dataclass(frozen=True, slots=True)
class _CheckSpec:
    name: str
    func: Check
    group: str

    def info(self) -> CheckInfo:
        doc = (getattr(self.func, "__doc__", None) or "").strip()
        summary = doc.splitlines()[0] if doc else ""
        return CheckInfo(name=self.name, description=summary, group=self.group)


def _ordered_check_specs() -> list[_CheckSpec]:
    return [
        _CheckSpec("no_console", no_console, "javascript"),
        _CheckSpec("no_debugger", no_debugger, "javascript"),
        _CheckSpec("prefer_const", prefer_const, "javascript"),
        _CheckSpec("no_var", no_var, "javascript"),
        _CheckSpec("no_explicit_any", no_explicit_any, "typescript"),
        _CheckSpec("img_alt", img_alt, "accessibility"),
        _CheckSpec("no_positive_tabindex", no_positive_tabindex, "accessibility"),
        _CheckSpec("no_hardcoded_secrets", no_hardcoded_secrets, "security"),
        _CheckSpec("max_line_length", max_line_length, "text"),
        _CheckSpec("forbidden_pattern", forbidden_pattern, "text"),
        _CheckSpec("required_pattern", required_pattern, "text"),
        _CheckSpec("pr_description", pr_description, "pull_request"),
        _CheckSpec("pr_title", pr_title, "pull_request"),
    ]


_SPECS = {spec.name: spec for spec in _ordered_check_specs()}


def get_check(name: str) -> Check:
    """Resolve a check by name, accepting kebab-case aliases."""
    spec = _SPECS.get(name.replace("-", "_"))
    if spec is None:
        choices = ", ".join(sorted(_SPECS))
        raise ValueError(f"Unknown check '{name}'. Expected one of: {choices}")
    return spec.func


def list_check_info() -> list[CheckInfo]:
    """Return metadata for all built-in checks."""
    return [spec.info() for spec in _ordered_check_specs()]


def check_names() -> list[str]:
    return [spec.name for spec in _ordered_check_specs()]
