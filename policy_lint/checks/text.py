"""Generic text checks configured entirely from rule options."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from policy_lint.checks.common import (
    compile_option_regex,
    iter_lines,
    lineno_at,
    option_int,
)
from policy_lint.rules.base import RuleCheckError
from policy_lint.target import Target


def max_line_length(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Limit line length to option 'max' characters (default 120)."""
    limit = option_int(options, "max", 120)
    if limit <= 0:
        raise RuleCheckError("option 'max' must be > 0")
    return [
        f"line {lineno}: {len(line)} characters (max {limit})"
        for lineno, line in iter_lines(target)
        if len(line) > limit
    ]


def forbidden_pattern(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Fail on every line matching the regex in option 'pattern'."""
    regex = compile_option_regex(options)
    message = options.get("message") or f"matches forbidden pattern /{regex.pattern}/"
    violations: list[str] = []
    seen: set[int] = set()
    for match in regex.finditer(target.content):
        lineno = lineno_at(target, match.start())
        if lineno in seen:
            continue
        seen.add(lineno)
        violations.append(f"line {lineno}: {message}")
    return violations


def required_pattern(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Fail unless the regex in option 'pattern' matches somewhere."""
    regex = compile_option_regex(options)
    if regex.search(target.content):
        return []
    message = options.get("message") or f"missing required pattern /{regex.pattern}/"
    return [str(message)]

