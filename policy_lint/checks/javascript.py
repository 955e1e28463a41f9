"""JavaScript and TypeScript style checks."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from policy_lint.checks.common import clip, iter_code_lines, lineno_at, option_str_list
from policy_lint.target import Target

CONSOLE_METHODS = ("log", "debug", "info", "warn", "error", "trace")
CONSOLE_RE = re.compile(r"\bconsole\.(?P<method>\w+)\s*\(")
DEBUGGER_RE = re.compile(r"(?<![\w$.])debugger\s*(?:;|$)")
VAR_RE = re.compile(r"(?<![\w$.])var\s+[A-Za-z_$]")
ANY_RE = re.compile(r"(?::\s*any\b|\bas\s+any\b|<\s*any\s*>|\bany\[\])(?![\w$])")
LET_RE = re.compile(r"(?<![\w$.])let\s+(?P<name>[A-Za-z_$][\w$]*)\s*=(?![=>])")
_ASSIGN_OPS = r"(?:\*\*|<<|>>>|>>|\?\?|&&|\|\||[-+*/%&|^])?="


def no_console(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Disallow console.* calls; methods listed in option 'allow' are permitted."""
    allowed = set(option_str_list(options, "allow"))
    violations: list[str] = []
    for lineno, line in iter_code_lines(target):
        for match in CONSOLE_RE.finditer(line):
            method = match.group("method")
            if method not in CONSOLE_METHODS or method in allowed:
                continue
            violations.append(f"line {lineno}: unexpected console.{method} call")
    return violations


def no_debugger(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Disallow debugger statements."""
    _ = options
    return [
        f"line {lineno}: debugger statement"
        for lineno, line in iter_code_lines(target)
        if DEBUGGER_RE.search(line)
    ]


def no_var(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Require let or const instead of var."""
    _ = options
    return [
        f"line {lineno}: use let or const instead of var: `{clip(line)}`"
        for lineno, line in iter_code_lines(target)
        if VAR_RE.search(line)
    ]


def no_explicit_any(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Disallow explicit TypeScript any types."""
    _ = options
    return [
        f"line {lineno}: explicit any type: `{clip(line)}`"
        for lineno, line in iter_code_lines(target)
        if ANY_RE.search(line)
    ]


def prefer_const(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Require const for let bindings that are never reassigned."""
    _ = options
    content = target.content
    # Diff targets only hold added lines; reassignments may sit in unchanged ones.
    context = str(target.metadata.get("context") or "")
    violations: list[str] = []
    for match in LET_RE.finditer(content):
        name = match.group("name")
        if _is_reassigned(content, name, declared_at=match.start("name")):
            continue
        if context and _is_reassigned(context, name, declared_at=-1):
            continue
        lineno = lineno_at(target, match.start())
        violations.append(f"line {lineno}: '{name}' is never reassigned; use const")
    return violations


def _is_reassigned(content: str, name: str, *, declared_at: int) -> bool:
    escaped = re.escape(name)
    assign_re = re.compile(rf"(?<![\w$.]){escaped}\s*{_ASSIGN_OPS}(?![=>])")
    for match in assign_re.finditer(content):
        if match.start() != declared_at:
            return True
    update_re = re.compile(rf"(?<![\w$.]){escaped}\s*(?:\+\+|--)|(?:\+\+|--)\s*{escaped}(?![\w$])")
    return update_re.search(content) is not None
