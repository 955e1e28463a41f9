"""Accessibility checks for HTML and JSX markup."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from policy_lint.checks.common import clip, iter_lines, lineno_at
from policy_lint.target import Target

IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE | re.DOTALL)
ALT_ATTR_RE = re.compile(r"\balt\s*=", re.IGNORECASE)
TABINDEX_RE = re.compile(r"\btabindex\s*=\s*[\"'{]?\s*(?P<value>-?\d+)", re.IGNORECASE)


def img_alt(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Require an alt attribute on every img element."""
    _ = options
    violations: list[str] = []
    for match in IMG_TAG_RE.finditer(target.content):
        tag = match.group(0)
        if ALT_ATTR_RE.search(tag):
            continue
        lineno = lineno_at(target, match.start())
        violations.append(f"line {lineno}: <img> without alt text: `{clip(tag)}`")
    return violations


def no_positive_tabindex(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Disallow tabindex values greater than zero."""
    _ = options
    violations: list[str] = []
    for lineno, line in iter_lines(target):
        for match in TABINDEX_RE.finditer(line):
            value = int(match.group("value"))
            if value > 0:
                violations.append(f"line {lineno}: tabindex={value} breaks natural focus order")
    return violations
