"""Security checklist checks."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from policy_lint.checks.common import iter_lines
from policy_lint.target import Target

SECRET_PATTERNS = [
    (
        re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY"),
        "private key material",
    ),
    (re.compile(r"\bAKIA[0-9A-Z]{16}\b"), "AWS access key id"),
    (re.compile(r"\bgh[pousr]_[A-Za-z0-9]{36,}\b"), "GitHub token"),
    (
        re.compile(
            r"(?i)\b(?:api[_-]?key|secret|passw(?:or)?d|auth[_-]?token|access[_-]?token)"
            r"\w*\s*[:=]\s*[\"'][^\"'\s]{8,}[\"']"
        ),
        "hard-coded credential",
    ),
]


def no_hardcoded_secrets(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Disallow credentials and private keys committed in source."""
    _ = options
    violations: list[str] = []
    for lineno, line in iter_lines(target):
        for pattern, label in SECRET_PATTERNS:
            if pattern.search(line):
                violations.append(f"line {lineno}: possible {label}")
                break
    return violations
