"""Pull request hygiene checks.

These read the target's metadata (``title``, ``description`` or ``body``)
rather than its content, so they are normally declared with
``trigger: manual`` and requested for pull-request targets.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from policy_lint.checks.common import (
    compile_option_regex,
    option_int,
    option_str_list,
)
from policy_lint.target import Target

CONVENTIONAL_TITLE = (
    r"^(?:build|chore|ci|docs|feat|fix|perf|refactor|revert|style|test)"
    r"(?:\([\w\-./ ]+\))?!?: \S.*$"
)


def pr_description(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Require a pull request description, optionally with given sections."""
    min_length = option_int(options, "min_length", 1)
    description = str(
        target.metadata.get("description") or target.metadata.get("body") or ""
    ).strip()

    violations: list[str] = []
    if len(description) < min_length:
        if not description:
            violations.append("pull request description is empty")
        else:
            violations.append(
                f"pull request description has {len(description)} characters "
                f"(min {min_length})"
            )

    lowered = description.lower()
    for section in option_str_list(options, "required_sections"):
        if section.lower() not in lowered:
            violations.append(f"pull request description is missing section '{section}'")
    return violations


def pr_title(target: Target, options: Mapping[str, Any]) -> list[str]:
    """Require a pull request title matching option 'pattern' (Conventional Commits by default)."""
    title = str(target.metadata.get("title") or "").strip()
    if not title:
        return ["pull request title is missing"]

    violations: list[str] = []
    regex = compile_option_regex({"pattern": CONVENTIONAL_TITLE, **dict(options)})
    if not regex.search(title):
        violations.append(f"pull request title '{title}' does not match /{regex.pattern}/")

    max_length = option_int(options, "max_length", 72)
    if len(title) > max_length:
        violations.append(f"pull request title has {len(title)} characters (max {max_length})")
    return violations

