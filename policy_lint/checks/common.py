"""Helpers shared by built-in checks."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any

from policy_lint.rules.base import RuleCheckError
from policy_lint.target import Target

MAX_SNIPPET = 60


def iter_lines(target: Target) -> Iterator[tuple[int, str]]:
    """Yield ``(lineno, text)`` pairs, using real file line numbers for diff targets."""
    numbers = target.metadata.get("added_lines")
    for index, line in enumerate(target.lines()):
        if isinstance(numbers, (list, tuple)) and index < len(numbers):
            yield (int(numbers[index]), line)
        else:
            yield (index + 1, line)


def iter_code_lines(target: Target) -> Iterator[tuple[int, str]]:
    """Like ``iter_lines`` but skips lines that are only a comment."""
    for lineno, line in iter_lines(target):
        stripped = line.lstrip()
        if stripped.startswith(("//", "/*", "*")):
            continue
        yield (lineno, line)


def lineno_at(target: Target, offset: int) -> int:
    """Map a character offset in the target content to a line number."""
    index = target.content.count("\n", 0, offset)
    numbers = target.metadata.get("added_lines")
    if isinstance(numbers, (list, tuple)) and index < len(numbers):
        return int(numbers[index])
    return index + 1


def clip(text: str, max_len: int = MAX_SNIPPET) -> str:
    stripped = text.strip()
    if len(stripped) <= max_len:
        return stripped
    return stripped[: max_len - 3] + "..."


def option_int(options: Mapping[str, Any], key: str, default: int) -> int:
    raw = options.get(key, default)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise RuleCheckError(f"option '{key}' must be an integer, got {raw!r}")
    return raw


def option_str(options: Mapping[str, Any], key: str, default: str | None = None) -> str:
    raw = options.get(key, default)
    if raw is None:
        raise RuleCheckError(f"option '{key}' is required")
    if not isinstance(raw, str):
        raise RuleCheckError(f"option '{key}' must be a string, got {raw!r}")
    return raw


def option_str_list(options: Mapping[str, Any], key: str) -> list[str]:
    raw = options.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise RuleCheckError(f"option '{key}' must be a list of strings")
    return list(raw)


def compile_option_regex(options: Mapping[str, Any], key: str = "pattern") -> re.Pattern[str]:
    pattern = option_str(options, key)
    flags = re.MULTILINE
    if options.get("ignore_case") is True:
        flags |= re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise RuleCheckError(f"invalid regex in option '{key}': {exc}") from exc
