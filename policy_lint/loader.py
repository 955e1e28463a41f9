"""Load rules from Markdown documents with YAML front matter.

A rule document looks like::

    ---
    id: no-console
    trigger: always_on
    category: quality
    severity: blocking
    check: no_console
    globs: ["**/*.ts", "**/*.tsx"]
    ---
    Remove console logging before merging.

Front-matter keys map onto ``Rule`` fields and the body becomes the rule
description.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from policy_lint.checks import get_check
from policy_lint.registry import RuleRegistry
from policy_lint.rules.base import SEVERITIES, TRIGGERS, Check, Rule

logger = logging.getLogger(__name__)

RULE_SUFFIXES = (".md", ".mdc")
FENCE = "---"
KNOWN_KEYS = {
    "id",
    "trigger",
    "alwaysApply",
    "category",
    "severity",
    "description",
    "check",
    "options",
    "globs",
    "title",
}


class RuleSourceError(ValueError):
    """Raised when a rule document cannot be turned into a Rule."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Split a document into (front matter, body). Front matter is None when absent."""
    lines = text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].strip() != FENCE:
        return (None, text)
    for index in range(1, len(lines)):
        if lines[index].strip() == FENCE:
            return ("\n".join(lines[1:index]), "\n".join(lines[index + 1 :]))
    raise ValueError("front matter opened with '---' but never closed")


def parse_rule_text(text: str, *, source: str, default_id: str) -> Rule:
    """Parse one rule document's text into a Rule."""
    try:
        header, body = split_front_matter(text)
    except ValueError as exc:
        raise RuleSourceError(source, str(exc)) from exc

    mapping = _load_front_matter(header, source=source)
    unknown = sorted(key for key in mapping if key not in KNOWN_KEYS)
    if unknown:
        logger.debug("%s: ignoring unknown front-matter keys %s", source, unknown)

    rule_id = _as_str(mapping.get("id", default_id), "id", source).strip()
    if not rule_id:
        raise RuleSourceError(source, "id must be a non-empty string")

    description = body.strip() or _as_str(mapping.get("description", ""), "description", source)
    check_name = mapping.get("check")
    check: Check | None = None
    if check_name is not None:
        check_name = _as_str(check_name, "check", source)
        try:
            check = get_check(check_name)
        except ValueError as exc:
            raise RuleSourceError(source, str(exc)) from exc

    options = mapping.get("options") or {}
    if not isinstance(options, dict):
        raise RuleSourceError(source, "options must be a mapping")

    title = mapping.get("title")
    return Rule(
        id=rule_id,
        trigger=_parse_trigger(mapping, source),
        category=_as_str(mapping.get("category", "general"), "category", source),
        description=description,
        severity=_as_choice(mapping.get("severity", "info"), SEVERITIES, "severity", source),
        check=check,
        check_name=check_name,
        options=options,
        globs=_parse_globs(mapping.get("globs"), source),
        title=_as_str(title, "title", source) if title is not None else None,
        source=source,
    )


def load_rule_file(path: Path, *, base_dir: Path | None = None) -> Rule:
    """Load a single rule document."""
    source = path.relative_to(base_dir).as_posix() if base_dir else path.as_posix()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RuleSourceError(source, f"cannot read rule document: {exc}") from exc
    return parse_rule_text(text, source=source, default_id=path.stem)


def discover_rule_files(directory: Path) -> list[Path]:
    """List rule documents under a directory in stable, path-sorted order."""
    if not directory.exists():
        raise RuleSourceError(directory.as_posix(), "rules directory does not exist")
    if directory.is_file():
        return [directory]
    return sorted(
        (
            path
            for path in directory.rglob("*")
            if path.is_file() and path.suffix.lower() in RULE_SUFFIXES
        ),
        key=lambda path: path.relative_to(directory).as_posix(),
    )


def load_rule_dir(directory: Path) -> list[Rule]:
    """Load every rule document under a directory."""
    base_dir = directory if directory.is_dir() else directory.parent
    rules = [load_rule_file(path, base_dir=base_dir) for path in discover_rule_files(directory)]
    logger.info("loaded %d rule(s) from %s", len(rules), directory)
    return rules


def load_registry(directory: Path) -> RuleRegistry:
    """Load a directory of rule documents into a registry."""
    return RuleRegistry.load(load_rule_dir(directory))


def _load_front_matter(header: str | None, *, source: str) -> dict[str, Any]:
    if header is None or not header.strip():
        return {}
    try:
        loaded = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise RuleSourceError(source, f"invalid YAML front matter: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise RuleSourceError(source, "front matter must be a mapping")
    return loaded


def _parse_trigger(mapping: dict[str, Any], source: str) -> Any:
    if "trigger" in mapping:
        return _as_choice(mapping["trigger"], TRIGGERS, "trigger", source)
    always_apply = mapping.get("alwaysApply")
    if always_apply is None:
        return "always_on"
    if not isinstance(always_apply, bool):
        raise RuleSourceError(source, "alwaysApply must be a boolean")
    return "always_on" if always_apply else "manual"


def _parse_globs(value: Any, source: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(item.strip() for item in value if item.strip())
    raise RuleSourceError(source, "globs must be a string or a list of strings")


def _as_str(value: Any, field_name: str, source: str) -> str:
    if not isinstance(value, str):
        raise RuleSourceError(source, f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: tuple[str, ...], field_name: str, source: str) -> Any:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(allowed)
        raise RuleSourceError(source, f"{field_name} must be one of: {choices}")
    return value
