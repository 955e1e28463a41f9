"""Targets: the artifacts rules are evaluated against.

The engine only reads targets. All I/O happens here, before evaluation, so
that ``policy_lint.evaluator.evaluate`` stays a pure function of its inputs.
"""

from __future__ import annotations

import fnmatch
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any, Literal

from policy_lint.diff_parser import parse_unified_diff

logger = logging.getLogger(__name__)

TargetKind = Literal["file", "diff", "pull_request"]

NOT_UTF8_REASON = "not valid UTF-8 text"

SKIPPED_DIRS = {".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv"}


class TargetUnreadable(RuntimeError):
    """Raised when a target cannot be read into memory."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read target {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Target:
    """An artifact to check: file content plus caller-supplied metadata."""

    path: str
    content: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    requested: frozenset[str] = frozenset()
    kind: TargetKind = "file"

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        object.__setattr__(self, "requested", frozenset(self.requested))

    def lines(self) -> list[str]:
        return self.content.splitlines()

    def matches_any(self, globs: Iterable[str]) -> bool:
        """Return True when the target path matches one of the glob patterns."""
        return any(_match_glob(self.path, pattern) for pattern in globs)


def read_target(
    path: Path,
    *,
    display_path: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    requested: Iterable[str] = (),
) -> Target:
    """Read a file into a Target, raising TargetUnreadable on failure."""
    shown = display_path or path.as_posix()
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TargetUnreadable(shown, "no such file") from exc
    except IsADirectoryError as exc:
        raise TargetUnreadable(shown, "is a directory") from exc
    except UnicodeDecodeError as exc:
        raise TargetUnreadable(shown, NOT_UTF8_REASON) from exc
    except OSError as exc:
        raise TargetUnreadable(shown, exc.strerror or str(exc)) from exc
    return Target(
        path=shown,
        content=content,
        metadata=metadata or {},
        requested=frozenset(requested),
        kind="file",
    )


def discover_target_paths(
    root: Path,
    *,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> list[Path]:
    """List files under ``root`` in stable order, honouring include/exclude globs.

    A plain file is returned as-is. A missing path is returned unchanged so the
    read step can report it as unreadable.
    """
    if not root.is_dir():
        return [root]

    found: list[Path] = []
    for candidate in sorted(root.rglob("*")):
        relative = candidate.relative_to(root)
        if any(part in SKIPPED_DIRS for part in relative.parts):
            continue
        if not candidate.is_file():
            continue
        rel_text = relative.as_posix()
        if include and not any(_match_glob(rel_text, pattern) for pattern in include):
            continue
        if exclude and any(_match_glob(rel_text, pattern) for pattern in exclude):
            continue
        found.append(candidate)
    logger.debug("discovered %d target file(s) under %s", len(found), root)
    return found


def targets_from_diff(
    diff_text: str,
    *,
    metadata: Mapping[str, Any] | None = None,
    requested: Iterable[str] = (),
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> list[Target]:
    """Build one diff-scoped Target per changed file from its added lines."""
    requested_set = frozenset(requested)
    targets: list[Target] = []
    for file_diff in parse_unified_diff(diff_text):
        if file_diff.is_deleted_file:
            continue
        path = file_diff.path
        if include and not any(_match_glob(path, pattern) for pattern in include):
            continue
        if exclude and any(_match_glob(path, pattern) for pattern in exclude):
            continue
        file_meta = dict(metadata or {})
        file_meta.setdefault("new_file", file_diff.is_new_file)
        file_meta["added_lines"] = [line.lineno for line in file_diff.added]
        file_meta["context"] = file_diff.context_text()
        targets.append(
            Target(
                path=path,
                content=file_diff.added_text(),
                metadata=file_meta,
                requested=requested_set,
                kind="diff",
            )
        )
    return targets


def pull_request_target(
    metadata: Mapping[str, Any],
    *,
    requested: Iterable[str] = (),
) -> Target:
    """Build a Target representing a pull request's title and description."""
    title = str(metadata.get("title") or "")
    description = str(metadata.get("description") or metadata.get("body") or "")
    content = f"{title}\n\n{description}".strip()
    number = metadata.get("number")
    path = f"pull-request#{number}" if number is not None else "pull-request"
    return Target(
        path=path,
        content=content,
        metadata=metadata,
        requested=frozenset(requested),
        kind="pull_request",
    )


def load_metadata_file(path: Path) -> dict[str, Any]:
    """Load a JSON object of target metadata (for example PR fields)."""
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TargetUnreadable(path.as_posix(), exc.strerror or str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ValueError(f"Metadata file {path} must contain a JSON object")
    return loaded


def parse_meta_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a dict; later keys win."""
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Metadata must be KEY=VALUE, got '{pair}'")
        parsed[key.strip()] = value
    return parsed


def _match_glob(path: str, pattern: str) -> bool:
    if fnmatch.fnmatch(path, pattern):
        return True
    # "**/*.ts" should also match top-level "a.ts".
    if pattern.startswith("**/") and fnmatch.fnmatch(path, pattern[3:]):
        return True
    return PurePosixPath(path).match(pattern)
