"""Unified diff parsing for diff-scoped targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from re import Match, compile

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)

DEV_NULL = "/dev/null"


@dataclass(slots=True)
class DiffLine:
    """A new-side line of a hunk, with its line number in the new file."""

    lineno: int
    content: str


@dataclass(slots=True)
class FileDiff:
    """Added and unchanged context lines for one file in a unified diff."""

    old_path: str | None
    new_path: str | None
    added: list[DiffLine] = field(default_factory=list)
    context: list[DiffLine] = field(default_factory=list)
    hunk_count: int = 0

    @property
    def path(self) -> str:
        """Best-effort canonical path for reporting."""
        if self.new_path and self.new_path != DEV_NULL:
            return self.new_path
        if self.old_path and self.old_path != DEV_NULL:
            return self.old_path
        return "<unknown>"

    @property
    def is_new_file(self) -> bool:
        return self.old_path == DEV_NULL and self.new_path not in {None, DEV_NULL}

    @property
    def is_deleted_file(self) -> bool:
        return self.new_path == DEV_NULL and self.old_path not in {None, DEV_NULL}

    def added_text(self) -> str:
        """Join added lines into the text a check sees."""
        return "\n".join(line.content for line in self.added)

    def context_text(self) -> str:
        """Join the unchanged lines the hunks show around the additions."""
        return "\n".join(line.content for line in self.context)


def parse_unified_diff(diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into the new-side lines of each file."""
    files: list[FileDiff] = []
    current: FileDiff | None = None
    old_remaining = 0
    new_remaining = 0
    new_lineno = 0

    for raw_line in diff_text.splitlines():
        in_hunk = old_remaining > 0 or new_remaining > 0

        if in_hunk and current is not None:
            if raw_line.startswith("+"):
                current.added.append(DiffLine(lineno=new_lineno, content=raw_line[1:]))
                new_lineno += 1
                new_remaining -= 1
            elif raw_line.startswith("-"):
                old_remaining -= 1
            elif raw_line.startswith(" ") or raw_line == "":
                current.context.append(DiffLine(lineno=new_lineno, content=raw_line[1:]))
                new_lineno += 1
                old_remaining -= 1
                new_remaining -= 1
            continue

        if raw_line.startswith("diff --git "):
            if current is not None:
                files.append(current)
            current = _file_from_git_header(raw_line)
            continue

        if raw_line.startswith("--- "):
            if current is None or current.hunk_count:
                if current is not None:
                    files.append(current)
                current = FileDiff(old_path=None, new_path=None)
            current.old_path = _parse_path(raw_line[4:])
            continue

        if raw_line.startswith("+++ "):
            if current is None:
                current = FileDiff(old_path=None, new_path=None)
            current.new_path = _parse_path(raw_line[4:])
            continue

        if raw_line.startswith("@@ "):
            if current is None:
                current = FileDiff(old_path=None, new_path=None)
            old_remaining, new_start, new_remaining = _parse_hunk_header(raw_line)
            new_lineno = new_start
            current.hunk_count += 1

    if current is not None:
        files.append(current)
    return files


def _file_from_git_header(line: str) -> FileDiff:
    parts = line.split(maxsplit=3)
    old_path = _strip_ab_prefix(parts[2]) if len(parts) > 2 else None
    new_path = _strip_ab_prefix(parts[3]) if len(parts) > 3 else None
    return FileDiff(old_path=old_path, new_path=new_path)


def _parse_path(value: str) -> str:
    token = value.strip().split("\t", 1)[0]
    return _strip_ab_prefix(token)


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _parse_hunk_header(header: str) -> tuple[int, int, int]:
    """Return (old_count, new_start, new_count) for a hunk header."""
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise ValueError(f"Invalid hunk header: {header}")

    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1
    return (old_count, int(match.group("new_start")), new_count)
