"""Tests for unified diff parsing."""

import pytest

from policy_lint.diff_parser import parse_unified_diff
from tests.helpers_diffs import NEW_AND_DELETED_DIFF, SIMPLE_DIFF


def test_parse_simple_diff() -> None:
    parsed = parse_unified_diff(SIMPLE_DIFF)
    assert len(parsed) == 1

    file_diff = parsed[0]
    assert file_diff.path == "src/app.ts"
    assert file_diff.is_new_file is False
    assert file_diff.is_deleted_file is False
    assert file_diff.hunk_count == 1
    assert [(line.lineno, line.content) for line in file_diff.added] == [
        (2, "console.log(a);"),
        (3, "let b = 2;"),
    ]
    assert file_diff.added_text() == "console.log(a);\nlet b = 2;"


def test_parse_new_and_deleted_files() -> None:
    deleted_file, new_file = parse_unified_diff(NEW_AND_DELETED_DIFF)

    assert deleted_file.path == "tests/legacy.txt"
    assert deleted_file.is_deleted_file is True
    assert deleted_file.added == []

    assert new_file.path == "docs/new.md"
    assert new_file.is_new_file is True
    assert [line.lineno for line in new_file.added] == [1, 2]


def test_removed_line_that_looks_like_a_file_header() -> None:
    diff_text = "\n".join(
        [
            "--- a/query.sql",
            "+++ b/query.sql",
            "@@ -1,2 +1,2 @@",
            "--- old comment",
            "+-- new comment",
            " SELECT 1;",
        ]
    )
    [file_diff] = parse_unified_diff(diff_text)

    assert file_diff.path == "query.sql"
    assert [(line.lineno, line.content) for line in file_diff.added] == [(1, "-- new comment")]


def test_multiple_hunks_track_new_line_numbers() -> None:
    diff_text = "\n".join(
        [
            "--- a/a.js",
            "+++ b/a.js",
            "@@ -1 +1,2 @@",
            " one",
            "+two",
            "@@ -10,2 +11,3 @@ function f() {",
            " ten",
            "+eleven",
            " twelve",
        ]
    )
    [file_diff] = parse_unified_diff(diff_text)

    assert file_diff.hunk_count == 2
    assert [line.lineno for line in file_diff.added] == [2, 12]


def test_invalid_hunk_header() -> None:
    with pytest.raises(ValueError, match="Invalid hunk header"):
        parse_unified_diff("--- a/x\n+++ b/x\n@@ -a +1 @@\n+x\n")


def test_context_lines_are_kept_with_new_line_numbers() -> None:
    [file_diff] = parse_unified_diff(SIMPLE_DIFF)

    assert [(line.lineno, line.content) for line in file_diff.context] == [
        (1, "const a = 1;"),
        (4, "export {};"),
    ]
    assert file_diff.context_text() == "const a = 1;\nexport {};"
