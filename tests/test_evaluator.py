"""Tests for rule evaluation."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from policy_lint.checks import get_check
from policy_lint.evaluator import applies_to, evaluate, evaluate_many, evaluate_paths
from policy_lint.registry import RuleRegistry
from policy_lint.rules.base import RuleCheckError
from policy_lint.target import Target
from tests.helpers_rules import make_rule


def _always_fails(target: Target, options: Mapping[str, Any]) -> list[str]:
    _ = (target, options)
    return ["first problem", "second problem"]


def _explodes(target: Target, options: Mapping[str, Any]) -> list[str]:
    raise KeyError("boom")


def _misconfigured(target: Target, options: Mapping[str, Any]) -> list[str]:
    raise RuleCheckError("option 'pattern' is required")


def test_documentation_rule_passes_with_description() -> None:
    registry = RuleRegistry.load(
        [make_rule("names", description="Write descriptive names.", severity="blocking")]
    )
    [finding] = evaluate(Target(path="a.ts", content="let x = 1"), registry)

    assert finding.rule_id == "names"
    assert finding.passed is True
    assert finding.message == "Write descriptive names."
    assert finding.target == "a.ts"


def test_one_finding_per_applicable_rule_in_registry_order() -> None:
    registry = RuleRegistry.load(
        [
            make_rule("doc-a"),
            make_rule("fails", check=_always_fails, severity="blocking", category="x"),
            make_rule("doc-b"),
        ]
    )
    findings = evaluate(Target(path="a.ts"), registry)

    assert [finding.rule_id for finding in findings] == ["doc-a", "fails", "doc-b"]
    failing = findings[1]
    assert failing.passed is False
    assert failing.message == "first problem; second problem"
    assert failing.severity == "blocking"
    assert failing.category == "x"


def test_evaluation_is_deterministic() -> None:
    registry = RuleRegistry.load(
        [
            make_rule("no-console", check=get_check("no_console"), severity="blocking"),
            make_rule("prefer-const", check=get_check("prefer_const")),
            make_rule("doc"),
        ]
    )
    target = Target(path="a.js", content="let a = 1;\nconsole.log(a);\n")

    assert evaluate(target, registry) == evaluate(target, registry)


def test_erroring_check_is_isolated() -> None:
    registry = RuleRegistry.load(
        [
            make_rule("before"),
            make_rule("broken", check=_explodes, severity="blocking"),
            make_rule("after", check=get_check("no_debugger")),
        ]
    )
    findings = evaluate(Target(path="a.js", content="const a = 1;\n"), registry)

    assert [finding.rule_id for finding in findings] == ["before", "broken", "after"]
    broken = findings[1]
    assert broken.passed is False
    assert broken.message == "rule check errored: KeyError: 'boom'"
    assert findings[2].passed is True


def test_rule_check_error_message_is_kept() -> None:
    registry = RuleRegistry.load([make_rule("cfg", check=_misconfigured)])
    [finding] = evaluate(Target(path="a.js"), registry)

    assert finding.passed is False
    assert finding.message == "rule check errored: option 'pattern' is required"


def test_manual_rules_run_only_when_requested() -> None:
    registry = RuleRegistry.load(
        [
            make_rule("always"),
            make_rule("pr-title", trigger="manual", category="pull_request"),
            make_rule("audit", trigger="manual", category="security"),
        ]
    )

    plain = evaluate(Target(path="a.ts"), registry)
    assert [finding.rule_id for finding in plain] == ["always"]

    by_id = evaluate(Target(path="a.ts", requested=frozenset({"audit"})), registry)
    assert [finding.rule_id for finding in by_id] == ["always", "audit"]

    by_category = evaluate(Target(path="a.ts", requested=frozenset({"pull_request"})), registry)
    assert [finding.rule_id for finding in by_category] == ["always", "pr-title"]


def test_globs_limit_applicable_targets() -> None:
    rule = make_rule("tsx-only", globs=("**/*.tsx",))

    assert applies_to(rule, Target(path="src/components/Button.tsx")) is True
    assert applies_to(rule, Target(path="Button.tsx")) is True
    assert applies_to(rule, Target(path="src/util.ts")) is False


def test_long_violation_lists_are_summarized() -> None:
    def many(target: Target, options: Mapping[str, Any]) -> list[str]:
        return [f"problem {index}" for index in range(8)]

    registry = RuleRegistry.load([make_rule("many", check=many)])
    [finding] = evaluate(Target(path="a"), registry)
    assert finding.message.endswith("problem 4 (+3 more)")


def test_evaluate_many_keeps_target_order_with_workers() -> None:
    registry = RuleRegistry.load([make_rule("no-debugger", check=get_check("no_debugger"))])
    targets = [
        Target(path=f"file{index}.js", content="debugger;\n" if index % 2 else "ok();\n")
        for index in range(10)
    ]

    serial = evaluate_many(targets, registry, jobs=1)
    parallel = evaluate_many(targets, registry, jobs=4)

    assert serial == parallel
    assert [finding.target for finding in parallel] == [target.path for target in targets]
    assert [finding.passed for finding in parallel] == [index % 2 == 0 for index in range(10)]


def test_evaluate_paths_isolates_unreadable_targets(tmp_path: Path) -> None:
    good = tmp_path / "good.js"
    good.write_text("const a = 1;\n", encoding="utf-8")
    binary = tmp_path / "image.png"
    binary.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")
    missing = tmp_path / "missing.js"
    registry = RuleRegistry.load([make_rule("doc")])

    findings, errors = evaluate_paths([good, binary, missing], registry, jobs=2)

    assert [finding.target for finding in findings] == [good.as_posix()]
    assert [error.target for error in errors] == [binary.as_posix(), missing.as_posix()]
    assert "not valid UTF-8" in errors[0].message
    assert "no such file" in errors[1].message


def test_target_metadata_is_read_only() -> None:
    metadata = {"title": "x"}
    target = Target(path="a", metadata=metadata)
    metadata["title"] = "changed by caller"

    assert target.metadata["title"] == "x"
    with pytest.raises(TypeError):
        target.metadata["title"] = "y"


def test_evaluate_paths_can_skip_binary_files(tmp_path: Path) -> None:
    good = tmp_path / "good.js"
    good.write_text("const a = 1;\n", encoding="utf-8")
    binary = tmp_path / "image.png"
    binary.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")
    missing = tmp_path / "missing.js"
    registry = RuleRegistry.load([make_rule("doc")])

    findings, errors = evaluate_paths([good, binary, missing], registry, skip_binary=True)

    assert [finding.target for finding in findings] == [good.as_posix()]
    assert [error.target for error in errors] == [missing.as_posix()]
