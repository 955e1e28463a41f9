"""Output rendering tests."""

from __future__ import annotations

import json

import click

from policy_lint.evaluator import TargetError
from policy_lint.output import format_finding_line, render_human, render_json
from policy_lint.report import build_report
from policy_lint.rules.base import Finding


def _plain(text: str) -> str:
    return click.unstyle(text)


def test_format_finding_line_uses_first_message_line() -> None:
    finding = Finding(
        rule_id="names",
        passed=True,
        message="\n# Naming\n\nUse descriptive names.",
        target="a.ts",
    )
    assert _plain(format_finding_line(finding)) == "[PASS] names: # Naming"


def test_render_human_lists_findings_and_status() -> None:
    report = build_report(
        [
            Finding("no-console", False, "line 2: unexpected console.log call", "blocking"),
            Finding("prefer-const", True, "Prefer const.", "warning"),
        ]
    )
    lines = _plain(render_human(report)).splitlines()

    assert lines == [
        "[FAIL] no-console: line 2: unexpected console.log call",
        "[PASS] prefer-const: Prefer const.",
        "Status: BLOCKING (2 findings, 1 failed)",
    ]


def test_render_human_groups_by_target() -> None:
    report = build_report(
        [
            Finding("doc", True, "Doc.", target="a.ts"),
            Finding("doc", True, "Doc.", target="b.ts"),
        ]
    )
    lines = _plain(render_human(report, group_by_target=True)).splitlines()

    assert lines == [
        "a.ts:",
        "  [PASS] doc: Doc.",
        "b.ts:",
        "  [PASS] doc: Doc.",
        "Status: CLEAN (2 findings, 0 failed)",
    ]


def test_render_json_payload() -> None:
    finding = Finding(
        rule_id="prefer-const",
        passed=False,
        message="line 1: 'a' is never reassigned",
        severity="warning",
        category="style",
        target="a.js",
    )
    report = build_report(
        [finding],
        [TargetError(target="b.js", message="Cannot read target b.js: no such file")],
    )
    payload = json.loads(render_json(report, target_path="src", rules_source=".rules"))

    assert payload["status"] == "warning"
    assert payload["counts"]["errors"] == 1
    assert payload["findings"] == [
        {
            "rule_id": "prefer-const",
            "passed": False,
            "message": "line 1: 'a' is never reassigned",
            "severity": "warning",
            "category": "style",
            "target": "a.js",
        }
    ]
    assert payload["errors"] == [
        {"target": "b.js", "message": "Cannot read target b.js: no such file"}
    ]
    assert payload["meta"]["target_path"] == "src"
    assert payload["meta"]["rules_source"] == ".rules"
    assert payload["meta"]["generated_at"].endswith("Z")
