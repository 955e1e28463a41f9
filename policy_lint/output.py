"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from policy_lint import __version__
from policy_lint.report import Report
from policy_lint.rules.base import Finding

_STATUS_COLORS = {"clean": "green", "warning": "yellow", "blocking": "red"}


def format_finding_line(finding: Finding) -> str:
    """Render ``[PASS|FAIL] <ruleId>: <message>`` with the message on one line."""
    label = "PASS" if finding.passed else "FAIL"
    if finding.passed:
        styled = click.style(label, fg="green")
    else:
        styled = click.style(label, fg="red" if finding.severity == "blocking" else "yellow")
    return f"[{styled}] {finding.rule_id}: {_first_line(finding.message)}"


def render_human(report: Report, *, group_by_target: bool = False) -> str:
    """Render one line per finding followed by a status summary."""
    lines: list[str] = []
    if group_by_target:
        for target in report.targets():
            lines.append(click.style(f"{target}:", bold=True))
            for finding in report.findings:
                if finding.target == target:
                    lines.append(f"  {format_finding_line(finding)}")
    else:
        lines.extend(format_finding_line(finding) for finding in report.findings)

    counts = report.counts()
    color = _STATUS_COLORS[report.status]
    lines.append(
        click.style(
            f"Status: {report.status.upper()} "
            f"({counts['total']} findings, {counts['failed']} failed)",
            fg=color,
            bold=True,
        )
    )
    return "\n".join(lines)


def render_json(
    report: Report,
    *,
    target_path: str,
    rules_source: str,
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(report, target_path=target_path, rules_source=rules_source)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    report: Report,
    *,
    target_path: str,
    rules_source: str,
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "target_path": target_path,
        "rules_source": rules_source,
        "version": __version__,
    }
    return {
        "status": report.status,
        "counts": report.counts(),
        "findings": [_serialize_finding(item) for item in report.findings],
        "errors": [{"target": error.target, "message": error.message} for error in report.errors],
        "meta": meta,
    }


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "rule_id": finding.rule_id,
        "passed": finding.passed,
        "message": finding.message,
        "severity": finding.severity,
        "category": finding.category,
        "target": finding.target,
    }


def _first_line(message: str) -> str:
    for line in message.splitlines():
        if line.strip():
            return line.strip()
    return ""
