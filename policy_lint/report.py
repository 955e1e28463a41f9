"""Aggregate findings into a pass/fail report."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from policy_lint.evaluator import TargetError
from policy_lint.rules.base import Finding

Status = Literal["clean", "warning", "blocking"]
FAIL_ON_CHOICES = ("blocking", "warning")

STATUS_ORDER: dict[str, int] = {"clean": 0, "warning": 1, "blocking": 2}

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TARGET_ERROR = 2


@dataclass(frozen=True, slots=True)
class Report:
    """Ordered findings for one evaluation run plus the derived status."""

    findings: tuple[Finding, ...]
    status: Status
    errors: tuple[TargetError, ...] = ()

    @property
    def failed(self) -> tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if not finding.passed)

    @property
    def passed(self) -> tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if finding.passed)

    def counts(self) -> dict[str, int]:
        return {
            "total": len(self.findings),
            "passed": len(self.passed),
            "failed": len(self.failed),
            "blocking": sum(1 for finding in self.findings if finding.is_blocking_failure),
            "errors": len(self.errors),
        }

    def targets(self) -> list[str]:
        """Target paths in first-seen order."""
        seen: dict[str, None] = {}
        for finding in self.findings:
            if finding.target is not None:
                seen.setdefault(finding.target, None)
        return list(seen)


def derive_status(findings: Iterable[Finding]) -> Status:
    """Blocking if a blocking finding failed, warning if any other failed, else clean."""
    status: Status = "clean"
    for finding in findings:
        if finding.passed:
            continue
        if finding.severity == "blocking":
            return "blocking"
        status = "warning"
    return status


def build_report(
    findings: Iterable[Finding],
    errors: Iterable[TargetError] = (),
) -> Report:
    """Build a Report; pure aggregation with no I/O."""
    ordered = tuple(findings)
    return Report(findings=ordered, status=derive_status(ordered), errors=tuple(errors))


def exit_code_for(report: Report, *, fail_on: str = "blocking") -> int:
    """Map a report to a process exit code."""
    if fail_on not in FAIL_ON_CHOICES:
        raise ValueError(f"fail_on must be one of: {', '.join(FAIL_ON_CHOICES)}")
    if report.errors:
        return EXIT_TARGET_ERROR
    if STATUS_ORDER[report.status] >= STATUS_ORDER[fail_on]:
        return EXIT_FAILED
    return EXIT_OK
