"""Apply registered rules to targets and collect findings."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from policy_lint.registry import RuleRegistry
from policy_lint.rules.base import Finding, Rule, RuleCheckError
from policy_lint.target import NOT_UTF8_REASON, Target, TargetUnreadable, read_target

logger = logging.getLogger(__name__)

MAX_VIOLATIONS_IN_MESSAGE = 5


@dataclass(frozen=True, slots=True)
class TargetError:
    """A target that could not be evaluated."""

    target: str
    message: str


def applies_to(rule: Rule, target: Target) -> bool:
    """Return True when a rule's trigger and globs select this target."""
    if rule.trigger == "manual":
        if rule.id not in target.requested and rule.category not in target.requested:
            return False
    if rule.globs and not target.matches_any(rule.globs):
        return False
    return True


def evaluate(target: Target, registry: RuleRegistry) -> list[Finding]:
    """Evaluate every applicable rule against one target, one Finding per rule."""
    findings: list[Finding] = []
    for rule in registry:
        if not applies_to(rule, target):
            continue
        findings.append(_run_rule(rule, target))
    return findings


def evaluate_many(
    targets: Iterable[Target],
    registry: RuleRegistry,
    *,
    jobs: int = 1,
) -> list[Finding]:
    """Evaluate independent targets, optionally in parallel, keeping target order."""
    items = list(targets)
    if jobs > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            per_target = list(pool.map(lambda item: evaluate(item, registry), items))
    else:
        per_target = [evaluate(item, registry) for item in items]
    return [finding for findings in per_target for finding in findings]


def evaluate_paths(
    paths: Iterable[Path],
    registry: RuleRegistry,
    *,
    jobs: int = 1,
    requested: Iterable[str] = (),
    metadata: Mapping[str, Any] | None = None,
    display: Callable[[Path], str] | None = None,
    skip_binary: bool = False,
) -> tuple[list[Finding], list[TargetError]]:
    """Read and evaluate files; an unreadable file fails only its own target.

    With ``skip_binary`` (used for files found by walking a directory), files
    that are not UTF-8 text are skipped instead of reported as errors.
    """
    requested_set = frozenset(requested)

    def _run_one(path: Path) -> tuple[list[Finding], TargetError | None]:
        shown = display(path) if display else path.as_posix()
        try:
            target = read_target(
                path,
                display_path=shown,
                metadata=metadata,
                requested=requested_set,
            )
        except TargetUnreadable as exc:
            if skip_binary and exc.reason == NOT_UTF8_REASON:
                logger.debug("skipping non-text file %s", exc.path)
                return ([], None)
            logger.info("%s", exc)
            return ([], TargetError(target=exc.path, message=str(exc)))
        return (evaluate(target, registry), None)

    items = list(paths)
    if jobs > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            results = list(pool.map(_run_one, items))
    else:
        results = [_run_one(path) for path in items]

    findings: list[Finding] = []
    errors: list[TargetError] = []
    for produced, error in results:
        findings.extend(produced)
        if error is not None:
            errors.append(error)
    return (findings, errors)


def _run_rule(rule: Rule, target: Target) -> Finding:
    if rule.check is None:
        return _finding(rule, target, passed=True, message=rule.description)

    try:
        violations = rule.check(target, rule.options)
    except Exception as exc:
        error = exc if isinstance(exc, RuleCheckError) else RuleCheckError(
            f"{exc.__class__.__name__}: {exc}"
        )
        logger.warning("rule %s errored on %s: %s", rule.id, target.path, error)
        return _finding(rule, target, passed=False, message=f"rule check errored: {error}")

    if not violations:
        return _finding(rule, target, passed=True, message=rule.title or rule.description)
    return _finding(rule, target, passed=False, message=_summarize(violations))


def _finding(rule: Rule, target: Target, *, passed: bool, message: str) -> Finding:
    return Finding(
        rule_id=rule.id,
        passed=passed,
        message=message,
        severity=rule.severity,
        category=rule.category,
        target=target.path,
    )


def _summarize(violations: list[str]) -> str:
    shown = violations[:MAX_VIOLATIONS_IN_MESSAGE]
    message = "; ".join(shown)
    remaining = len(violations) - len(shown)
    if remaining > 0:
        message += f" (+{remaining} more)"
    return message
