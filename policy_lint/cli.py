"""CLI entrypoint for policy-lint."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from policy_lint import __version__
from policy_lint.checks import list_check_info
from policy_lint.config import AppConfig, default_config_template, load_app_config
from policy_lint.evaluator import TargetError, evaluate_many, evaluate_paths
from policy_lint.loader import RuleSourceError, load_registry
from policy_lint.log import LOG_LEVELS, configure_logging
from policy_lint.output import render_human, render_json
from policy_lint.registry import DuplicateRuleId, RuleRegistry
from policy_lint.report import Report, build_report, exit_code_for
from policy_lint.target import (
    TargetUnreadable,
    discover_target_paths,
    load_metadata_file,
    parse_meta_pairs,
    pull_request_target,
    targets_from_diff,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="policy-lint",
    no_args_is_help=True,
    help="Evaluate Markdown policy rules against files, diffs, and pull requests.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="debug|info|warning|error (default from config)."),
    ] = None,
    log_json: Annotated[
        bool, typer.Option("--log-json", help="Emit log records as JSON lines.")
    ] = False,
) -> None:
    """Root command callback."""
    _ = version
    if log_level is not None and log_level.lower() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"must be one of: {', '.join(LOG_LEVELS)}", param_hint="--log-level"
        )
    ctx.obj = {"log_level": log_level, "log_json": log_json}
    configure_logging(log_level or "warning", structured_json=log_json)


@app.command("evaluate")
def evaluate_command(
    ctx: typer.Context,
    target_path: Annotated[
        Path,
        typer.Argument(help="File or directory to check ('-' reads a diff from stdin)."),
    ],
    rules: Annotated[
        Path | None, typer.Option("--rules", help="Directory of rule documents.")
    ] = None,
    repo: Annotated[Path, typer.Option(help="Repository path (config lookup root).")] = Path("."),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    trigger: Annotated[
        list[str] | None,
        typer.Option("--trigger", help="Request a manual rule by id or category."),
    ] = None,
    meta: Annotated[
        list[str] | None, typer.Option("--meta", help="Target metadata as KEY=VALUE.")
    ] = None,
    meta_file: Annotated[
        Path | None, typer.Option("--meta-file", help="JSON object of target metadata.")
    ] = None,
    diff: Annotated[
        bool, typer.Option("--diff", help="Treat TARGET_PATH as a unified diff.")
    ] = False,
    pull_request: Annotated[
        bool,
        typer.Option(
            "--pull-request",
            help="Treat TARGET_PATH as a JSON pull request (title, description).",
        ),
    ] = False,
    include: Annotated[list[str] | None, typer.Option(help="Include glob pattern.")] = None,
    exclude: Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")] = None,
    jobs: Annotated[int | None, typer.Option(help="Parallel workers for many targets.")] = None,
    fail_on: Annotated[
        str | None,
        typer.Option("--fail-on", help="blocking|warning", show_default="blocking"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Evaluate rules against a target and exit 1 when the report is blocking."""
    app_config = _load_config_or_raise(repo, config_file)
    _apply_config_log_level(ctx, app_config)

    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    resolved_fail_on = (fail_on or app_config.fail_on).lower()
    if resolved_fail_on not in {"blocking", "warning"}:
        raise typer.BadParameter("must be one of: blocking, warning", param_hint="--fail-on")
    resolved_jobs = jobs if jobs is not None else app_config.jobs
    if resolved_jobs <= 0:
        raise typer.BadParameter("must be > 0", param_hint="--jobs")
    if diff and pull_request:
        raise typer.BadParameter("Use either --diff or --pull-request, not both.")

    rules_dir = _resolve_rules_dir(repo, rules, app_config)
    registry = _load_registry_or_raise(rules_dir, app_config)
    requested = [*app_config.triggers, *(trigger or [])]
    metadata = _resolve_metadata(meta, meta_file)
    include_patterns = include if include is not None else app_config.include
    exclude_patterns = exclude if exclude is not None else app_config.exclude

    try:
        if diff:
            diff_text = _read_diff_text(target_path)
            targets = targets_from_diff(
                diff_text,
                metadata=metadata,
                requested=requested,
                include=include_patterns,
                exclude=exclude_patterns,
            )
            report = build_report(evaluate_many(targets, registry, jobs=resolved_jobs))
        elif pull_request:
            pr_meta = {**load_metadata_file(target_path), **metadata}
            target = pull_request_target(pr_meta, requested=requested)
            report = build_report(evaluate_many([target], registry))
        else:
            report = _evaluate_files(
                target_path,
                registry,
                requested=requested,
                metadata=metadata,
                include=include_patterns,
                exclude=exclude_patterns,
                jobs=resolved_jobs,
            )
    except TargetUnreadable as exc:
        report = build_report([], [TargetError(target=exc.path, message=str(exc))])
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    for error in report.errors:
        typer.echo(f"error: {error.message}", err=True)

    if output_format == "json":
        typer.echo(
            render_json(report, target_path=str(target_path), rules_source=str(rules_dir))
        )
    else:
        grouped = diff or target_path.is_dir() or len(report.targets()) > 1
        typer.echo(render_human(report, group_by_target=grouped))

    code = exit_code_for(report, fail_on=resolved_fail_on)
    logger.info("status=%s exit_code=%d", report.status, code)
    if code:
        raise typer.Exit(code=code)


@app.command("rules")
def rules_command(
    ctx: typer.Context,
    rules: Annotated[
        Path | None, typer.Option("--rules", help="Directory of rule documents.")
    ] = None,
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the rules loaded from a rules directory."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    _apply_config_log_level(ctx, app_config)
    rules_dir = _resolve_rules_dir(repo, rules, app_config)
    all_rules = _load_registry_or_raise(rules_dir, None)
    active_ids = {rule.id for rule in _select_or_raise(all_rules, app_config)}

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "id": rule.id,
                    "trigger": rule.trigger,
                    "category": rule.category,
                    "severity": rule.severity,
                    "check": rule.check_name,
                    "globs": list(rule.globs),
                    "source": rule.source,
                    "enabled": rule.id in active_ids,
                }
                for rule in all_rules
            ],
            "meta": {"rules_source": str(rules_dir), "config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [f"Rules in {rules_dir}:"]
    for rule in all_rules:
        status = "enabled" if rule.id in active_ids else "disabled"
        kind = rule.check_name or "documentation"
        lines.append(
            f"- {rule.id} [{status}] {rule.severity}/{rule.trigger} "
            f"({rule.category}, {kind})"
        )
    typer.echo("\n".join(lines))


@app.command("checks")
def checks_command(
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """List built-in checks that rule documents can reference."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    infos = list_check_info()
    if output_format == "json":
        payload = {
            "checks": [
                {"name": info.name, "group": info.group, "description": info.description}
                for info in infos
            ]
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Built-in checks:"]
    for info in infos:
        lines.append(f"- {info.name} [{info.group}] - {info.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    payload = app_config.to_dict()

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- rules_dir: {payload['rules_dir']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- triggers: {payload['triggers']}",
        f"- jobs: {payload['jobs']}",
        f"- fail_on: {payload['fail_on']}",
        f"- log_level: {payload['log_level']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".policy-lint.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".policy-lint.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file together with the rules directory it points at."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    rules_dir = _resolve_rules_dir(repo, None, app_config)
    registry = _load_registry_or_raise(rules_dir, app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "rules_dir": str(rules_dir),
        "active_rule_ids": [rule.id for rule in registry],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- rules_dir: {payload['rules_dir']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _evaluate_files(
    target_path: Path,
    registry: RuleRegistry,
    *,
    requested: list[str],
    metadata: dict[str, Any],
    include: list[str],
    exclude: list[str],
    jobs: int,
) -> Report:
    paths = discover_target_paths(target_path, include=include, exclude=exclude)
    base_dir = target_path if target_path.is_dir() else None

    def display(path: Path) -> str:
        if base_dir is not None:
            return path.relative_to(base_dir).as_posix()
        return path.as_posix()

    findings, errors = evaluate_paths(
        paths,
        registry,
        jobs=jobs,
        requested=requested,
        metadata=metadata,
        display=display,
        skip_binary=base_dir is not None,
    )
    return build_report(findings, errors)


def _read_diff_text(target_path: Path) -> str:
    if str(target_path) == "-":
        return sys.stdin.read()
    try:
        return target_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TargetUnreadable(target_path.as_posix(), str(exc)) from exc


def _resolve_metadata(meta: list[str] | None, meta_file: Path | None) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    try:
        if meta_file is not None:
            metadata.update(load_metadata_file(meta_file))
        metadata.update(parse_meta_pairs(meta or []))
    except (ValueError, TargetUnreadable) as exc:
        raise typer.BadParameter(str(exc), param_hint="--meta/--meta-file") from exc
    return metadata


def _resolve_rules_dir(repo: Path, rules: Path | None, app_config: AppConfig) -> Path:
    if rules is not None:
        return rules
    configured = Path(app_config.rules_dir)
    return configured if configured.is_absolute() else repo / configured


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _load_registry_or_raise(rules_dir: Path, app_config: AppConfig | None) -> RuleRegistry:
    try:
        registry = load_registry(rules_dir)
    except (RuleSourceError, DuplicateRuleId) as exc:
        raise typer.BadParameter(str(exc), param_hint="--rules") from exc
    if app_config is None:
        return registry
    return _select_or_raise(registry, app_config)


def _select_or_raise(registry: RuleRegistry, app_config: AppConfig) -> RuleRegistry:
    try:
        return registry.select(enable=app_config.rule_enable, disable=app_config.rule_disable)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _apply_config_log_level(ctx: typer.Context, app_config: AppConfig) -> None:
    state = ctx.obj or {}
    if state.get("log_level") is None and app_config.log_level != "warning":
        configure_logging(app_config.log_level, structured_json=bool(state.get("log_json")))
