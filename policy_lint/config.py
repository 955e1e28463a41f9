"""Configuration loading for policy-lint."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from policy_lint.log import LOG_LEVELS

CONFIG_FILENAMES = (".policy-lint.toml", "policy-lint.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("policy_lint", "policy-lint")

DEFAULT_RULES_DIR = ".rules"
FAIL_ON_LEVELS = ("blocking", "warning")


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    rules_dir: str = DEFAULT_RULES_DIR
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    triggers: list[str] = field(default_factory=list)
    jobs: int = 1
    fail_on: str = "blocking"
    log_level: str = "warning"
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "rules_dir": self.rules_dir,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "triggers": list(self.triggers),
            "jobs": self.jobs,
            "fail_on": self.fail_on,
            "log_level": self.log_level,
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            f'rules_dir = "{DEFAULT_RULES_DIR}"',
            'include = ["src/**"]',
            'exclude = ["**/*.snap", "dist/**"]',
            "# Manual rules (by id or category) to request on every run.",
            "triggers = []",
            "jobs = 4",
            '# "warning" also fails the run when only non-blocking rules fail.',
            'fail_on = "blocking"',
            'log_level = "warning"',
            "",
            "[rules]",
            '# enable = ["no-console", "prefer-const"]',
            "disable = []",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_table = mapping.get("rules", {})
    if not isinstance(rules_table, dict):
        raise ValueError("rules must be a table/object")

    format_value = str(mapping.get("format", "human")).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    jobs = mapping.get("jobs", 1)
    if isinstance(jobs, bool) or not isinstance(jobs, int):
        raise ValueError("jobs must be an integer")
    if jobs <= 0:
        raise ValueError("jobs must be > 0")

    rules_dir = mapping.get("rules_dir", DEFAULT_RULES_DIR)
    if not isinstance(rules_dir, str):
        raise ValueError("rules_dir must be a string")

    enable = rules_table.get("enable")
    return AppConfig(
        format=format_value,
        rules_dir=rules_dir,
        include=_str_list(mapping, "include"),
        exclude=_str_list(mapping, "exclude"),
        triggers=_str_list(mapping, "triggers"),
        jobs=jobs,
        fail_on=_choice(mapping, "fail_on", "blocking", FAIL_ON_LEVELS),
        log_level=_choice(mapping, "log_level", "warning", LOG_LEVELS),
        rule_enable=None if enable is None else _str_list(rules_table, "enable", prefix="rules."),
        rule_disable=_str_list(rules_table, "disable", prefix="rules."),
        source=source,
    )


def _str_list(table: dict[str, Any], key: str, *, prefix: str = "") -> list[str]:
    value = table.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{prefix}{key} must be a list of strings")
    return list(value)


def _choice(table: dict[str, Any], key: str, default: str, allowed: tuple[str, ...]) -> str:
    value = str(table.get(key, default)).lower()
    if value not in allowed:
        raise ValueError(f"{key} must be one of: {', '.join(allowed)}")
    return value
