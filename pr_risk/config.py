"""Configuration loading for pr-risk."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pr_risk.analyzers.base import Severity

CONFIG_FILENAMES = (".pr-risk.toml", "pr-risk.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("pr_risk", "pr-risk")
OUTPUT_FORMATS = {"human", "markdown", "json"}


@dataclass(slots=True)
class SecurityConfig:
    """Security analyzer settings."""

    patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"patterns": list(self.patterns)}


@dataclass(slots=True)
class StyleConfig:
    """Style analyzer settings."""

    layers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"layers": list(self.layers)}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on: Severity | None = None
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on": self.fail_on.name.lower() if self.fail_on is not None else None,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "security": self.security.to_dict(),
            "style": self.style.to_dict(),
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Resolve configuration for ``repo``.

    An explicit ``config_path`` wins, relative paths resolving against the
    repository. Otherwise the first of ``.pr-risk.toml``, ``pr-risk.toml`` and
    a ``[tool.pr_risk]`` table in ``pyproject.toml`` is used.
    """
    repo = repo.resolve()
    if config_path is not None:
        explicit = config_path if config_path.is_absolute() else repo / config_path
        if not explicit.exists():
            raise ValueError(f"Config file does not exist: {explicit}")
        loaded = _config_from_file(explicit)
        return loaded if loaded is not None else AppConfig(source=str(explicit))

    candidates = [repo / name for name in CONFIG_FILENAMES]
    candidates.append(repo / PYPROJECT_FILENAME)
    for candidate in candidates:
        if not candidate.exists():
            continue
        loaded = _config_from_file(candidate)
        if loaded is not None:
            return loaded
    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'fail_on = "high"',
            'include = ["src/**"]',
            'exclude = ["docs/**"]',
            "",
            "[security]",
            "patterns = [",
            '  "TODO.*security",',
            '  "verify\\\\s*=\\\\s*False",',
            "]",
            "",
            "[style]",
            "# Top of the stack first; a layer may not import the ones above it.",
            'layers = ["api", "domain", "infra"]',
            "",
        ]
    )


def _config_from_file(path: Path) -> AppConfig | None:
    """Build config from one file; ``None`` for a pyproject without our table."""
    document = _read_toml(path)
    section = _tool_section(document)
    if section is None:
        if path.name == PYPROJECT_FILENAME:
            return None
        section = document
    return _from_mapping(section, source=str(path))


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc


def _tool_section(document: dict[str, Any]) -> dict[str, Any] | None:
    tool = document.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        if isinstance(tool.get(key), dict):
            return tool[key]
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    security_mapping = _as_table(mapping.get("security"), "security")
    style_mapping = _as_table(mapping.get("style"), "style")

    format_value = _as_choice(mapping.get("format", "human"), OUTPUT_FORMATS, "format")

    raw_fail = mapping.get("fail_on")
    if raw_fail is None:
        fail_value: Severity | None = None
    else:
        fail_value = Severity.parse(_as_str(raw_fail, "fail_on"))

    return AppConfig(
        format=format_value,
        fail_on=fail_value,
        include=_as_str_list(mapping.get("include"), "include"),
        exclude=_as_str_list(mapping.get("exclude"), "exclude"),
        security=SecurityConfig(
            patterns=_as_regex_list(security_mapping.get("patterns"), "security.patterns")
        ),
        style=StyleConfig(layers=_as_str_list(style_mapping.get("layers"), "style.layers")),
        source=source,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_regex_list(value: Any, field_name: str) -> list[str]:
    patterns = _as_str_list(value, field_name)
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"{field_name} has an invalid regex {pattern!r}: {exc}") from exc
    return patterns


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value
