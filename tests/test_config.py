"""Tests for configuration loading."""

from pathlib import Path

import pytest

from pr_risk.analyzers.base import Severity
from pr_risk.config import AppConfig, default_config_template, load_app_config


def test_defaults_without_config_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)
    assert config == AppConfig()
    assert config.to_dict() == {
        "format": "human",
        "fail_on": None,
        "include": [],
        "exclude": [],
        "security": {"patterns": []},
        "style": {"layers": []},
        "source": None,
    }


def test_repo_config_file_is_loaded(tmp_path: Path) -> None:
    (tmp_path / ".pr-risk.toml").write_text(
        "\n".join(
            [
                'format = "JSON"',
                'fail_on = "medium"',
                'exclude = ["docs/**"]',
                "[security]",
                'patterns = ["verify=False"]',
                "[style]",
                'layers = ["api", "core"]',
            ]
        ),
        encoding="utf-8",
    )
    config = load_app_config(tmp_path)

    assert config.format == "json"
    assert config.fail_on is Severity.MEDIUM
    assert config.exclude == ["docs/**"]
    assert config.security.patterns == ["verify=False"]
    assert config.style.layers == ["api", "core"]
    assert config.source == str((tmp_path / ".pr-risk.toml").resolve())


def test_dotfile_takes_precedence(tmp_path: Path) -> None:
    (tmp_path / ".pr-risk.toml").write_text('format = "markdown"\n', encoding="utf-8")
    (tmp_path / "pr-risk.toml").write_text('format = "json"\n', encoding="utf-8")
    assert load_app_config(tmp_path).format == "markdown"


def test_pyproject_tool_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "demo"\n\n[tool.pr-risk]\nfail_on = "high"\n',
        encoding="utf-8",
    )
    config = load_app_config(tmp_path)
    assert config.fail_on is Severity.HIGH
    assert config.source is not None and config.source.endswith("pyproject.toml")


def test_pyproject_without_section_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
    assert load_app_config(tmp_path) == AppConfig()


def test_explicit_config_path_relative_to_repo(tmp_path: Path) -> None:
    (tmp_path / "ci").mkdir()
    (tmp_path / "ci" / "risk.toml").write_text('include = ["src/**"]\n', encoding="utf-8")
    config = load_app_config(tmp_path, config_path=Path("ci/risk.toml"))
    assert config.include == ["src/**"]


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="does not exist"):
        load_app_config(tmp_path, config_path=Path("nope.toml"))


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("format = [", "Invalid TOML"),
        ('format = "xml"', "format must be one of"),
        ('fail_on = "critical"', "Unknown severity"),
        ('include = "src/**"', "include must be a list of strings"),
        ("security = 3", "security must be a table"),
        ('[security]\npatterns = ["("]', "invalid regex"),
        ("[style]\nlayers = [1]", "style.layers must be a list of strings"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / "pr-risk.toml").write_text(content + "\n", encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_app_config(tmp_path)


def test_default_template_round_trips(tmp_path: Path) -> None:
    (tmp_path / ".pr-risk.toml").write_text(default_config_template(), encoding="utf-8")
    config = load_app_config(tmp_path)
    assert config.fail_on is Severity.HIGH
    assert config.security.patterns == ["TODO.*security", r"verify\s*=\s*False"]
    assert config.style.layers == ["api", "domain", "infra"]
