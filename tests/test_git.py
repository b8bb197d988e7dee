"""Integration tests against a throwaway git repository."""

import json
import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pr_risk.cli import app
from pr_risk.git import GitError, describe_revision, get_diff_between, get_working_tree_diff

runner = CliRunner()


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return completed.stdout


def _commit(repo: Path, files: dict[str, str], message: str) -> str:
    for rel_path, content in files.items():
        target = repo / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD").strip()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    _git(path, "init", "-q")
    _git(path, "config", "user.email", "carol@example.com")
    _git(path, "config", "user.name", "Carol")
    _commit(path, {"src/app.py": "x = 1\n"}, "Initial commit")
    return path


def test_diff_between_revisions(repo: Path) -> None:
    base = _git(repo, "rev-parse", "HEAD").strip()
    head = _commit(repo, {"src/app.py": "x = 1\npassword = \"p\"\n"}, "Add password")

    diff_text = get_diff_between(repo, base, head)
    assert "diff --git a/src/app.py b/src/app.py" in diff_text
    assert '+password = "p"' in diff_text

    info = describe_revision(repo, head)
    assert (info.subject, info.author) == ("Add password", "Carol")


def test_working_tree_diff(repo: Path) -> None:
    (repo / "src" / "app.py").write_text("x = 2\n", encoding="utf-8")
    diff_text = get_working_tree_diff(repo)
    assert "-x = 1" in diff_text
    assert "+x = 2" in diff_text


def test_unknown_revision_raises(repo: Path) -> None:
    with pytest.raises(GitError):
        get_diff_between(repo, "HEAD", "does-not-exist")


def test_cli_fills_metadata_from_head_commit(repo: Path) -> None:
    base = _git(repo, "rev-parse", "HEAD").strip()
    head = _commit(repo, {"src/app.py": "x = 1\nsubprocess.run(cmd, shell=True)\n"}, "Run it")

    result = runner.invoke(
        app,
        ["analyze", "--repo", str(repo), "--base", base, "--head", head, "--format", "json"],
    )
    assert result.exit_code == 0

    payload = json.loads(result.stdout)
    assert (payload["pr"]["title"], payload["pr"]["author"]) == ("Run it", "Carol")
    assert payload["meta"]["input_source"] == "git_range"
    assert payload["overall_risk"] == "HIGH"


def test_cli_reports_git_failure_as_usage_error(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", "--repo", str(tmp_path)])
    assert result.exit_code == 2
