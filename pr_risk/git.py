"""Local git diff acquisition."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from subprocess import CalledProcessError, run

logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = "\x1f"


class GitError(RuntimeError):
    """Raised when git command execution fails."""


@dataclass(frozen=True, slots=True)
class RevisionInfo:
    """Subject line and author of a commit."""

    subject: str
    author: str


def get_working_tree_diff(repo: Path) -> str:
    """Return working tree diff for a repository."""
    return _run_git(repo, ["diff", "--no-color"])


def get_diff_between(repo: Path, base: str, head: str) -> str:
    """Return diff between two revisions."""
    return _run_git(repo, ["diff", "--no-color", f"{base}..{head}"])


def describe_revision(repo: Path, revision: str) -> RevisionInfo:
    """Return the subject and author name of ``revision``."""
    output = _run_git(
        repo, ["log", "-1", f"--format=%s{_FIELD_SEPARATOR}%an", revision, "--"]
    ).strip()
    subject, _, author = output.partition(_FIELD_SEPARATOR)
    return RevisionInfo(subject=subject, author=author)


def _run_git(repo: Path, args: list[str]) -> str:
    logger.debug("running git %s in %s", " ".join(args), repo)
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except OSError as exc:
        raise GitError(f"cannot run git in {repo}: {exc}") from exc

    return completed.stdout
