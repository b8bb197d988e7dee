"""Pull-request level change model."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pr_risk.diff_parser import FileChange, parse_unified_diff


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """PR metadata plus the parsed per-file diffs.

    Built once per run and shared read-only by every analyzer.
    """

    number: int = 0
    title: str = ""
    author: str = ""
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0
    files: tuple[FileChange, ...] = ()

    @classmethod
    def from_files(
        cls,
        files: Iterable[FileChange],
        *,
        number: int = 0,
        title: str = "",
        author: str = "",
        files_changed: int | None = None,
        additions: int | None = None,
        deletions: int | None = None,
    ) -> ChangeSet:
        """Wrap parsed files, deriving any total that is not given."""
        frozen = tuple(files)
        return cls(
            number=number,
            title=title,
            author=author,
            files_changed=len(frozen) if files_changed is None else files_changed,
            additions=sum(item.additions for item in frozen) if additions is None else additions,
            deletions=sum(item.deletions for item in frozen) if deletions is None else deletions,
            files=frozen,
        )

    @property
    def total_changed(self) -> int:
        return self.additions + self.deletions


def build_change_set(
    diff_text: str,
    *,
    number: int = 0,
    title: str = "",
    author: str = "",
) -> ChangeSet:
    """Parse diff text and wrap it with PR metadata."""
    return ChangeSet.from_files(
        parse_unified_diff(diff_text),
        number=number,
        title=title,
        author=author,
    )
