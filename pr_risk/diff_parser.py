"""Unified diff parser primitives."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from re import Match, compile

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)

DEV_NULL = "/dev/null"
BODY_PREFIXES = ("+", "-", " ")


class MalformedDiffError(ValueError):
    """Raised when a file or hunk header cannot be parsed."""

    def __init__(self, reason: str, fragment: str) -> None:
        super().__init__(f"{reason}: {fragment}")
        self.reason = reason
        self.fragment = fragment


@dataclass(frozen=True, slots=True)
class Hunk:
    """A contiguous block of changed lines anchored to old/new ranges."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[str, ...] = ()

    def added_lines(self) -> Iterator[tuple[int, str]]:
        """Yield ``(index, content)`` for every ``+`` line, prefix stripped."""
        for index, line in enumerate(self.lines):
            if line.startswith("+") and not line.startswith("+++"):
                yield index, line[1:]

    def line_number(self, index: int) -> int:
        """Return the new-file line number reported for the line at ``index``."""
        return self.new_start + index


@dataclass(frozen=True, slots=True)
class FileChange:
    """All hunks recorded for a single file."""

    path: str
    is_new: bool = False
    is_deleted: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: tuple[Hunk, ...] = ()


@dataclass(slots=True)
class _OpenHunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[str] = field(default_factory=list)

    def close(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            lines=tuple(self.lines),
        )


@dataclass(slots=True)
class _OpenFile:
    path: str
    is_new: bool = False
    is_deleted: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: list[Hunk] = field(default_factory=list)

    def close(self) -> FileChange:
        return FileChange(
            path=self.path,
            is_new=self.is_new,
            is_deleted=self.is_deleted,
            additions=self.additions,
            deletions=self.deletions,
            hunks=tuple(self.hunks),
        )


def parse_unified_diff(diff_text: str) -> list[FileChange]:
    """Parse unified diff text into ordered file/hunk records.

    Only ``diff --git`` file sections are recognised. Index, mode and binary
    marker lines are skipped. Raises :class:`MalformedDiffError` for a file
    header without both path segments or a hunk header whose ranges are not
    integers; nothing is returned in that case.
    """
    if not diff_text.strip():
        return []

    files: list[FileChange] = []
    current_file: _OpenFile | None = None
    current_hunk: _OpenHunk | None = None

    def flush_hunk() -> None:
        nonlocal current_hunk
        if current_file is not None and current_hunk is not None:
            current_file.hunks.append(current_hunk.close())
        current_hunk = None

    def flush_file() -> None:
        nonlocal current_file
        flush_hunk()
        if current_file is not None:
            files.append(current_file.close())
            logger.debug(
                "closed file %s (+%d -%d, %d hunks)",
                current_file.path,
                current_file.additions,
                current_file.deletions,
                len(current_file.hunks),
            )
        current_file = None

    # Only "\n" ends a line; other Unicode separators can sit inside a body line.
    for raw_line in diff_text.split("\n"):
        raw_line = raw_line.removesuffix("\r")
        if raw_line.startswith("diff --git "):
            flush_file()
            current_file = _OpenFile(path=_path_from_diff_header(raw_line))
            continue

        if raw_line.startswith("@@"):
            flush_hunk()
            old_start, old_count, new_start, new_count = _parse_hunk_header(raw_line)
            if current_file is None:
                logger.debug("hunk header outside a file section skipped: %s", raw_line)
                continue
            current_hunk = _OpenHunk(
                old_start=old_start,
                old_count=old_count,
                new_start=new_start,
                new_count=new_count,
            )
            continue

        if current_hunk is None and raw_line.startswith(("--- ", "+++ ")):
            if current_file is not None and raw_line[4:].strip() == DEV_NULL:
                if raw_line.startswith("--- "):
                    current_file.is_new = True
                else:
                    current_file.is_deleted = True
            continue

        if current_file is None or current_hunk is None:
            continue

        if not raw_line.startswith(BODY_PREFIXES):
            continue

        current_hunk.lines.append(raw_line)
        if raw_line.startswith("+") and not raw_line.startswith("+++"):
            current_file.additions += 1
        elif raw_line.startswith("-") and not raw_line.startswith("---"):
            current_file.deletions += 1

    flush_file()
    return files


def _path_from_diff_header(line: str) -> str:
    parts = line[len("diff --git ") :].split()
    if len(parts) < 2:
        raise MalformedDiffError("Missing a/ or b/ path in diff header", line)
    a_path, b_path = parts[0], parts[1]
    if b_path.startswith("b/"):
        return b_path[2:]
    if a_path.startswith("a/"):
        return a_path[2:]
    return b_path


def _parse_hunk_header(header: str) -> tuple[int, int, int, int]:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise MalformedDiffError("Invalid hunk header", header)

    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1
    return (
        int(match.group("old_start")),
        old_count,
        int(match.group("new_start")),
        new_count,
    )
