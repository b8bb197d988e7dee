"""Analyzer protocol, severity and finding models."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from pr_risk.change_set import ChangeSet
from pr_risk.diff_parser import FileChange, Hunk


class Severity(IntEnum):
    """Totally ordered risk level."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: str) -> Severity:
        try:
            return cls[value.strip().upper()]
        except KeyError as exc:
            choices = ", ".join(item.name.lower() for item in cls)
            raise ValueError(f"Unknown severity '{value}'. Expected one of: {choices}") from exc


@dataclass(frozen=True, slots=True)
class Finding:
    """A single heuristic observation."""

    message: str
    severity: Severity
    file: str | None = None
    line: int | None = None
    rule_id: str = ""

    @property
    def location(self) -> str:
        if self.file is not None and self.line is not None:
            return f"{self.file}:{self.line}"
        return self.file or ""


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Output of one analyzer run."""

    analyzer_name: str
    severity: Severity
    findings: tuple[Finding, ...] = ()

    @classmethod
    def from_findings(cls, analyzer_name: str, findings: Iterable[Finding]) -> AnalysisResult:
        collected = tuple(findings)
        return cls(
            analyzer_name=analyzer_name,
            severity=max_severity(item.severity for item in collected),
            findings=collected,
        )


class AnalysisError(RuntimeError):
    """Raised when an analyzer cannot complete."""

    def __init__(self, analyzer: str, reason: str) -> None:
        super().__init__(f"Analysis failed for {analyzer}: {reason}")
        self.analyzer = analyzer
        self.reason = reason


class Analyzer(Protocol):
    """Protocol for side-effect-free heuristic passes."""

    name: str

    def analyze(self, change_set: ChangeSet) -> AnalysisResult:
        """Scan the change set and return findings."""


LinePredicate = Callable[[str, FileChange], "str | bool | None"]


@dataclass(frozen=True, slots=True)
class LineRule:
    """A check applied independently to every added line.

    ``predicate`` receives the line content (prefix stripped) and its file.
    A string result is exposed to ``message`` as ``{detail}``; ``{content}``
    and ``{path}`` are always available.
    """

    rule_id: str
    predicate: LinePredicate
    message: str
    severity: Severity
    description: str = ""


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing."""

    rule_id: str
    analyzer: str
    severity: str
    description: str


def max_severity(severities: Iterable[Severity]) -> Severity:
    """Return the highest severity, LOW when there is none."""
    return max(severities, default=Severity.LOW)


def iter_added_lines(
    change_set: ChangeSet,
    *,
    skip_file: Callable[[FileChange], bool] | None = None,
) -> Iterator[tuple[FileChange, Hunk, int, str]]:
    """Yield ``(file, hunk, index, content)`` for every added line."""
    for file_change in change_set.files:
        if skip_file is not None and skip_file(file_change):
            continue
        for hunk in file_change.hunks:
            for index, content in hunk.added_lines():
                yield file_change, hunk, index, content


def evaluate_line_rules(
    rules: Iterable[LineRule],
    change_set: ChangeSet,
    *,
    skip_file: Callable[[FileChange], bool] | None = None,
) -> list[Finding]:
    """Apply each rule to every added line, grouped by rule."""
    findings: list[Finding] = []
    for rule in rules:
        for file_change, hunk, index, content in iter_added_lines(
            change_set, skip_file=skip_file
        ):
            matched = rule.predicate(content, file_change)
            if not matched:
                continue
            detail = matched if isinstance(matched, str) else ""
            findings.append(
                Finding(
                    message=rule.message.format(
                        content=content.strip(), path=file_change.path, detail=detail
                    ),
                    severity=rule.severity,
                    file=file_change.path,
                    line=hunk.line_number(index),
                    rule_id=rule.rule_id,
                )
            )
    return findings


def describe_line_rules(analyzer: str, rules: Iterable[LineRule]) -> list[RuleInfo]:
    """Collapse line rules sharing a rule id into one listing entry."""
    grouped: dict[str, list[LineRule]] = {}
    for rule in rules:
        grouped.setdefault(rule.rule_id, []).append(rule)

    info: list[RuleInfo] = []
    for rule_id, members in grouped.items():
        severities = {member.severity for member in members}
        info.append(
            RuleInfo(
                rule_id=rule_id,
                analyzer=analyzer,
                severity=severity_span(*severities),
                description=" ".join(
                    member.description for member in members if member.description
                ),
            )
        )
    return info


def severity_span(*severities: Severity) -> str:
    """Render the severities a rule can emit, e.g. ``low|medium``."""
    return "|".join(item.name.lower() for item in sorted(set(severities)))
