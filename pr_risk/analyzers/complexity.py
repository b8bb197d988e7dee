"""Complexity risk analyzer."""

from __future__ import annotations

import logging

from pr_risk.analyzers.base import (
    AnalysisResult,
    Finding,
    LineRule,
    RuleInfo,
    Severity,
    describe_line_rules,
    evaluate_line_rules,
    severity_span,
)
from pr_risk.analyzers.manifests import generic_dependency_count
from pr_risk.change_set import ChangeSet
from pr_risk.diff_parser import FileChange

logger = logging.getLogger(__name__)

VERY_LARGE_CHANGE = 500
LARGE_CHANGE = 200
VERY_MANY_FILES = 20
MANY_FILES = 10
PUBLIC_API_LIMIT = 10
INDENT_WIDTH = 4
MAX_INDENT_LEVEL = 4

PUBLIC_API_MARKERS = ("pub fn ", "pub struct ", "pub enum ", "pub trait ", "pub type ")


def indent_level(content: str) -> int:
    """Estimate nesting from leading whitespace, assuming 4-space indents."""
    leading = len(content) - len(content.lstrip())
    return leading // INDENT_WIDTH


def _public_api(content: str, file_change: FileChange) -> bool:
    return content.lstrip().startswith(PUBLIC_API_MARKERS)


def _deeply_nested(content: str, file_change: FileChange) -> str | None:
    if not content.strip():
        return None
    level = indent_level(content)
    if level > MAX_INDENT_LEVEL:
        return str(level)
    return None


PUBLIC_API_RULE = LineRule(
    rule_id="public_api",
    predicate=_public_api,
    message="New public API: {content}",
    description="New public declarations.",
    severity=Severity.LOW,
)

NESTING_RULE = LineRule(
    rule_id="nesting_depth",
    predicate=_deeply_nested,
    message="Deeply nested code (indent level {detail}): consider refactoring",
    description="Added lines indented deeper than four 4-space levels.",
    severity=Severity.MEDIUM,
)


class ComplexityAnalyzer:
    """Evaluates change size, spread, dependency growth, API surface and nesting."""

    name = "Complexity Assessment"

    def analyze(self, change_set: ChangeSet) -> AnalysisResult:
        findings: list[Finding] = []
        findings.extend(self._check_dependency_count(change_set))
        findings.extend(self._check_change_size(change_set))
        findings.extend(self._check_api_surface(change_set))
        findings.extend(evaluate_line_rules((NESTING_RULE,), change_set))
        logger.debug("%s produced %d findings", self.name, len(findings))
        return AnalysisResult.from_findings(self.name, findings)

    @classmethod
    def rule_info(cls) -> list[RuleInfo]:
        """Rules in the order ``analyze`` evaluates them."""
        graded = severity_span(Severity.MEDIUM, Severity.HIGH)
        return [
            RuleInfo(
                "dependency_count",
                cls.name,
                graded,
                "Three or more dependency-shaped lines added to one manifest.",
            ),
            RuleInfo(
                "change_size",
                cls.name,
                graded,
                f"More than {LARGE_CHANGE} (medium) or {VERY_LARGE_CHANGE} (high) changed lines.",
            ),
            RuleInfo(
                "files_changed",
                cls.name,
                graded,
                f"More than {MANY_FILES} (medium) or {VERY_MANY_FILES} (high) files changed.",
            ),
            RuleInfo(
                PUBLIC_API_RULE.rule_id,
                cls.name,
                severity_span(PUBLIC_API_RULE.severity, Severity.MEDIUM),
                f"{PUBLIC_API_RULE.description} More than {PUBLIC_API_LIMIT} adds a summary.",
            ),
            *describe_line_rules(cls.name, (NESTING_RULE,)),
        ]

    def _check_dependency_count(self, change_set: ChangeSet) -> list[Finding]:
        findings: list[Finding] = []
        for file_change in change_set.files:
            dep_count = generic_dependency_count(file_change)
            if dep_count < 3:
                continue
            findings.append(
                Finding(
                    message=f"{dep_count} new dependencies added in {file_change.path}",
                    severity=Severity.HIGH if dep_count >= 5 else Severity.MEDIUM,
                    file=file_change.path,
                    rule_id="dependency_count",
                )
            )
        return findings

    def _check_change_size(self, change_set: ChangeSet) -> list[Finding]:
        findings: list[Finding] = []
        total = change_set.total_changed
        summary = f"{total} lines modified (+{change_set.additions} -{change_set.deletions})"

        if total > VERY_LARGE_CHANGE:
            findings.append(
                Finding(
                    message=f"Very large change: {summary}",
                    severity=Severity.HIGH,
                    rule_id="change_size",
                )
            )
        elif total > LARGE_CHANGE:
            findings.append(
                Finding(
                    message=f"Large change: {summary}",
                    severity=Severity.MEDIUM,
                    rule_id="change_size",
                )
            )

        if change_set.files_changed > VERY_MANY_FILES:
            findings.append(
                Finding(
                    message=f"Very high number of files changed: {change_set.files_changed}",
                    severity=Severity.HIGH,
                    rule_id="files_changed",
                )
            )
        elif change_set.files_changed > MANY_FILES:
            findings.append(
                Finding(
                    message=f"High number of files changed: {change_set.files_changed}",
                    severity=Severity.MEDIUM,
                    rule_id="files_changed",
                )
            )
        return findings

    def _check_api_surface(self, change_set: ChangeSet) -> list[Finding]:
        findings = evaluate_line_rules((PUBLIC_API_RULE,), change_set)
        if len(findings) > PUBLIC_API_LIMIT:
            findings.append(
                Finding(
                    message=(
                        f"{len(findings)} new public API items introduced: "
                        "consider if all need to be public"
                    ),
                    severity=Severity.MEDIUM,
                    rule_id="public_api",
                )
            )
        return findings
