"""Security risk analyzer."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from pr_risk.analyzers.base import (
    AnalysisError,
    AnalysisResult,
    Finding,
    LineRule,
    RuleInfo,
    Severity,
    describe_line_rules,
    evaluate_line_rules,
    severity_span,
)
from pr_risk.analyzers.manifests import ecosystem_dependencies
from pr_risk.change_set import ChangeSet
from pr_risk.diff_parser import FileChange

logger = logging.getLogger(__name__)

SQL_QUERY_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE")
SQL_FILE_MARKERS = ("format!", "${", "' +")

SECRET_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r'password\s*=\s*"'), "Hardcoded password detected"),
    (re.compile(r'api_key\s*=\s*"'), "Hardcoded API key detected"),
    (re.compile(r'secret\s*=\s*"'), "Hardcoded secret detected"),
    (re.compile(r'token\s*=\s*"'), "Hardcoded token detected"),
    (re.compile(r"AKIA[0-9A-Z]{16}"), "AWS access key detected"),
    (re.compile(re.escape("secret_key_")), "Possible hardcoded secret key"),
    (re.compile(re.escape("hardcoded_secret")), "Hardcoded secret value"),
)

UNSAFE_MARKERS = ("unsafe {", "unsafe fn")


def _sql_in_sql_file(content: str, file_change: FileChange) -> bool:
    return file_change.path.endswith(".sql") and any(
        marker in content for marker in SQL_FILE_MARKERS
    )


def _sql_query_construction(content: str, file_change: FileChange) -> bool:
    if file_change.path.endswith(".sql"):
        return False
    upper = content.upper()
    formatted_query = "format!" in content and any(
        keyword in upper for keyword in SQL_QUERY_KEYWORDS
    )
    concatenated_query = ('" +' in content or '+ "' in content) and (
        "SELECT" in upper or "WHERE" in upper
    )
    return formatted_query or concatenated_query


def _hardcoded_secret(content: str, file_change: FileChange) -> str | None:
    for pattern, message in SECRET_PATTERNS:
        if pattern.search(content):
            return message
    return None


def _unsafe_block(content: str, file_change: FileChange) -> bool:
    stripped = content.strip()
    return any(marker in stripped for marker in UNSAFE_MARKERS)


def _dynamic_command(content: str, file_change: FileChange) -> bool:
    return "Command::new" in content and ("format!" in content or "&" in content)


def _shell_passthrough(content: str, file_change: FileChange) -> bool:
    return "shell=True" in content or "shell = True" in content


def _dynamic_eval(content: str, file_change: FileChange) -> bool:
    if "eval(" not in content and "exec(" not in content:
        return False
    leading = content.lstrip()
    return not leading.startswith(("//", "#"))


LINE_RULES: tuple[LineRule, ...] = (
    LineRule(
        rule_id="sql_injection",
        predicate=_sql_in_sql_file,
        message="Possible SQL injection: string interpolation in SQL file",
        description="String interpolation in SQL files.",
        severity=Severity.HIGH,
    ),
    LineRule(
        rule_id="sql_injection",
        predicate=_sql_query_construction,
        message="Possible SQL injection: raw SQL query construction with string interpolation",
        description="Raw SQL query construction by formatting or concatenation.",
        severity=Severity.HIGH,
    ),
    LineRule(
        rule_id="hardcoded_secret",
        predicate=_hardcoded_secret,
        message="{detail}",
        description="Password, API key, secret or token literals and cloud key prefixes.",
        severity=Severity.HIGH,
    ),
    LineRule(
        rule_id="unsafe_code",
        predicate=_unsafe_block,
        message="New unsafe block introduced",
        description="New unsafe blocks or functions.",
        severity=Severity.MEDIUM,
    ),
)

COMMAND_RULES: tuple[LineRule, ...] = (
    LineRule(
        rule_id="command_injection",
        predicate=_dynamic_command,
        message="Possible command injection: Command::new with dynamic arguments",
        description="Process spawned with formatted or borrowed arguments.",
        severity=Severity.HIGH,
    ),
    LineRule(
        rule_id="command_injection",
        predicate=_shell_passthrough,
        message="Possible command injection: subprocess with shell=True",
        description="Subprocess invoked through the shell.",
        severity=Severity.HIGH,
    ),
    LineRule(
        rule_id="command_injection",
        predicate=_dynamic_eval,
        message="Possible code injection: eval/exec usage detected",
        description="eval/exec outside comments.",
        severity=Severity.HIGH,
    ),
)


def dependency_severity(count: int) -> Severity:
    if count >= 5:
        return Severity.HIGH
    if count >= 3:
        return Severity.MEDIUM
    return Severity.LOW


class SecurityAnalyzer:
    """Scans added lines for injection, secret, unsafe and dependency risk."""

    name = "Security Risk Assessment"

    def __init__(self, extra_patterns: Sequence[str] = ()) -> None:
        self._custom_rules = tuple(_custom_rule(pattern) for pattern in extra_patterns)

    def analyze(self, change_set: ChangeSet) -> AnalysisResult:
        findings: list[Finding] = []
        findings.extend(evaluate_line_rules(LINE_RULES, change_set))
        findings.extend(self._check_new_dependencies(change_set))
        findings.extend(evaluate_line_rules(COMMAND_RULES, change_set))
        findings.extend(evaluate_line_rules(self._custom_rules, change_set))
        logger.debug("%s produced %d findings", self.name, len(findings))
        return AnalysisResult.from_findings(self.name, findings)

    @classmethod
    def rule_info(cls) -> list[RuleInfo]:
        """Rules in the order ``analyze`` evaluates them."""
        return [
            *describe_line_rules(cls.name, LINE_RULES),
            RuleInfo(
                rule_id="new_dependency",
                analyzer=cls.name,
                severity=severity_span(*(dependency_severity(n) for n in (1, 3, 5))),
                description="Dependencies added to manifests; 3 or more is medium, 5 or more high.",
            ),
            *describe_line_rules(cls.name, COMMAND_RULES),
            RuleInfo(
                rule_id="custom_pattern",
                analyzer=cls.name,
                severity=severity_span(Severity.HIGH),
                description="Lines matching configured security patterns.",
            ),
        ]

    def _check_new_dependencies(self, change_set: ChangeSet) -> list[Finding]:
        findings: list[Finding] = []
        for file_change in change_set.files:
            new_deps = ecosystem_dependencies(file_change)
            if not new_deps:
                continue
            findings.append(
                Finding(
                    message=(
                        f"{len(new_deps)} new dependencies added in {file_change.path}: "
                        f"{', '.join(new_deps)}"
                    ),
                    severity=dependency_severity(len(new_deps)),
                    file=file_change.path,
                    rule_id="new_dependency",
                )
            )
        return findings


def _custom_rule(pattern: str) -> LineRule:
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise AnalysisError(
            SecurityAnalyzer.name, f"invalid custom pattern {pattern!r}: {exc}"
        ) from exc

    def _matches(content: str, file_change: FileChange) -> bool:
        return compiled.search(content) is not None

    escaped = pattern.replace("{", "{{").replace("}", "}}")
    return LineRule(
        rule_id="custom_pattern",
        predicate=_matches,
        message=f"Custom security pattern matched: {escaped}",
        description=f"Configured pattern {pattern!r}.",
        severity=Severity.HIGH,
    )
