"""Style and architecture risk analyzer."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import PurePosixPath

from pr_risk.analyzers.base import (
    AnalysisResult,
    Finding,
    LineRule,
    RuleInfo,
    Severity,
    describe_line_rules,
    evaluate_line_rules,
    iter_added_lines,
)
from pr_risk.change_set import ChangeSet
from pr_risk.diff_parser import FileChange

logger = logging.getLogger(__name__)

TEST_SECTION_MARKER = "#[cfg(test)]"
UNWRAP_MARKER = ".unwrap()"
TODO_MARKERS = ("todo!()", 'todo!("')
UNIMPLEMENTED_MARKERS = ("unimplemented!()", 'unimplemented!("')
FIXME_PREFIXES = ("// FIXME", "# FIXME")
REDUNDANT_CLONES = (".to_string().clone()", ".to_owned().clone()")

NAMED_SOURCE_SUFFIXES = {".rs", ".py"}
ENTRY_MODULE_NAMES = {"mod", "lib", "main", "build", "__init__", "__main__"}
TYPE_KEYWORDS = ("struct ", "enum ", "trait ")
IMPORT_PREFIXES = ("use ", "import ", "from ")

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_]*")


def is_snake_case(value: str) -> bool:
    return (
        bool(value)
        and all(char.islower() or char.isdigit() or char == "_" for char in value)
        and value.isascii()
        and not value.startswith("_")
        and "__" not in value
    )


def is_pascal_case(value: str) -> bool:
    return (
        bool(value)
        and value[0].isascii()
        and value[0].isupper()
        and "_" not in value
        and value.isalnum()
    )


def is_test_path(path: str) -> bool:
    return path.startswith("tests/") or "/tests/" in path or path.endswith("_test.rs")


def declared_type_name(content: str) -> str | None:
    """Return the type name declared by an added line, if any."""
    stripped = content.lstrip()
    if stripped.startswith("pub "):
        stripped = stripped[len("pub ") :]
    for keyword in (*TYPE_KEYWORDS, "class "):
        if stripped.startswith(keyword):
            match = _IDENTIFIER_RE.match(stripped[len(keyword) :])
            name = match.group(0) if match else ""
            return name or None
    return None


def _todo_macro(content: str, file_change: FileChange) -> bool:
    return any(marker in content for marker in TODO_MARKERS)


def _unimplemented_macro(content: str, file_change: FileChange) -> bool:
    return any(marker in content for marker in UNIMPLEMENTED_MARKERS)


def _fixme_comment(content: str, file_change: FileChange) -> bool:
    return content.strip().upper().startswith(FIXME_PREFIXES)


def _redundant_clone(content: str, file_change: FileChange) -> bool:
    return file_change.path.endswith(".rs") and any(
        marker in content for marker in REDUNDANT_CLONES
    )


MARKER_RULES: tuple[LineRule, ...] = (
    LineRule(
        rule_id="unimplemented",
        predicate=_todo_macro,
        message="todo!() macro found: should not ship to production",
        description="todo!() markers.",
        severity=Severity.MEDIUM,
    ),
    LineRule(
        rule_id="unimplemented",
        predicate=_unimplemented_macro,
        message="unimplemented!() macro found: should not ship to production",
        description="unimplemented!() markers.",
        severity=Severity.MEDIUM,
    ),
    LineRule(
        rule_id="fixme_comment",
        predicate=_fixme_comment,
        message="FIXME comment found: indicates known issue",
        description="Leading FIXME comments.",
        severity=Severity.LOW,
    ),
    LineRule(
        rule_id="redundant_clone",
        predicate=_redundant_clone,
        message="Redundant clone: .to_string().clone() or .to_owned().clone()",
        description=".to_string().clone() or .to_owned().clone() chains.",
        severity=Severity.LOW,
    ),
)


class StyleAnalyzer:
    """Checks added code against project conventions.

    ``layers`` lists architectural layer directories from the top of the
    stack down; without it the layer boundary check does nothing.
    """

    name = "Style & Architecture Assessment"

    def __init__(self, layers: Sequence[str] = ()) -> None:
        self._layers = tuple(layers)

    def analyze(self, change_set: ChangeSet) -> AnalysisResult:
        findings: list[Finding] = []
        findings.extend(self._check_unwrap_usage(change_set))
        findings.extend(evaluate_line_rules(MARKER_RULES, change_set))
        findings.extend(self._check_architecture_boundaries(change_set))
        findings.extend(self._check_naming_conventions(change_set))
        logger.debug("%s produced %d findings", self.name, len(findings))
        return AnalysisResult.from_findings(self.name, findings)

    @classmethod
    def rule_info(cls) -> list[RuleInfo]:
        """Rules in the order ``analyze`` evaluates them."""
        return [
            RuleInfo(
                "unwrap_usage",
                cls.name,
                "medium",
                ".unwrap() outside test files and test sections.",
            ),
            *describe_line_rules(cls.name, MARKER_RULES),
            RuleInfo(
                "layer_boundary",
                cls.name,
                "low",
                "Imports from a higher architectural layer (requires [style] layers).",
            ),
            RuleInfo(
                "naming_convention",
                cls.name,
                "low",
                "New files and types that break snake_case or PascalCase.",
            ),
        ]

    def _check_unwrap_usage(self, change_set: ChangeSet) -> list[Finding]:
        findings: list[Finding] = []
        for file_change in change_set.files:
            if is_test_path(file_change.path):
                continue
            # Once a test section shows up, the rest of the file's hunks count as tests.
            in_test_section = False
            for hunk in file_change.hunks:
                for index, line in enumerate(hunk.lines):
                    if TEST_SECTION_MARKER in line[1:]:
                        in_test_section = True
                    if in_test_section or not line.startswith("+"):
                        continue
                    if UNWRAP_MARKER in line[1:]:
                        findings.append(
                            Finding(
                                message=(
                                    "Use of .unwrap(): prefer ? operator or .expect() "
                                    "with context"
                                ),
                                severity=Severity.MEDIUM,
                                file=file_change.path,
                                line=hunk.line_number(index),
                                rule_id="unwrap_usage",
                            )
                        )
        return findings

    def _check_architecture_boundaries(self, change_set: ChangeSet) -> list[Finding]:
        if not self._layers:
            return []

        patterns = {layer: re.compile(rf"\b{re.escape(layer)}\b") for layer in self._layers}
        findings: list[Finding] = []
        for file_change, hunk, index, content in iter_added_lines(change_set):
            file_layer = self._layer_of(file_change.path)
            if file_layer is None:
                continue
            stripped = content.strip()
            if not stripped.startswith(IMPORT_PREFIXES):
                continue
            for upper in self._layers[:file_layer]:
                if patterns[upper].search(stripped):
                    findings.append(
                        Finding(
                            message=(
                                f"Layer '{self._layers[file_layer]}' depends on "
                                f"higher layer '{upper}'"
                            ),
                            severity=Severity.LOW,
                            file=file_change.path,
                            line=hunk.line_number(index),
                            rule_id="layer_boundary",
                        )
                    )
        return findings

    def _layer_of(self, path: str) -> int | None:
        parts = PurePosixPath(path).parts[:-1]
        for part in parts:
            if part in self._layers:
                return self._layers.index(part)
        return None

    def _check_naming_conventions(self, change_set: ChangeSet) -> list[Finding]:
        findings: list[Finding] = []
        for file_change in change_set.files:
            if not file_change.is_new:
                continue

            pure_path = PurePosixPath(file_change.path)
            if pure_path.suffix in NAMED_SOURCE_SUFFIXES:
                stem = pure_path.stem
                if stem not in ENTRY_MODULE_NAMES and not is_snake_case(stem):
                    findings.append(
                        Finding(
                            message=(
                                f"File name '{pure_path.name}' does not follow "
                                "snake_case convention"
                            ),
                            severity=Severity.LOW,
                            file=file_change.path,
                            rule_id="naming_convention",
                        )
                    )

            for hunk in file_change.hunks:
                for index, content in hunk.added_lines():
                    name = declared_type_name(content)
                    if name is None or is_pascal_case(name):
                        continue
                    findings.append(
                        Finding(
                            message=f"Type '{name}' does not follow PascalCase convention",
                            severity=Severity.LOW,
                            file=file_change.path,
                            line=hunk.line_number(index),
                            rule_id="naming_convention",
                        )
                    )
        return findings
