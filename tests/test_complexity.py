"""Tests for the complexity analyzer."""

import pytest

from pr_risk.analyzers.base import Severity
from pr_risk.analyzers.complexity import ComplexityAnalyzer, indent_level
from pr_risk.change_set import ChangeSet, build_change_set

from tests.helpers_diff import change_set_for, file_diff, numbered_lines


def _spread_change(file_count: int, lines_per_file: int, api_lines: int = 0) -> ChangeSet:
    sections = []
    for idx in range(file_count):
        added = numbered_lines(f"value{idx}", lines_per_file)
        if idx == 0:
            added[:api_lines] = [f"pub fn handler_{n}() {{}}" for n in range(api_lines)]
        sections.append(file_diff(f"src/module_{idx}.rs", added))
    return build_change_set("".join(sections))


def test_small_change_has_no_findings() -> None:
    result = ComplexityAnalyzer().analyze(change_set_for("src/a.rs", ["let a = 1;"]))
    assert result.analyzer_name == "Complexity Assessment"
    assert result.severity is Severity.LOW
    assert result.findings == ()


def test_large_change_with_public_api() -> None:
    change_set = _spread_change(file_count=10, lines_per_file=21, api_lines=8)
    assert (change_set.files_changed, change_set.additions) == (10, 210)

    result = ComplexityAnalyzer().analyze(change_set)

    assert result.severity is Severity.MEDIUM
    size_findings = [item for item in result.findings if item.rule_id == "change_size"]
    assert [(item.message, item.severity) for item in size_findings] == [
        ("Large change: 210 lines modified (+210 -0)", Severity.MEDIUM)
    ]
    api_findings = [item for item in result.findings if item.rule_id == "public_api"]
    assert len(api_findings) == 8
    assert all(item.severity is Severity.LOW for item in api_findings)
    assert api_findings[0].message == "New public API: pub fn handler_0() {}"
    assert [item.line for item in api_findings] == list(range(1, 9))
    assert not [item for item in result.findings if item.rule_id == "files_changed"]


def test_very_large_change_is_high() -> None:
    change_set = ChangeSet.from_files((), files_changed=1, additions=450, deletions=51)
    result = ComplexityAnalyzer().analyze(change_set)
    assert [(item.message, item.severity) for item in result.findings] == [
        ("Very large change: 501 lines modified (+450 -51)", Severity.HIGH)
    ]


@pytest.mark.parametrize(
    ("total", "expected"),
    [(200, None), (201, Severity.MEDIUM), (500, Severity.MEDIUM), (501, Severity.HIGH)],
)
def test_change_size_boundaries(total: int, expected: Severity | None) -> None:
    change_set = ChangeSet.from_files((), files_changed=1, additions=total, deletions=0)
    findings = ComplexityAnalyzer().analyze(change_set).findings
    assert [item.severity for item in findings] == ([] if expected is None else [expected])


@pytest.mark.parametrize(
    ("count", "message"),
    [
        (10, None),
        (11, "High number of files changed: 11"),
        (20, "High number of files changed: 20"),
        (21, "Very high number of files changed: 21"),
    ],
)
def test_files_changed_thresholds(count: int, message: str | None) -> None:
    change_set = ChangeSet.from_files((), files_changed=count, additions=1, deletions=0)
    findings = ComplexityAnalyzer().analyze(change_set).findings
    assert [item.message for item in findings] == ([] if message is None else [message])


def test_many_public_items_add_summary_finding() -> None:
    lines = [f"pub struct Item{idx};" for idx in range(11)]
    result = ComplexityAnalyzer().analyze(change_set_for("src/items.rs", lines))

    assert result.severity is Severity.MEDIUM
    summary = result.findings[-1]
    assert summary.rule_id == "public_api"
    assert summary.severity is Severity.MEDIUM
    assert summary.file is None
    assert summary.message == (
        "11 new public API items introduced: consider if all need to be public"
    )


def test_five_manifest_dependencies_are_high() -> None:
    lines = ['a = "1"', 'b = "1"', 'c = "1"', 'd = "1"', 'e = "1"']
    result = ComplexityAnalyzer().analyze(change_set_for("Cargo.toml", lines))
    assert result.severity is Severity.HIGH
    assert [item.message for item in result.findings] == [
        "5 new dependencies added in Cargo.toml"
    ]


def test_three_manifest_dependencies_are_medium() -> None:
    lines = ["example.com/a v1", "example.com/b v1", "example.com/c v1"]
    result = ComplexityAnalyzer().analyze(change_set_for("go.mod", lines))
    assert [(item.rule_id, item.severity) for item in result.findings] == [
        ("dependency_count", Severity.MEDIUM)
    ]


def test_gemfile_is_not_a_complexity_manifest() -> None:
    lines = ["gem 'a', '1'", "gem 'b', '1'", "gem 'c', '1'"]
    result = ComplexityAnalyzer().analyze(change_set_for("Gemfile", lines))
    assert result.findings == ()


def test_deep_nesting_is_flagged() -> None:
    lines = ["fn f() {", " " * 16 + "shallow();", " " * 20 + "deep();", " " * 24]
    result = ComplexityAnalyzer().analyze(change_set_for("src/nested.rs", lines, new_start=30))
    assert [(item.message, item.line) for item in result.findings] == [
        ("Deeply nested code (indent level 5): consider refactoring", 32)
    ]


@pytest.mark.parametrize(
    ("content", "expected"),
    [("x", 0), ("    x", 1), ("       x", 1), ("        x", 2), ("\tx", 0)],
)
def test_indent_level(content: str, expected: int) -> None:
    assert indent_level(content) == expected


def test_moderately_large_change_over_few_files_is_one_medium_finding() -> None:
    change_set = ChangeSet.from_files((), files_changed=8, additions=210, deletions=10)
    result = ComplexityAnalyzer().analyze(change_set)

    assert result.severity is Severity.MEDIUM
    assert [(item.rule_id, item.message, item.severity) for item in result.findings] == [
        ("change_size", "Large change: 220 lines modified (+210 -10)", Severity.MEDIUM)
    ]
