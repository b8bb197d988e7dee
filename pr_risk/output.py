"""Report rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from pr_risk import __version__
from pr_risk.analyzers.base import AnalysisResult, Finding, Severity
from pr_risk.orchestrator import Report

SEVERITY_COLORS = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}


def render_human(report: Report) -> str:
    """Render a colorized terminal report."""
    lines: list[str] = [
        "",
        f'PR #{report.number}: "{report.title}"',
        (
            f"Author: {report.author} | Files changed: {report.files_changed} | "
            f"+{report.additions} -{report.deletions}"
        ),
        "",
    ]
    for result in report.results:
        lines.append(click.style(f"═══ {result.analyzer_name} ═══", bold=True))
        lines.append(f"Risk Level: {_styled_severity(result.severity)}")
        if not result.findings:
            lines.append("  No findings.")
        for finding in result.findings:
            location = f" ({finding.location})" if finding.location else ""
            lines.append(f"  • {finding.message}{location}")
        lines.append("")
    lines.append(
        click.style("═══ Overall Risk: ", bold=True)
        + _styled_severity(report.overall_risk)
        + click.style(" ═══", bold=True)
    )
    return "\n".join(lines)


def render_markdown(report: Report) -> str:
    """Render the report as a markdown document."""
    parts: list[str] = [
        f'# PR #{report.number}: "{report.title}"',
        "",
        (
            f"**Author:** {report.author} | **Files changed:** {report.files_changed} | "
            f"**+{report.additions} -{report.deletions}**"
        ),
        "",
    ]
    for result in report.results:
        parts.append(f"## {result.analyzer_name}")
        parts.append("")
        parts.append(f"**Risk Level: {result.severity}**")
        parts.append("")
        if not result.findings:
            parts.append("No findings.")
        for finding in result.findings:
            location = f" (`{finding.location}`)" if finding.location else ""
            parts.append(f"- **[{finding.severity}]** {finding.message}{location}")
        parts.append("")
    parts.append(f"## Overall Risk: {report.overall_risk}")
    return "\n".join(parts) + "\n"


def render_json(report: Report, *, input_source: str) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(report, input_source=input_source), sort_keys=True)


def build_json_payload(report: Report, *, input_source: str) -> dict[str, Any]:
    """Build the JSON payload for a report."""
    return {
        "pr": {
            "number": report.number,
            "title": report.title,
            "author": report.author,
            "files_changed": report.files_changed,
            "additions": report.additions,
            "deletions": report.deletions,
        },
        "results": [_serialize_result(item) for item in report.results],
        "overall_risk": str(report.overall_risk),
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "input_source": input_source,
            "version": __version__,
        },
    }


def _serialize_result(result: AnalysisResult) -> dict[str, Any]:
    return {
        "analyzer": result.analyzer_name,
        "severity": str(result.severity),
        "findings": [_serialize_finding(item) for item in result.findings],
    }


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "rule_id": finding.rule_id,
        "message": finding.message,
        "severity": str(finding.severity),
        "file": finding.file,
        "line": finding.line,
    }


def _styled_severity(severity: Severity) -> str:
    return click.style(str(severity), fg=SEVERITY_COLORS[severity], bold=True)
