"""Analyzers package."""

from __future__ import annotations

from collections.abc import Sequence

from pr_risk.analyzers.base import (
    AnalysisError,
    AnalysisResult,
    Analyzer,
    Finding,
    LineRule,
    RuleInfo,
    Severity,
    max_severity,
)
from pr_risk.analyzers.complexity import ComplexityAnalyzer
from pr_risk.analyzers.security import SecurityAnalyzer
from pr_risk.analyzers.style import StyleAnalyzer

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "Analyzer",
    "ComplexityAnalyzer",
    "Finding",
    "LineRule",
    "RuleInfo",
    "SecurityAnalyzer",
    "Severity",
    "StyleAnalyzer",
    "default_analyzers",
    "list_rule_info",
    "max_severity",
]


def default_analyzers(
    *,
    security_patterns: Sequence[str] = (),
    layers: Sequence[str] = (),
) -> list[Analyzer]:
    """Return the analyzers in report order: security, complexity, style."""
    return [
        SecurityAnalyzer(extra_patterns=security_patterns),
        ComplexityAnalyzer(),
        StyleAnalyzer(layers=layers),
    ]


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for every known rule."""
    return [
        *SecurityAnalyzer.rule_info(),
        *ComplexityAnalyzer.rule_info(),
        *StyleAnalyzer.rule_info(),
    ]
