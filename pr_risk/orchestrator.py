"""Concurrent analyzer orchestration and report assembly."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pr_risk.analyzers import default_analyzers
from pr_risk.analyzers.base import (
    AnalysisError,
    AnalysisResult,
    Analyzer,
    Severity,
    max_severity,
)
from pr_risk.change_set import ChangeSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Report:
    """PR metadata, per-analyzer results and the overall risk."""

    number: int
    title: str
    author: str
    files_changed: int
    additions: int
    deletions: int
    results: tuple[AnalysisResult, ...]
    overall_risk: Severity


async def run_all(
    change_set: ChangeSet,
    analyzers: Sequence[Analyzer] | None = None,
) -> list[AnalysisResult]:
    """Run analyzers concurrently and return results in analyzer order.

    The first failing analyzer aborts the batch with an :class:`AnalysisError`;
    results from analyzers that already finished are discarded.
    """
    active = list(analyzers) if analyzers is not None else default_analyzers()
    slots: list[asyncio.Task[AnalysisResult]] = []
    try:
        async with asyncio.TaskGroup() as group:
            for analyzer in active:
                slots.append(group.create_task(_run_one(analyzer, change_set)))
    except ExceptionGroup as exc:
        errors = [item for item in exc.exceptions if isinstance(item, AnalysisError)]
        if not errors:
            raise
        logger.error("analysis aborted: %s", errors[0])
        raise errors[0]

    results = [task.result() for task in slots]
    for result in results:
        logger.debug(
            "analyzer result: %s risk=%s findings=%d",
            result.analyzer_name,
            result.severity,
            len(result.findings),
        )
    return results


async def _run_one(analyzer: Analyzer, change_set: ChangeSet) -> AnalysisResult:
    name = getattr(analyzer, "name", type(analyzer).__name__)
    start = time.perf_counter()
    try:
        result = await asyncio.to_thread(analyzer.analyze, change_set)
    except AnalysisError:
        raise
    except Exception as exc:
        raise AnalysisError(name, f"{exc.__class__.__name__}: {exc}") from exc
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.debug("%s finished in %d ms", name, elapsed_ms)
    return result


def analyze(
    change_set: ChangeSet,
    analyzers: Sequence[Analyzer] | None = None,
) -> list[AnalysisResult]:
    """Blocking wrapper around :func:`run_all`."""
    return asyncio.run(run_all(change_set, analyzers))


def overall_severity(results: Iterable[AnalysisResult]) -> Severity:
    return max_severity(result.severity for result in results)


def build_report(results: Iterable[AnalysisResult], change_set: ChangeSet) -> Report:
    """Merge analyzer results with PR metadata."""
    collected = tuple(results)
    return Report(
        number=change_set.number,
        title=change_set.title,
        author=change_set.author,
        files_changed=change_set.files_changed,
        additions=change_set.additions,
        deletions=change_set.deletions,
        results=collected,
        overall_risk=overall_severity(collected),
    )
