"""CLI entrypoint for pr-risk."""

from __future__ import annotations

import fnmatch
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import click
import typer

from pr_risk import __version__
from pr_risk.analyzers import default_analyzers, list_rule_info
from pr_risk.analyzers.base import AnalysisError, Severity
from pr_risk.change_set import ChangeSet
from pr_risk.config import AppConfig, default_config_template, load_app_config
from pr_risk.demo import build_demo_change_set
from pr_risk.diff_parser import FileChange, MalformedDiffError, parse_unified_diff
from pr_risk.git import GitError, describe_revision, get_diff_between, get_working_tree_diff
from pr_risk.logging import setup_logging
from pr_risk.orchestrator import Report, analyze, build_report
from pr_risk.output import render_human, render_json, render_markdown

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="pr-risk",
    no_args_is_help=True,
    help="Analyze unified diffs and report security, complexity and style risk.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show version and exit.", callback=version_callback, is_eager=True
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command("analyze")
def analyze_command(
    diff_file: Annotated[Path | None, typer.Option(help="Path to unified diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read unified diff from stdin.")] = False,
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    base: Annotated[str | None, typer.Option(help="Base git revision.")] = None,
    head: Annotated[str | None, typer.Option(help="Head git revision.")] = None,
    mock: Annotated[
        bool, typer.Option("--mock", help="Analyze a built-in demo pull request.")
    ] = False,
    number: Annotated[int, typer.Option(help="Pull request number.")] = 0,
    title: Annotated[str | None, typer.Option(help="Pull request title.")] = None,
    author: Annotated[str | None, typer.Option(help="Pull request author.")] = None,
    format: Annotated[
        str | None,
        typer.Option(help="Output format: human|markdown|json.", show_default="human"),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the report to this file.")
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option(help="Exit nonzero if overall risk is at or above low|medium|high."),
    ] = None,
    include: Annotated[list[str] | None, typer.Option(help="Include glob pattern.")] = None,
    exclude: Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Analyze a diff and print a risk report."""
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "markdown", "json"}:
        raise typer.BadParameter(
            "format must be one of: human, markdown, json", param_hint="--format"
        )

    if (base is None) ^ (head is None):
        raise typer.BadParameter("Provide both --base and --head together.")

    if sum([diff_file is not None, stdin, mock, head is not None]) > 1:
        raise typer.BadParameter(
            "Use only one of --diff-file, --stdin, --mock or --base/--head."
        )

    threshold = _resolve_fail_on(fail_on, app_config)

    context = _prepare_analysis_context(
        diff_file=diff_file,
        stdin=stdin,
        mock=mock,
        repo=repo,
        base=base,
        head=head,
        number=number,
        title=title,
        author=author,
        include=include,
        exclude=exclude,
        app_config=app_config,
    )

    if output_format == "json":
        rendered = render_json(context.report, input_source=context.input_source)
    elif output_format == "markdown":
        rendered = render_markdown(context.report)
    else:
        rendered = render_human(context.report)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(click.unstyle(rendered) + "\n", encoding="utf-8")
        typer.echo(f"Report written to: {output}")
    else:
        typer.echo(rendered)

    if threshold is not None and context.report.overall_risk >= threshold:
        logger.info(
            "overall risk %s reached --fail-on %s", context.report.overall_risk, threshold
        )
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """List the heuristic rules each analyzer runs."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    rule_info = list_rule_info()
    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "analyzer": item.analyzer,
                    "severity": item.severity,
                    "description": item.description,
                }
                for item in rule_info
            ]
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        lines.append(f"- {item.rule_id} [{item.analyzer}, {item.severity}] - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration as JSON."""
    app_config = _load_config_or_raise(repo, config_file)
    typer.echo(json.dumps(app_config.to_dict(), sort_keys=True))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".pr-risk.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


@dataclass(slots=True)
class _AnalysisContext:
    """Resolved inputs and outputs shared by command flows."""

    change_set: ChangeSet
    report: Report
    input_source: str


def _prepare_analysis_context(
    *,
    diff_file: Path | None,
    stdin: bool,
    mock: bool,
    repo: Path,
    base: str | None,
    head: str | None,
    number: int,
    title: str | None,
    author: str | None,
    include: list[str] | None,
    exclude: list[str] | None,
    app_config: AppConfig,
) -> _AnalysisContext:
    if mock:
        change_set = build_demo_change_set()
        input_source = "mock"
    else:
        try:
            diff_text, input_source = _resolve_diff_input(
                diff_file=diff_file,
                stdin=stdin,
                repo=repo,
                base=base,
                head=head,
            )
            files = parse_unified_diff(diff_text)
            needs_metadata = title is None or author is None
            if input_source == "git_range" and head is not None and needs_metadata:
                revision = describe_revision(repo, head)
                title = title if title is not None else revision.subject
                author = author if author is not None else revision.author
        except (GitError, MalformedDiffError, OSError) as exc:
            logger.error("cannot read diff: %s", exc)
            raise typer.BadParameter(str(exc)) from exc

        include_patterns = include if include is not None else app_config.include
        exclude_patterns = exclude if exclude is not None else app_config.exclude
        change_set = ChangeSet.from_files(
            _filter_files(files, includes=include_patterns, excludes=exclude_patterns),
            number=number,
            title=title or "",
            author=author or "",
        )

    logger.info(
        "analyzing %d files (+%d -%d) from %s",
        change_set.files_changed,
        change_set.additions,
        change_set.deletions,
        input_source,
    )
    try:
        analyzers = default_analyzers(
            security_patterns=app_config.security.patterns,
            layers=app_config.style.layers,
        )
        results = analyze(change_set, analyzers)
    except AnalysisError as exc:
        logger.error("%s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    return _AnalysisContext(
        change_set=change_set,
        report=build_report(results, change_set),
        input_source=input_source,
    )


def _resolve_diff_input(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    base: str | None,
    head: str | None,
) -> tuple[str, str]:
    if diff_file is not None:
        return (diff_file.read_text(encoding="utf-8"), f"diff_file:{diff_file}")

    if stdin:
        return (sys.stdin.read(), "stdin")

    if base is not None and head is not None:
        return (get_diff_between(repo, base, head), "git_range")

    return (get_working_tree_diff(repo), "git_working_tree")


def _filter_files(
    files: list[FileChange], *, includes: list[str], excludes: list[str]
) -> list[FileChange]:
    filtered: list[FileChange] = []
    for file_change in files:
        path = file_change.path
        if includes and not any(fnmatch.fnmatch(path, pattern) for pattern in includes):
            continue
        if excludes and any(fnmatch.fnmatch(path, pattern) for pattern in excludes):
            continue
        filtered.append(file_change)
    return filtered


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _resolve_fail_on(value: str | None, app_config: AppConfig) -> Severity | None:
    if value is None:
        return app_config.fail_on
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--fail-on") from exc
