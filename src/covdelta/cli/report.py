from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated

import typer

from covdelta import logger
from covdelta.cli.errors import (
    EXIT_CONFIG,
    EXIT_DATAERR,
    EXIT_GENERIC,
    EXIT_NOINPUT,
    EXIT_OK,
    EXIT_THRESHOLD,
)
from covdelta.cli.util import _configure_runtime, is_tty_output, resolve_use_color, write_output
from covdelta.config import Settings, load_settings
from covdelta.coverage.parse import read_coverage
from covdelta.engine.report import Report
from covdelta.errors import InputError
from covdelta.inputs.changed_files import parse_changed_files
from covdelta.inputs.changeset import DiffFormat, load_change_set
from covdelta.render.render import OutputFormat, RenderOptions, render


def _load_settings_or_exit() -> Settings:
    try:
        return load_settings(Path.cwd())
    except (tomllib.TOMLDecodeError, ValueError) as exc:
        typer.echo(f"ERROR: invalid configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc


def _build_report(
    *,
    old_coverage: Path,
    new_coverage: Path,
    changed_files: Path,
    root: str,
    diff: Path | None,
    diff_format: DiffFormat | str,
    min_coverage: float,
    source_root: Path | None,
) -> Report | None:
    try:
        old = read_coverage(old_coverage)
        new = read_coverage(new_coverage)
        files = parse_changed_files(changed_files, root)
        if not files:
            return None
        change_set = load_change_set(diff, diff_format)
    except (InputError, UnicodeDecodeError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_DATAERR) from exc
    except OSError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_NOINPUT) from exc
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc

    return Report(
        old=old,
        new=new,
        changed_files=files,
        change_set=change_set,
        min_coverage=min_coverage,
        source_root=source_root,
    )


def report_cmd(
    old_coverage: Annotated[Path, typer.Argument(help="Coverage profile of the base branch.")],
    new_coverage: Annotated[Path, typer.Argument(help="Coverage profile of the pull request.")],
    changed_files: Annotated[Path, typer.Argument(help="JSON array of the files changed by the pull request.")],
    root: Annotated[
        str | None,
        typer.Option("--root", envvar="ROOT_PACKAGE", help="Import path of the repository root package."),
    ] = None,
    trim: Annotated[
        str | None,
        typer.Option("--trim", envvar="TRIM_PACKAGE", help="Prefix to remove from every file and package name."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", help="Output format: markdown, json, human.", case_sensitive=False),
    ] = OutputFormat.MARKDOWN,
    diff: Annotated[
        Path | None,
        typer.Option("--diff", help="Change set: a unified diff or a JSON map of added/modified lines."),
    ] = None,
    diff_format: Annotated[
        DiffFormat | None,
        typer.Option("--diff-format", help="Format of --diff (default: auto).", case_sensitive=False),
    ] = None,
    min_coverage: Annotated[
        float | None,
        typer.Option(
            "--min-coverage",
            envvar="MIN_COVERAGE_NEW_CODE",
            min=0.0,
            help="Fail with exit code 2 if new code coverage % is below this value (0 disables).",
        ),
    ] = None,
    source_root: Annotated[
        Path | None,
        typer.Option("--source-root", help="Directory used to locate Go sources (default: cwd)."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", help="Write output to PATH (use '-' for stdout)."),
    ] = None,
    *,
    color: Annotated[bool, typer.Option("--color", help="Force color output (human format).")] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable color output.")] = False,
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Emit diagnostic logging.")] = False,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="Emit only errors.")] = False,
) -> None:
    """Compare two coverage profiles and report the coverage change of a pull request."""
    _configure_runtime(quiet=quiet, verbose=verbose)
    settings = _load_settings_or_exit()

    resolved_root = root if root is not None else (settings.root or "")
    resolved_trim = trim if trim is not None else (settings.trim or "")
    resolved_min = min_coverage if min_coverage is not None else (settings.min_coverage or 0.0)
    resolved_diff_format = diff_format or settings.diff_format or DiffFormat.AUTO
    resolved_source_root = source_root if source_root is not None else settings.source_root

    report = _build_report(
        old_coverage=old_coverage,
        new_coverage=new_coverage,
        changed_files=changed_files,
        root=resolved_root,
        diff=diff,
        diff_format=resolved_diff_format,
        min_coverage=resolved_min,
        source_root=resolved_source_root,
    )
    if report is None:
        logger.info("skipping report since there are no changed Go files")
        raise typer.Exit(code=EXIT_OK)

    try:
        report.trim_prefix(resolved_trim)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid --trim: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc

    use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=is_tty_output(output))
    try:
        text = render(report, fmt=output_format, options=RenderOptions(color=use_color))
        write_output(text, output)
    except OSError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_GENERIC) from exc
    except Exception as exc:
        logger.exception("unexpected failure")
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_GENERIC) from exc

    if report.threshold_failed():
        new_code = report.new_code_coverage()
        typer.echo(
            f"Threshold failed: new code coverage {new_code.percent:.2f}% < {resolved_min:.2f}%",
            err=True,
        )
        raise typer.Exit(code=EXIT_THRESHOLD)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("report")(report_cmd)


__all__ = ["register"]
