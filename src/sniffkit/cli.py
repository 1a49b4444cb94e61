"""sniffkit CLI - Main entry point."""

from __future__ import annotations

import difflib
import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from sniffkit import __version__
from sniffkit.cli_utils import (
    EXIT_CONFIG_ERROR,
    error,
    exclude_option,
    json_option,
    quiet_option,
    ruleset_option,
    rules_option,
    verbose_option,
    warning,
    wire_config,
    workers_option,
)
from sniffkit.config import SniffkitConfig
from sniffkit.console import configure_logging, console
from sniffkit.errors import ConfigurationError
from sniffkit.path_filter import find_source_files
from sniffkit.rules.registry import get_global_registry
from sniffkit.runloop import RunState
from sniffkit.runner import AggregatedResult, LintRunner

app = typer.Typer(
    name="sniffkit",
    help="sniffkit - static analysis and autofix for PHP sources.",
    add_completion=False,
)


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _print_diagnostics(result: AggregatedResult, quiet: bool) -> None:
    """Print remaining diagnostics grouped by file."""
    for file_result in result.results:
        if file_result.state is RunState.CANCELLED:
            if not quiet:
                console.print(f"[path]{escape(file_result.path)}[/path] [muted]cancelled[/muted]")
            continue
        if not file_result.diagnostics:
            continue
        if quiet:
            for d in file_result.diagnostics:
                typer.echo(
                    f"{file_result.path}:{d.line}:{d.column}: {d.severity}: {d.message} [{d.code}]"
                )
            continue

        console.print(f"[path]{escape(file_result.path)}[/path]")
        for d in file_result.diagnostics:
            style = "error" if d.severity == "error" else "warning"
            fixable = " [muted](fixable)[/muted]" if d.fixable else ""
            console.print(
                f"  {d.line}:{d.column}  [{style}]{d.severity}[/{style}]  "
                f"{escape(d.message)}  [code]{escape(d.code)}[/code]{fixable}"
            )
            if d.note:
                console.print(f"      [muted]{escape(d.note)}[/muted]")


def _print_summary(result: AggregatedResult, quiet: bool) -> None:
    if quiet:
        return
    console.print("")
    summary = (
        f"{result.files_checked} file(s) checked: "
        f"{result.errors} error(s), {result.warnings} warning(s)"
    )
    if result.fixed:
        summary += f", {result.fixed} fixed"
    style = "error" if result.status == "fail" else "fixed"
    console.print(f"[{style}]{summary}[/{style}]")


def _json_payload(result: AggregatedResult) -> dict[str, object]:
    return {
        "status": result.status,
        "summary": {
            "files_checked": result.files_checked,
            "errors": result.errors,
            "warnings": result.warnings,
            "fixed": result.fixed,
        },
        "diagnostics": result.records(),
    }


def _run(config: SniffkitConfig, paths: list[Path], write: bool) -> AggregatedResult:
    """Expand paths, build the runner and lint everything."""
    try:
        files = find_source_files(paths, config.normalized_extensions())
    except FileNotFoundError as e:
        error(str(e), exit_code=EXIT_CONFIG_ERROR)
    if not files:
        warning("No source files found.")

    try:
        runner = LintRunner.from_config(config, write=write)
    except ConfigurationError as e:
        error(str(e), exit_code=EXIT_CONFIG_ERROR)

    try:
        return runner.run(files)
    except KeyboardInterrupt:
        runner.cancel()
        raise


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sniffkit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """sniffkit - static analysis and autofix for PHP sources."""
    pass


# -----------------------------------------------------------------------------
# Check Command
# -----------------------------------------------------------------------------


@app.command()
def check(
    paths: list[Path] = typer.Argument(..., help="Files or directories to check."),
    rules: list[str] | None = rules_option(),
    exclude: list[str] | None = exclude_option(),
    ruleset: Path | None = ruleset_option(),
    workers: int | None = workers_option(),
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Report problems without changing any file.

    Exits with 1 when an error-severity diagnostic is found, 2 when the
    configuration is invalid.
    """
    configure_logging(verbose=verbose, quiet=quiet or json_output)
    config = wire_config(
        rules=rules, exclude=exclude, ruleset=ruleset, workers=workers, fix=False
    )
    result = _run(config, paths, write=False)

    if json_output:
        console.print_json(json.dumps(_json_payload(result)))
    else:
        _print_diagnostics(result, quiet)
        _print_summary(result, quiet)

    raise typer.Exit(code=result.exit_code)


# -----------------------------------------------------------------------------
# Fix Command
# -----------------------------------------------------------------------------


@app.command()
def fix(
    paths: list[Path] = typer.Argument(..., help="Files or directories to fix."),
    rules: list[str] | None = rules_option(),
    exclude: list[str] | None = exclude_option(),
    ruleset: Path | None = ruleset_option(),
    workers: int | None = workers_option(),
    max_iterations: int | None = typer.Option(
        None,
        "--max-iterations",
        help="Maximum fix passes per file (default: 50).",
        min=1,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print a unified diff instead of writing files.",
    ),
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
    verbose: bool = verbose_option(),
) -> None:
    """Apply automatic fixes, then report what is left.

    Fixes are applied pass after pass until the file stops changing or the
    iteration budget is spent.
    """
    configure_logging(verbose=verbose, quiet=quiet or json_output)
    config = wire_config(
        rules=rules,
        exclude=exclude,
        ruleset=ruleset,
        workers=workers,
        max_iterations=max_iterations,
        fix=True,
    )
    result = _run(config, paths, write=not dry_run)

    if json_output:
        payload = _json_payload(result)
        payload["changed_files"] = [r.path for r in result.files_changed]
        console.print_json(json.dumps(payload))
        raise typer.Exit(code=result.exit_code)

    if dry_run:
        for file_result in result.files_changed:
            diff = difflib.unified_diff(
                file_result.original_source.splitlines(keepends=True),
                file_result.fixed_source.splitlines(keepends=True),
                fromfile=f"a/{file_result.path}",
                tofile=f"b/{file_result.path}",
            )
            typer.echo("".join(diff), nl=False)
    elif not quiet:
        for file_result in result.files_changed:
            console.print(
                f"[fixed]Fixed[/fixed] {len(file_result.fixed)} problem(s) in "
                f"[path]{escape(file_result.path)}[/path]"
            )

    _print_diagnostics(result, quiet)
    _print_summary(result, quiet)
    raise typer.Exit(code=result.exit_code)


# -----------------------------------------------------------------------------
# Rules Command
# -----------------------------------------------------------------------------


@app.command("rules")
def list_rules(
    json_output: bool = json_option(),
    quiet: bool = quiet_option(),
) -> None:
    """List the available rules."""
    rule_classes = get_global_registry().rule_classes()

    if json_output:
        console.print_json(
            json.dumps(
                {
                    "rules": [
                        {
                            "id": rule.rule_id,
                            "category": rule.category,
                            "description": rule.description,
                        }
                        for rule in rule_classes
                    ]
                }
            )
        )
        return

    if quiet:
        for rule in rule_classes:
            typer.echo(rule.rule_id)
        return

    table = Table(title="Available Rules")
    table.add_column("Rule", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Description")
    for rule in rule_classes:
        table.add_row(rule.rule_id, rule.category, rule.description)
    console.print(table)


if __name__ == "__main__":
    app()

