"""CLI utility functions for sniffkit.

Provides helper functions for:
- Config wiring: Turning Typer CLI options into load_config overrides
- Error formatting: Consistent user-friendly error messages with exit codes
- Option factories shared by the ``check`` and ``fix`` commands
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import typer

from sniffkit.config import SniffkitConfig, load_config
from sniffkit.errors import ConfigurationError

# Exit code conventions
EXIT_SUCCESS = 0
EXIT_LINT_ERRORS = 1  # Unresolved error-severity diagnostics remain
EXIT_CONFIG_ERROR = 2  # Invalid configuration or unusable input paths


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_CONFIG_ERROR) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Args:
        msg: The error message to display.
        exit_code: Exit code to use (default: EXIT_CONFIG_ERROR=2).

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


def warning(msg: str) -> None:
    """Print a warning message to stderr."""
    styled_prefix = typer.style("Warning:", fg=typer.colors.YELLOW, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def split_rule_ids(values: list[str] | None) -> list[str] | None:
    """Flatten repeated and comma-separated rule id options.

    ``--rules a,b --rules c`` gives ``["a", "b", "c"]``; no option gives None
    so lower-precedence sources still apply.
    """
    if not values:
        return None
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def wire_config(
    rules: list[str] | None = None,
    exclude: list[str] | None = None,
    ruleset: Path | None = None,
    workers: int | None = None,
    max_iterations: int | None = None,
    fix: bool | None = None,
    start_dir: Path | None = None,
) -> SniffkitConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Raises:
        typer.Exit: With EXIT_CONFIG_ERROR if configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {
        "rules": split_rule_ids(rules),
        "exclude": split_rule_ids(exclude),
        "ruleset": str(ruleset) if ruleset is not None else None,
        "workers": workers,
        "max_iterations": max_iterations,
        "fix": fix,
    }

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ConfigurationError as e:
        error(f"Invalid configuration: {e}")


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs fresh instances.


def rules_option() -> Any:
    return typer.Option(
        None,
        "--rules",
        "-r",
        help="Rule ids to run (repeatable or comma-separated). Default: all rules.",
    )


def exclude_option() -> Any:
    return typer.Option(
        None,
        "--exclude",
        "-x",
        help="Rule ids to skip (repeatable or comma-separated).",
    )


def ruleset_option() -> Any:
    return typer.Option(
        None,
        "--ruleset",
        help="YAML ruleset selecting rules and their options.",
        exists=True,
        dir_okay=False,
    )


def workers_option() -> Any:
    return typer.Option(
        None,
        "--workers",
        "-j",
        help="Number of files processed in parallel (default: 4).",
        min=1,
    )


def json_option() -> Any:
    return typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    )


def quiet_option() -> Any:
    return typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    )


def verbose_option() -> Any:
    return typer.Option(
        False,
        "--verbose",
        help="Show debug logging, including rule failure tracebacks.",
    )
