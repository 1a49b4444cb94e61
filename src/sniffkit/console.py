"""Console and logging setup.

Diagnostics go to stdout through ``console``; log records go to stderr
through a ``RichHandler`` on the root logger.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_THEME = Theme(
    {
        "error": "bold red",
        "warning": "yellow",
        "fixed": "green",
        "path": "bold blue",
        "code": "magenta",
        "muted": "dim",
    }
)

console = Console(theme=_THEME, highlight=False)
err_console = Console(theme=_THEME, stderr=True, highlight=False)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route standard logging through rich.

    Existing RichHandlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        verbose: Log DEBUG records, including rule tracebacks.
        quiet: Only log errors.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    root_logger.addHandler(handler)

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    root_logger.setLevel(level)
