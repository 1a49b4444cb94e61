"""Collect source files to lint, skipping paths that should not be scanned."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

# Directories never descended into
IGNORED_DIRS = frozenset(
    {
        "vendor",
        "node_modules",
        ".git",
        ".hg",
        ".svn",
        ".idea",
        ".vscode",
        "__pycache__",
        ".venv",
        "venv",
        ".cache",
        ".phpunit.cache",
        "var",
    }
)


def _should_skip_path(path: Path) -> bool:
    """Check whether any component of a relative path is ignored."""
    return bool(set(path.parts) & IGNORED_DIRS)


def find_source_files(paths: Iterable[Path], extensions: Iterable[str] = ("php",)) -> list[Path]:
    """Expand files and directories into the list of files to lint.

    Files named explicitly are kept whatever their extension. Directories are
    searched recursively for files with one of ``extensions``, skipping
    vendor, VCS and cache directories below them.

    Args:
        paths: Files and directories given by the user.
        extensions: Extensions to collect from directories, without dots.

    Returns:
        De-duplicated paths: explicit files first in the given order, then each
        directory's files sorted.

    Raises:
        FileNotFoundError: If a given path does not exist.
    """
    suffixes = {"." + ext.lower().lstrip(".") for ext in extensions}
    found: list[Path] = []
    seen: set[Path] = set()

    def add(path: Path) -> None:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            found.append(path)

    for path in paths:
        if path.is_file():
            add(path)
            continue
        if not path.is_dir():
            raise FileNotFoundError(f"Path does not exist: {path}")

        for candidate in sorted(path.rglob("*")):
            if not candidate.is_file() or candidate.suffix.lower() not in suffixes:
                continue
            try:
                rel_path = candidate.relative_to(path)
            except ValueError:
                continue
            if _should_skip_path(rel_path.parent):
                continue
            add(candidate)

    return found
