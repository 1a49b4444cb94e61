"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import os

# Pin terminal size before rich is imported so CLI output never wraps.
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
os.environ.setdefault("TERM", "dumb")

from collections.abc import Callable, Mapping  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from sniffkit.rules.registry import get_global_registry  # noqa: E402
from sniffkit.runloop import FileResult, RunLoop  # noqa: E402

Lint = Callable[..., FileResult]


@pytest.fixture
def lint() -> Lint:
    """Run selected built-in rules over a source string."""

    def _lint(
        source: str,
        *rule_ids: str,
        fix: bool = False,
        options: Mapping[str, Mapping[str, Any]] | None = None,
        max_iterations: int = 50,
    ) -> FileResult:
        rules = get_global_registry().resolve(list(rule_ids))
        loop = RunLoop(rules, fix=fix, max_iterations=max_iterations, options=options)
        return loop.run(source)

    return _lint
