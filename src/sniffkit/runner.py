"""Lint runner for orchestrating many files.

Each file gets its own ``RunLoop`` pass in a worker thread; nothing but the
read-only rule instances is shared between files. Results are returned in the
order the paths were given, whatever order the workers finish in.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from sniffkit.config import SniffkitConfig
from sniffkit.diagnostics import IO_ERROR_CODE, Diagnostic
from sniffkit.rules.base import Rule
from sniffkit.rules.registry import RuleRegistry, get_global_registry
from sniffkit.runloop import DEFAULT_MAX_ITERATIONS, FileResult, RunLoop, RunState

logger = logging.getLogger(__name__)


@dataclass
class AggregatedResult:
    """Aggregated results from linting multiple files.

    Attributes:
        status: "fail" if any unresolved error remains, "pass" otherwise.
        files_checked: Number of files processed (cancelled files excluded).
        errors: Number of remaining error-severity diagnostics.
        warnings: Number of remaining warning-severity diagnostics.
        fixed: Number of diagnostics fixed across all files.
        results: Per-file results, in input order.
    """

    status: Literal["pass", "fail"]
    files_checked: int
    errors: int
    warnings: int
    fixed: int
    results: list[FileResult]

    @property
    def exit_code(self) -> int:
        """1 when any file still has an error-severity diagnostic, else 0."""
        return 1 if self.status == "fail" else 0

    @property
    def files_changed(self) -> list[FileResult]:
        return [r for r in self.results if r.changed]

    def records(self) -> list[dict[str, Any]]:
        """Flatten remaining diagnostics into ``{file, line, column, ...}`` records."""
        records: list[dict[str, Any]] = []
        for result in self.results:
            for diagnostic in result.diagnostics:
                records.append(
                    {
                        "file": result.path,
                        "line": diagnostic.line,
                        "column": diagnostic.column,
                        "severity": diagnostic.severity,
                        "code": diagnostic.code,
                        "message": diagnostic.message,
                    }
                )
        return records


class LintRunner:
    """Runs the active rule set over a collection of files.

    Supports:
    - Selecting rules by id, with exclusions
    - Report-only or fix mode, optionally writing fixed files back
    - Parallel execution across files
    - Cooperative cancellation between files
    """

    def __init__(
        self,
        rule_ids: Iterable[str] | None = None,
        exclude: Iterable[str] = (),
        *,
        fix: bool = False,
        write: bool = False,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        workers: int = 4,
        rule_options: Mapping[str, Mapping[str, Any]] | None = None,
        registry: RuleRegistry | None = None,
    ) -> None:
        """Initialize the runner and resolve the active rules.

        Args:
            rule_ids: Rule ids to enable; None or empty enables all rules.
            exclude: Rule ids to disable.
            fix: Whether to run the fix loop.
            write: Whether to write fixed sources back to disk.
            max_iterations: Maximum fix passes per file.
            workers: Number of worker threads.
            rule_options: Per-rule option mappings.
            registry: Registry to resolve rule ids against. Defaults to the
                global registry.

        Raises:
            UnknownRuleError: If a rule id is not registered.
            ValueError: If ``workers`` or ``max_iterations`` is below 1.
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        registry = registry or get_global_registry()
        self.rules: list[Rule] = registry.resolve(rule_ids, exclude)
        self.fix = fix
        self.write = write
        self.workers = workers
        self.loop = RunLoop(
            self.rules, fix=fix, max_iterations=max_iterations, options=rule_options or {}
        )
        self._cancelled = threading.Event()

    @classmethod
    def from_config(
        cls,
        config: SniffkitConfig,
        *,
        write: bool = False,
        registry: RuleRegistry | None = None,
    ) -> LintRunner:
        """Build a runner from a resolved configuration."""
        return cls(
            config.rules,
            config.exclude,
            fix=config.fix,
            write=write,
            max_iterations=config.max_iterations,
            workers=config.workers,
            rule_options=config.rule_options,
            registry=registry,
        )

    def cancel(self) -> None:
        """Stop starting new files. Files already in progress finish normally."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, paths: Iterable[Path]) -> AggregatedResult:
        """Lint every path.

        Args:
            paths: Files to process.

        Returns:
            AggregatedResult with per-file results in input order.
        """
        path_list = list(paths)
        if self.workers > 1 and len(path_list) > 1:
            results = self._run_parallel(path_list)
        else:
            results = [self.run_file(path) for path in path_list]
        return self._aggregate_results(results)

    def run_file(self, path: Path) -> FileResult:
        """Lint a single file, honouring cancellation and ``write``."""
        display = str(path)
        if self.cancelled:
            return FileResult(path=display, state=RunState.CANCELLED)

        try:
            with open(path, encoding="utf-8", newline="") as f:
                source = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", path, e)
            return _io_failure(display, f"Cannot read file: {e}")

        result = self.loop.run(source, display)

        if self.write and result.state is RunState.DONE and result.changed:
            try:
                with open(path, "w", encoding="utf-8", newline="") as f:
                    f.write(result.fixed_source)
                logger.info("Wrote %d fix(es) to %s", len(result.fixed), path)
            except OSError as e:
                logger.warning("Cannot write %s: %s", path, e)
                result.diagnostics.append(_io_diagnostic(f"Cannot write file: {e}"))
        return result

    def _run_parallel(self, paths: list[Path]) -> list[FileResult]:
        """Run files in parallel using ThreadPoolExecutor."""
        results: list[FileResult | None] = [None] * len(paths)

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
            future_to_position: dict[concurrent.futures.Future[FileResult], int] = {
                executor.submit(self.run_file, path): position
                for position, path in enumerate(paths)
            }
            for future in concurrent.futures.as_completed(future_to_position):
                position = future_to_position[future]
                try:
                    results[position] = future.result()
                except Exception as e:
                    logger.error("Unexpected failure on %s: %s", paths[position], e)
                    results[position] = _io_failure(str(paths[position]), f"Processing failed: {e}")

        return [r for r in results if r is not None]

    def _aggregate_results(self, results: list[FileResult]) -> AggregatedResult:
        errors = 0
        warnings = 0
        fixed = 0
        for result in results:
            errors += len(result.errors)
            warnings += len(result.warnings)
            fixed += len(result.fixed)

        status: Literal["pass", "fail"] = "fail" if errors else "pass"
        return AggregatedResult(
            status=status,
            files_checked=sum(1 for r in results if r.state is not RunState.CANCELLED),
            errors=errors,
            warnings=warnings,
            fixed=fixed,
            results=results,
        )


def _io_diagnostic(message: str) -> Diagnostic:
    return Diagnostic(
        code=IO_ERROR_CODE, severity="error", message=message, token_index=0, line=1, column=1
    )


def _io_failure(path: str, message: str) -> FileResult:
    return FileResult(
        path=path, state=RunState.FAILED, diagnostics=[_io_diagnostic(message)], error=message
    )
