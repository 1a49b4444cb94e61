"""Per-file tokenize, dispatch and fix loop.

``RunLoop`` is an explicit state machine::

    TOKENIZING --ok--> DISPATCHING --commits & fix mode--> FIXING --> TOKENIZING
         |                  |
       error             no commits
         v                  v
       FAILED              DONE

Every FIXING step spends one unit of ``max_iterations``, so the loop always
terminates. When the budget runs out, or the fixes start repeating an earlier
source or the previous pass's diagnostics, fixing is switched off and one last
report-only pass checks the final source. A fixed source that no longer
tokenizes is dropped: the loop rolls back to the last source that did and
reports on that. Only the file as read can end in FAILED.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sniffkit.diagnostics import TOKENIZER_ERROR_CODE, Diagnostic, DiagnosticSink
from sniffkit.dispatcher import RuleDispatcher
from sniffkit.errors import IterationBudgetExceeded, TokenizerError
from sniffkit.fixer import Fixer
from sniffkit.rules.base import Rule
from sniffkit.stream import TokenStream
from sniffkit.tokenizer import tokenize

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50


class RunState(str, Enum):
    """States of the per-file loop.

    ``CANCELLED`` is never entered by the loop itself; the runner uses it for
    files that were not started before cancellation.
    """

    TOKENIZING = "tokenizing"
    DISPATCHING = "dispatching"
    FIXING = "fixing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class FileResult:
    """Outcome of processing one file.

    Attributes:
        path: Display path of the file.
        state: Final state (DONE, FAILED or CANCELLED).
        original_source: Source as read.
        fixed_source: Source after all committed fixes (same as original
            when nothing was fixed).
        diagnostics: Diagnostics still present after the last pass.
        fixed: Diagnostics fixed in any pass, in the order they were fixed.
        passes: Number of dispatch passes run.
        converged: True when the last pass committed no fix.
        budget_exceeded: True when the loop stopped on ``max_iterations``.
        error: Tokenizer or I/O error message when the file FAILED.
    """

    path: str
    state: RunState
    original_source: str = ""
    fixed_source: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)
    fixed: list[Diagnostic] = field(default_factory=list)
    passes: int = 0
    converged: bool = False
    budget_exceeded: bool = False
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.fixed_source != self.original_source

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]


class RunLoop:
    """Drives one file to a fixed point.

    Attributes:
        fix: Whether fixable diagnostics are offered for fixing.
        max_iterations: Maximum number of FIXING steps.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        *,
        fix: bool = False,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.rules = list(rules)
        self.fix = fix
        self.max_iterations = max_iterations
        self.options = options or {}

    def run(self, source: str, path: str = "<string>") -> FileResult:
        """Process ``source`` and return its result.

        Args:
            source: File contents.
            path: Display path used in logs and the result.

        Returns:
            FileResult in state DONE or FAILED.
        """
        dispatcher = RuleDispatcher(self.rules, self.options)
        result = FileResult(path=path, state=RunState.TOKENIZING, original_source=source)
        state = RunState.TOKENIZING
        current = source
        last_good = source
        seen_sources = {source}
        stream: TokenStream | None = None
        sink: DiagnosticSink | None = None
        fixer: Fixer | None = None
        previous_signature: tuple[Any, ...] | None = None
        pending_fixed: list[Diagnostic] = []
        rejected: tuple[set[str], str] | None = None
        iterations = 0
        fixing_enabled = self.fix

        while state not in (RunState.DONE, RunState.FAILED):
            if state is RunState.TOKENIZING:
                try:
                    stream = tokenize(current)
                except TokenizerError as e:
                    if iterations == 0:
                        logger.warning("%s: %s", path, e)
                        result.error = str(e)
                        result.diagnostics = [
                            Diagnostic(
                                code=TOKENIZER_ERROR_CODE,
                                severity="error",
                                message=str(e),
                                token_index=0,
                                line=e.line,
                                column=e.column,
                            )
                        ]
                        state = RunState.FAILED
                        continue
                    # Roll back to the last source that tokenized and report on it.
                    logger.warning(
                        "%s: fixes of pass %d broke tokenization (%s); rolled back",
                        path,
                        result.passes,
                        e,
                    )
                    rejected = ({d.code for d in pending_fixed}, str(e))
                    pending_fixed = []
                    current = last_good
                    fixing_enabled = False
                    continue
                result.fixed.extend(pending_fixed)
                pending_fixed = []
                last_good = current
                state = RunState.DISPATCHING

            elif state is RunState.DISPATCHING:
                assert stream is not None
                fixer = Fixer(stream)
                sink = DiagnosticSink(stream, fix_mode=fixing_enabled, fixer=fixer)
                dispatcher.dispatch(stream, sink, fixer)
                result.passes += 1
                logger.debug(
                    "%s: pass %d found %d diagnostic(s), %d changeset(s) committed",
                    path,
                    result.passes,
                    len(sink.diagnostics),
                    fixer.commit_count,
                )
                if fixing_enabled and fixer.changed:
                    state = RunState.FIXING
                else:
                    result.converged = fixing_enabled or not self.fix
                    state = RunState.DONE

            elif state is RunState.FIXING:
                assert sink is not None and fixer is not None
                iterations += 1
                pending_fixed = list(fixer.fixed)
                current = fixer.get_contents()
                signature = sink.signature()
                if signature == previous_signature or current in seen_sources:
                    logger.info("%s: fixes are oscillating, stopping after pass %d", path, result.passes)
                    fixing_enabled = False
                elif iterations >= self.max_iterations:
                    logger.info("%s: fix budget of %d iteration(s) spent", path, self.max_iterations)
                    result.budget_exceeded = True
                    fixing_enabled = False
                else:
                    previous_signature = signature
                    seen_sources.add(current)
                state = RunState.TOKENIZING

        result.state = state
        if state is RunState.DONE:
            assert sink is not None
            result.fixed_source = current
            result.diagnostics = [d for d in sink.sorted() if d.fix_state != "fixed"]
            if result.budget_exceeded:
                note = str(IterationBudgetExceeded(self.max_iterations))
                for diagnostic in result.diagnostics:
                    if diagnostic.fixable:
                        diagnostic.note = note
            if rejected is not None:
                codes, reason = rejected
                for diagnostic in result.diagnostics:
                    if diagnostic.code in codes:
                        diagnostic.note = (
                            f"Fix for {diagnostic.code} discarded: "
                            f"the fixed source does not tokenize ({reason})"
                        )
        else:
            result.fixed_source = source
        return result
