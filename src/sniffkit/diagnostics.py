"""Diagnostic records and the per-pass diagnostic sink.

Rules never build ``Diagnostic`` objects themselves: they report through their
``RuleContext``, which forwards to the ``DiagnosticSink`` of the current pass.
The sink fills in positions, deduplicates, and decides whether a fixable
report is offered to the rule for fixing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sniffkit.stream import TokenStream

if TYPE_CHECKING:
    from sniffkit.fixer import Fixer

Severity = Literal["error", "warning"]
FixState = Literal["unfixed", "fixed", "conflicted"]

# Codes reported by the engine itself rather than by a rule.
RULE_ERROR_CODE = "internal.rule_error"
TOKENIZER_ERROR_CODE = "internal.tokenizer"
IO_ERROR_CODE = "internal.io"


@dataclass
class Diagnostic:
    """A single problem found in a file.

    Attributes:
        code: Dotted code, ``"<rule_id>.<short_code>"``.
        severity: "error" or "warning".
        message: Rendered human-readable message.
        token_index: Index of the token the report is attached to.
        line: 1-based line of that token.
        column: 1-based column of that token.
        fixable: Whether the rule declared the problem auto-fixable.
        fix_state: "unfixed", "fixed" once a changeset bound to it commits,
            or "conflicted" when its changeset was discarded.
        note: Extra explanation attached by the engine (conflicts, budget).
    """

    code: str
    severity: Severity
    message: str
    token_index: int
    line: int
    column: int
    fixable: bool = False
    fix_state: FixState = "unfixed"
    note: str | None = None

    @property
    def rule_id(self) -> str:
        """The rule identifier part of ``code``."""
        return self.code.rsplit(".", 1)[0]

    def signature(self) -> tuple[str, int, int, str]:
        """Position-and-text key used to compare two passes."""
        return (self.code, self.line, self.column, self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "fixable": self.fixable,
            "fix_state": self.fix_state,
            "note": self.note,
        }


def render_message(template: str, args: Sequence[Any] = ()) -> str:
    """Render a ``%``-style message template with its arguments."""
    if not args:
        return template
    return template % tuple(args)


class DiagnosticSink:
    """Collects the diagnostics of one dispatch pass over one stream.

    Attributes:
        stream: Stream the token indexes refer to.
        fix_mode: Whether fixable reports may be offered for fixing.
        fixer: Fixer that receives offered diagnostics, in fix mode.
        diagnostics: Accepted diagnostics in report order.
    """

    def __init__(
        self, stream: TokenStream, fix_mode: bool = False, fixer: Fixer | None = None
    ) -> None:
        self.stream = stream
        self.fix_mode = fix_mode
        self.fixer = fixer
        self.diagnostics: list[Diagnostic] = []
        self._seen: set[tuple[str, int, str]] = set()

    def report(
        self,
        rule_id: str,
        short_code: str,
        template: str,
        index: int,
        *,
        severity: Severity = "error",
        args: Sequence[Any] = (),
        fixable: bool = False,
    ) -> bool:
        """Record a report from a rule.

        Args:
            rule_id: Identifier of the reporting rule.
            short_code: Rule-local code, joined to ``rule_id`` with a dot.
            template: ``%``-style message template.
            index: Token index the report is attached to.
            severity: "error" or "warning".
            args: Values substituted into ``template``.
            fixable: Whether the rule can fix the problem.

        Returns:
            True only when the report is fixable, not a duplicate, and the
            run is in fix mode: the caller should then fix it.
        """
        code = f"{rule_id}.{short_code}"
        diagnostic = self._record(code, render_message(template, args), index, severity, fixable)
        if diagnostic is None:
            return False
        if not (fixable and self.fix_mode and self.fixer is not None):
            return False
        self.fixer.offer(diagnostic)
        return True

    def add_internal_error(
        self, code: str, message: str, index: int = 0, *, origin: str = ""
    ) -> Diagnostic | None:
        """Record an engine-level error such as a failing rule.

        ``origin`` names what failed (a rule id) and is part of the dedup key,
        so two rules failing on one token give two diagnostics.
        """
        return self._record(code, message, index, "error", False, origin)

    def _record(
        self,
        code: str,
        message: str,
        index: int,
        severity: Severity,
        fixable: bool,
        origin: str = "",
    ) -> Diagnostic | None:
        key = (code, index, origin)
        if key in self._seen:
            return None
        self._seen.add(key)
        line, column = self._position(index)
        diagnostic = Diagnostic(
            code=code,
            severity=severity,
            message=message,
            token_index=index,
            line=line,
            column=column,
            fixable=fixable,
        )
        self.diagnostics.append(diagnostic)
        return diagnostic

    def _position(self, index: int) -> tuple[int, int]:
        if 0 <= index < len(self.stream):
            token = self.stream[index]
            return token.line, token.column
        return 1, 1

    def sorted(self) -> list[Diagnostic]:
        """Diagnostics ordered by position, then code."""
        return sorted(self.diagnostics, key=lambda d: (d.line, d.column, d.code))

    def signature(self) -> tuple[tuple[str, int, int, str], ...]:
        """Order-independent summary of this pass, for fixed-point detection."""
        return tuple(d.signature() for d in self.sorted())

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]
