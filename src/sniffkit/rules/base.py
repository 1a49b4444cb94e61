"""Rule capability interface and the per-rule execution context.

Rules are plain classes satisfying the ``Rule`` protocol. They hold no
per-file state: anything a rule needs to remember between tokens goes into
``RuleContext.state``, which the dispatcher resets at the start of each pass.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, runtime_checkable

from sniffkit.diagnostics import DiagnosticSink, Severity
from sniffkit.fixer import Fixer
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind


@runtime_checkable
class Rule(Protocol):
    """A check run by the dispatcher on tokens of the kinds it registers for.

    Attributes:
        rule_id: Unique identifier, also the prefix of every code it reports.
        category: Grouping shown by ``sniffkit rules``.
        description: One-line summary shown by ``sniffkit rules``.
    """

    rule_id: ClassVar[str]
    category: ClassVar[str]
    description: ClassVar[str]

    def interest_set(self) -> frozenset[TokenKind]:
        """Token kinds this rule wants to be called on."""
        ...

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        """Inspect the token at ``index``.

        Returns:
            None to continue normally, or an index ``r > index`` to skip
            this rule for every token before ``r``.
        """
        ...


@dataclass
class RuleContext:
    """Per-rule, per-file handle passed to ``Rule.process``.

    Attributes:
        rule_id: Identifier of the rule owning this context.
        options: Opaque per-rule options from the configuration.
        sink: Diagnostic sink of the current pass.
        fixer: Fixer of the current pass.
        state: Scratch space for the rule, cleared at every pass.
    """

    rule_id: str
    options: Mapping[str, Any]
    sink: DiagnosticSink
    fixer: Fixer
    state: dict[str, Any] = field(default_factory=dict)

    def start_pass(self, sink: DiagnosticSink, fixer: Fixer) -> None:
        """Point the context at a new pass and clear its state."""
        self.sink = sink
        self.fixer = fixer
        self.state.clear()

    def option(self, name: str, default: Any) -> Any:
        """Read an option, falling back to ``default``."""
        return self.options.get(name, default)

    def _report(
        self,
        message: str,
        index: int,
        code: str,
        args: Sequence[Any],
        severity: Severity,
        fixable: bool,
    ) -> bool:
        return self.sink.report(
            self.rule_id, code, message, index, severity=severity, args=args, fixable=fixable
        )

    def add_error(
        self, message: str, index: int, code: str = "Found", args: Sequence[Any] = ()
    ) -> None:
        self._report(message, index, code, args, "error", False)

    def add_warning(
        self, message: str, index: int, code: str = "Found", args: Sequence[Any] = ()
    ) -> None:
        self._report(message, index, code, args, "warning", False)

    def add_fixable_error(
        self, message: str, index: int, code: str = "Found", args: Sequence[Any] = ()
    ) -> bool:
        """Report a fixable error.

        Returns:
            True when the rule should apply its fix now.
        """
        return self._report(message, index, code, args, "error", True)

    def add_fixable_warning(
        self, message: str, index: int, code: str = "Found", args: Sequence[Any] = ()
    ) -> bool:
        """Report a fixable warning.

        Returns:
            True when the rule should apply its fix now.
        """
        return self._report(message, index, code, args, "warning", True)
