"""Deterministic routing of tokens to interested rules.

The dispatcher owns the active rules of one file. It indexes them by token
kind once, walks the stream in index order, and calls each interested rule in
rule-id order. A failing rule is isolated: its open changeset is rolled back,
the failure is logged and recorded as an ``internal.rule_error`` diagnostic,
and dispatch continues with the next rule.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from sniffkit.diagnostics import RULE_ERROR_CODE, DiagnosticSink
from sniffkit.errors import RuleExecutionError
from sniffkit.fixer import Fixer
from sniffkit.rules.base import Rule, RuleContext
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind

logger = logging.getLogger(__name__)


class RuleDispatcher:
    """Routes tokens to rules for every pass over one file.

    Attributes:
        rules: Active rules, sorted by rule_id.
        failures: Rule failures recorded across all passes.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            rules: Rules to run. Order is irrelevant; they are sorted by id.
            options: Per-rule option mappings keyed by rule_id.

        Raises:
            ValueError: If two rules share a rule_id.
        """
        self.rules: list[Rule] = sorted(rules, key=lambda rule: rule.rule_id)
        ids = [rule.rule_id for rule in self.rules]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate rule ids in active set: {ids}")
        options = options or {}
        self._options = {rule_id: dict(options.get(rule_id, {})) for rule_id in ids}
        self._index: dict[TokenKind, list[Rule]] = defaultdict(list)
        for rule in self.rules:
            for kind in rule.interest_set():
                self._index[kind].append(rule)
        self._contexts: dict[str, RuleContext] = {}
        self.failures: list[RuleExecutionError] = []

    def rules_for(self, kind: TokenKind) -> list[Rule]:
        """Rules interested in ``kind``, in dispatch order."""
        return list(self._index.get(kind, ()))

    def _context(self, rule: Rule, sink: DiagnosticSink, fixer: Fixer) -> RuleContext:
        context = self._contexts.get(rule.rule_id)
        if context is None:
            context = RuleContext(rule.rule_id, self._options[rule.rule_id], sink, fixer)
            self._contexts[rule.rule_id] = context
        else:
            context.start_pass(sink, fixer)
        return context

    def dispatch(self, stream: TokenStream, sink: DiagnosticSink, fixer: Fixer) -> None:
        """Run every interested rule over ``stream`` once.

        Args:
            stream: Tokens of the current pass.
            sink: Receives all diagnostics of this pass.
            fixer: Receives all edits of this pass.
        """
        contexts = {rule.rule_id: self._context(rule, sink, fixer) for rule in self.rules}
        resume: dict[str, int] = {}
        for token in stream:
            interested = self._index.get(token.kind)
            if not interested:
                continue
            for rule in interested:
                if token.index < resume.get(rule.rule_id, 0):
                    continue
                result = self._invoke(rule, stream, token.index, contexts[rule.rule_id], sink, fixer)
                if result is not None and result > token.index:
                    resume[rule.rule_id] = result

    def _invoke(
        self,
        rule: Rule,
        stream: TokenStream,
        index: int,
        context: RuleContext,
        sink: DiagnosticSink,
        fixer: Fixer,
    ) -> int | None:
        try:
            result = rule.process(stream, index, context)
        except Exception as e:
            fixer.rollback_changeset()
            error = RuleExecutionError(rule.rule_id, index, e)
            self.failures.append(error)
            logger.warning("%s", error)
            logger.debug("Traceback for rule '%s'", rule.rule_id, exc_info=True)
            sink.add_internal_error(RULE_ERROR_CODE, str(error), index, origin=rule.rule_id)
            return None
        finally:
            fixer.clear_offer()
        if fixer.in_changeset:
            logger.warning(
                "Rule '%s' left a changeset open on token %d; rolled back", rule.rule_id, index
            )
            fixer.rollback_changeset()
        return result
