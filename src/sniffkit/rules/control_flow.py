"""Rules about conditionals and exception handling."""

from __future__ import annotations

from sniffkit.navigator import next_non_empty, tokens_as_string
from sniffkit.rules.base import RuleContext
from sniffkit.rules.utils import inline_else_for, ternary_end, ternary_start
from sniffkit.stream import TokenStream
from sniffkit.tokens import EMPTY_TOKENS, TokenKind

K = TokenKind

_BOOLEAN_LITERALS = frozenset({"true", "false"})


class TernaryOperatorCouldBeSimplified:
    """Flags ternaries that do not need to be ternaries.

    A literal ``true``/``false`` condition is a fixable error: the fix keeps
    only the branch that is always taken. Branches that are both boolean
    literals (``$a > 1 ? true : false``) produce a warning, since the
    condition already yields the boolean.
    """

    rule_id = "ternary_operator_could_be_simplified"
    category = "control_flow"
    description = "Ternary with a constant condition or boolean-literal branches."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.INLINE_THEN})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        start = ternary_start(stream, index)
        inline_else = inline_else_for(stream, index)
        if start is None or inline_else is None:
            return None
        end = ternary_end(stream, inline_else)
        if end is None:
            return None

        positive = tokens_as_string(stream, index + 1, inline_else - index - 1).strip()
        negative = tokens_as_string(stream, inline_else + 1, end - inline_else).strip()
        condition = [
            stream[i].kind
            for i in range(start, index)
            if stream[i].kind not in EMPTY_TOKENS
            and stream[i].kind not in (K.OPEN_PARENTHESIS, K.CLOSE_PARENTHESIS)
        ]

        if condition == [K.TRUE] and positive:
            self._simplify(
                context,
                index,
                start,
                end,
                keep=positive,
                message="Condition returns true. Please only keep the positive part.",
            )
        elif condition == [K.FALSE]:
            self._simplify(
                context,
                index,
                start,
                end,
                keep=negative,
                message="Condition returns false. Please only keep the negative part.",
            )
        elif positive.lower() in _BOOLEAN_LITERALS and negative.lower() in _BOOLEAN_LITERALS:
            context.add_warning(
                "Positive and negative variants can be skipped: "
                "the condition already returns a boolean.",
                index,
                code="BooleanBranches",
            )
        return None

    def _simplify(
        self, context: RuleContext, index: int, start: int, end: int, *, keep: str, message: str
    ) -> None:
        if not context.add_fixable_error(message, index, code="RemoveUseless"):
            return
        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(start, end + 1):
            fixer.remove_token(i)
        fixer.replace_token(index, keep)
        fixer.end_changeset()


class WrongCatchOrder:
    """Errors on the catch chain of a ``try``.

    A class caught twice is an error on the second catch. Catching the
    generic ``Exception`` first, when more catches follow, makes them
    unreachable and is an error too.
    """

    rule_id = "wrong_catch_order"
    category = "control_flow"
    description = "Exception caught twice, or Exception caught first."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.TRY})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        scope = stream[index].scope
        if scope is None or scope.closer is None:
            return None

        catches = list(_catch_chain(stream, scope.closer))
        seen: set[str] = set()
        for catch, names in catches:
            for name in names:
                key = name.lstrip("\\").lower()
                if key in seen:
                    context.add_error(
                        "You catch two times the Exception: %s.", catch, code="Duplicate", args=[name]
                    )
                seen.add(key)

        if len(catches) > 1:
            first_catch, first_names = catches[0]
            if any(name.lstrip("\\").lower() == "exception" for name in first_names):
                context.add_error(
                    "You can't catch \\Exception in first.", first_catch, code="GenericFirst"
                )
        return None


def _catch_chain(stream: TokenStream, try_closer: int):
    """Yield ``(catch_index, class_names)`` for each catch following a try block."""
    pointer = try_closer
    while True:
        catch = next_non_empty(stream, pointer + 1)
        if catch is None or stream[catch].kind is not K.CATCH:
            return
        token = stream[catch]
        if token.parenthesis is None or token.scope is None or token.scope.closer is None:
            return
        yield catch, _caught_classes(stream, token.parenthesis.opener, token.parenthesis.closer)
        pointer = token.scope.closer


def _caught_classes(stream: TokenStream, opener: int, closer: int) -> list[str]:
    """Class names of a catch clause, splitting ``A | B`` unions."""
    names: list[str] = []
    current = ""
    for i in range(opener + 1, closer):
        token = stream[i]
        if token.kind in (K.STRING, K.NS_SEPARATOR):
            current += token.content
        elif token.kind is K.BITWISE_OR or token.kind is K.VARIABLE:
            if current:
                names.append(current)
            current = ""
    if current:
        names.append(current)
    return names


RULES = [TernaryOperatorCouldBeSimplified, WrongCatchOrder]
