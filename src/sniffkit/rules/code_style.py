"""Rules about readable, idiomatic expression of otherwise correct code."""

from __future__ import annotations

from sniffkit.navigator import next_non_empty, previous_non_empty, tokens_as_string
from sniffkit.rules.base import RuleContext
from sniffkit.rules.utils import inline_else_for, strip_parentheses, ternary_start
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind

K = TokenKind


class ElvisOperatorCanBeUsed:
    """Fixable warning on ``$a ? $a : $b``; the fix rewrites it to ``$a ?: $b``.

    Condition and ``then`` part are compared after trimming whitespace and
    surrounding parentheses.
    """

    rule_id = "elvis_operator_can_be_used"
    category = "code_style"
    description = "Ternary whose then-part repeats the condition."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.INLINE_THEN})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        start = ternary_start(stream, index)
        inline_else = inline_else_for(stream, index)
        if start is None or inline_else is None:
            return None

        condition = strip_parentheses(tokens_as_string(stream, start, index - start))
        then = strip_parentheses(tokens_as_string(stream, index + 1, inline_else - index - 1))
        if not then or condition != then:
            return None

        fix = context.add_fixable_warning(
            "Elvis operator can be used.", index, code="ReplacementMissing"
        )
        if not fix:
            return None

        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(index + 1, inline_else):
            fixer.remove_token(i)
        fixer.end_changeset()
        return None


class NestedNotOperatorUsage:
    """Fixable error on chains of ``!`` operators.

    An even chain becomes a ``(bool)`` cast, an odd chain a single ``!``. The
    rule resumes after the chain so each chain is reported once.
    """

    rule_id = "nested_not_operator_usage"
    category = "code_style"
    description = "Chained boolean not operators."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.BOOLEAN_NOT})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        count = 1
        pointer = index
        while True:
            following = next_non_empty(stream, pointer + 1)
            if following is None or stream[following].kind is not K.BOOLEAN_NOT:
                break
            count += 1
            pointer = following
        end = following if following is not None else len(stream)

        if count <= 1:
            return end

        fix = context.add_fixable_error("Nested not operator detected.", index, code="NotAllowed")
        if not fix:
            return end

        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(index + 1, end):
            fixer.remove_token(i)
        fixer.replace_token(index, "(bool)" if count % 2 == 0 else "!")
        fixer.end_changeset()
        return end


class NestedPositiveIfs:
    """Error on an ``if`` whose body is nothing but another ``if``.

    Either ``if`` having an ``else``/``elseif`` branch makes the nesting
    meaningful, so those are left alone.
    """

    rule_id = "nested_positive_ifs"
    category = "code_style"
    description = "If statement whose only content is another if."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.IF})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        scope = stream[index].scope
        if scope is None or scope.closer is None:
            return None
        if _has_alternative(stream, scope.closer):
            return None

        nested = next_non_empty(stream, scope.opener + 1)
        if nested is None or stream[nested].kind is not K.IF:
            return None
        nested_scope = stream[nested].scope
        if nested_scope is None or nested_scope.closer is None:
            return None
        if next_non_empty(stream, nested_scope.closer + 1) != scope.closer:
            return None

        context.add_error("Nested if detected.", index, code="NotAllowed")
        return None


def _has_alternative(stream: TokenStream, closer: int) -> bool:
    following = next_non_empty(stream, closer + 1)
    return following is not None and stream[following].kind in (K.ELSE, K.ELSEIF)


class PrefixedIncrementOrDecrement:
    """Fixable warning on ``$i += 1;`` and ``$i -= 1;``.

    The fix rewrites them to ``$i++;`` and ``$i--;``. Only statements whose
    value is discarded are touched: a plain statement or the step clause of a
    ``for`` loop.
    """

    rule_id = "prefixed_increment_or_decrement"
    category = "code_style"
    description = "Compound assignment by one instead of ++/--."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.PLUS_EQUAL, K.MINUS_EQUAL})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        operand = next_non_empty(stream, index + 1)
        if operand is None or stream[operand].content != "1":
            return None
        if not _value_is_discarded(stream, operand):
            return None

        fix = context.add_fixable_warning(
            "Use increment or decrement operator instead of += or -= assignment.",
            index,
            code="NotAllowed",
        )
        if not fix:
            return None

        fixer = context.fixer
        fixer.begin_changeset()
        if index > 0 and stream[index - 1].kind is K.WHITESPACE:
            fixer.remove_token(index - 1)
        fixer.replace_token(index, "++" if stream[index].kind is K.PLUS_EQUAL else "--")
        for i in range(index + 1, operand + 1):
            fixer.remove_token(i)
        fixer.end_changeset()
        return None


def _value_is_discarded(stream: TokenStream, operand: int) -> bool:
    following = next_non_empty(stream, operand + 1)
    if following is None:
        return False
    token = stream[following]
    if token.kind in (K.SEMICOLON, K.CLOSE_TAG):
        return stream[operand].enclosing_bracket is None or _in_for_header(stream, following)
    if token.kind in (K.COMMA, K.CLOSE_PARENTHESIS):
        return _in_for_header(stream, following)
    return False


def _in_for_header(stream: TokenStream, index: int) -> bool:
    pair = stream[index].enclosing_bracket
    if stream[index].kind is K.CLOSE_PARENTHESIS and stream[index].partner is not None:
        opener: int | None = stream[index].partner
    else:
        opener = pair.opener if pair is not None else None
    if opener is None:
        return False
    owner = previous_non_empty(stream, opener - 1)
    return owner is not None and stream[owner].kind is K.FOR


class TraditionalArraySyntax:
    """Fixable warning on ``array(...)`` literals; the fix rewrites them to ``[...]``."""

    rule_id = "traditional_array_syntax"
    category = "code_style"
    description = "Long array() syntax instead of short [] syntax."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.ARRAY})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        pair = stream[index].parenthesis
        if pair is None:
            return None

        fix = context.add_fixable_warning(
            "Traditional syntax array literal detected.", index, code="NotAllowed"
        )
        if not fix:
            return None

        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(index, pair.opener):
            fixer.remove_token(i)
        fixer.replace_token(pair.opener, "[")
        fixer.replace_token(pair.closer, "]")
        fixer.end_changeset()
        return None


RULES = [
    ElvisOperatorCanBeUsed,
    NestedNotOperatorUsage,
    NestedPositiveIfs,
    PrefixedIncrementOrDecrement,
    TraditionalArraySyntax,
]
