"""Rules replacing slow function calls by cheaper equivalents."""

from __future__ import annotations

import re

from sniffkit.navigator import find_next, next_non_empty, previous_non_empty
from sniffkit.rules.base import RuleContext
from sniffkit.rules.utils import call_arguments, function_call_opener
from sniffkit.stream import TokenStream
from sniffkit.tokens import CLOSERS, OPENERS, TokenKind

K = TokenKind

_LETTER = re.compile(r"[a-z]", re.IGNORECASE)


class ArrayPushMisused:
    """Error on ``array_push()`` calls, which the ``[]`` syntax does faster."""

    rule_id = "array_push_misused"
    category = "performance"
    description = "array_push() instead of the [] short syntax."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.STRING})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        name = stream[index].content
        if name.lower() != "array_push":
            return None
        opener = function_call_opener(stream, index)
        if opener is None:
            return None

        closer = stream[opener].partner
        if closer is None or find_next(stream, K.VARIABLE, opener + 1, closer) is None:
            context.add_error(
                'Function "%s()" used but with invalid signature.',
                index,
                code="InvalidSignature",
                args=[name],
            )
            return None
        context.add_error(
            'Function "%s()" used. Replace it with the [] short syntax equivalent.',
            index,
            args=[name],
        )
        return None


# Tokens an argument may consist of and still bind tighter than ``===``.
_SIMPLE_OPERAND = frozenset(
    {
        K.VARIABLE,
        K.STRING,
        K.NS_SEPARATOR,
        K.OBJECT_OPERATOR,
        K.NULLSAFE_OBJECT_OPERATOR,
        K.DOUBLE_COLON,
        K.SELF,
        K.PARENT,
        K.STATIC,
        K.DOLLAR,
        K.LNUMBER,
        K.DNUMBER,
        K.CONSTANT_ENCAPSED_STRING,
        K.DOUBLE_QUOTED_STRING,
        K.TRUE,
        K.FALSE,
        K.NULL,
        K.ARRAY,
        K.WHITESPACE,
        K.COMMENT,
        K.DOC_COMMENT,
    }
)

# Neighbours of an ``is_null()`` call that bind looser than ``===``.
_LOOSE_CONTEXT = frozenset(
    {
        K.OPEN_PARENTHESIS,
        K.OPEN_SQUARE_BRACKET,
        K.OPEN_SHORT_ARRAY,
        K.OPEN_CURLY_BRACKET,
        K.CLOSE_PARENTHESIS,
        K.CLOSE_SQUARE_BRACKET,
        K.CLOSE_SHORT_ARRAY,
        K.CLOSE_CURLY_BRACKET,
        K.COMMA,
        K.SEMICOLON,
        K.EQUAL,
        K.PLUS_EQUAL,
        K.MINUS_EQUAL,
        K.MUL_EQUAL,
        K.DIV_EQUAL,
        K.CONCAT_EQUAL,
        K.MOD_EQUAL,
        K.POW_EQUAL,
        K.AND_EQUAL,
        K.OR_EQUAL,
        K.XOR_EQUAL,
        K.SL_EQUAL,
        K.SR_EQUAL,
        K.COALESCE_EQUAL,
        K.DOUBLE_ARROW,
        K.BOOLEAN_AND,
        K.BOOLEAN_OR,
        K.LOGICAL_AND,
        K.LOGICAL_OR,
        K.LOGICAL_XOR,
        K.COALESCE,
        K.INLINE_THEN,
        K.INLINE_ELSE,
        K.COLON,
        K.RETURN,
        K.ECHO,
        K.PRINT,
        K.YIELD,
        K.THROW,
        K.OPEN_TAG,
        K.OPEN_TAG_WITH_ECHO,
        K.CLOSE_TAG,
    }
)


class IsNullCouldBeReplacedByNullOperator:
    """Fixable error on ``is_null(x)``; the fix writes ``null === x``.

    A preceding ``!`` turns the replacement into ``null !== x``. Parentheses
    are added around the argument, or around the whole comparison, wherever
    operator precedence would otherwise change the meaning.
    """

    rule_id = "is_null_could_be_replaced_by_null_operator"
    category = "performance"
    description = "is_null() instead of a strict null comparison."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.STRING})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        name = stream[index].content
        if name.lower() != "is_null":
            return None
        opener = function_call_opener(stream, index)
        if opener is None:
            return None
        arguments = call_arguments(stream, opener)
        if len(arguments) != 1:
            return None
        closer = stream[opener].partner

        not_operator = previous_non_empty(stream, index - 1)
        negative = not_operator is not None and stream[not_operator].kind is K.BOOLEAN_NOT
        operator = "!==" if negative else "==="

        fix = context.add_fixable_error(
            'Function "%s()" used. Replace it with "null %s== ...".',
            index,
            code="ReplacementMissing",
            args=[name, operator[0]],
        )
        if not fix:
            return None

        first, last = arguments[0]
        wrap_argument = not _is_simple_operand(stream, first, last)
        start = not_operator if negative else index
        before = previous_non_empty(stream, start - 1)
        after = next_non_empty(stream, closer + 1)
        wrap_all = not (
            (before is None or stream[before].kind in _LOOSE_CONTEXT)
            and (after is None or stream[after].kind in _LOOSE_CONTEXT)
        )

        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(start, first):
            if i not in (index, opener):
                fixer.remove_token(i)
        for i in range(last + 1, closer):
            fixer.remove_token(i)
        fixer.replace_token(index, ("(" if wrap_all else "") + "null " + operator)
        fixer.replace_token(opener, " (" if wrap_argument else " ")
        fixer.replace_token(closer, (")" if wrap_argument else "") + (")" if wrap_all else ""))
        fixer.end_changeset()
        return None


def _is_simple_operand(stream: TokenStream, first: int, last: int) -> bool:
    i = first
    while i <= last:
        token = stream[i]
        if token.kind in OPENERS and token.partner is not None:
            i = token.partner + 1
            continue
        if token.kind in CLOSERS or token.kind not in _SIMPLE_OPERAND:
            return False
        i += 1
    return True


class NoCaseCheckForStrstrStrposStrrpos:
    """Fixable error on case-insensitive searches for a needle without letters.

    ``stripos($haystack, '-')`` does the same as the faster
    ``strpos($haystack, '-')``. Only a needle written as a single string
    literal is inspected.
    """

    rule_id = "no_case_check_for_strstr_strpos_strrpos"
    category = "performance"
    description = "Case-insensitive string search for a needle without letters."

    replacements = {"stristr": "strstr", "stripos": "strpos", "strripos": "strrpos"}

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.STRING})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        name = stream[index].content
        replacement = self.replacements.get(name.lower())
        if replacement is None:
            return None
        opener = function_call_opener(stream, index)
        if opener is None:
            return None
        arguments = call_arguments(stream, opener)
        if len(arguments) < 2:
            return None
        first, last = arguments[1]
        needle = stream[first]
        if first != last or needle.kind is not K.CONSTANT_ENCAPSED_STRING:
            return None
        if _LETTER.search(needle.content.strip("\"'")):
            return None

        fix = context.add_fixable_error(
            'Function "%s()" misused because case sensitive check is not necessary. '
            'Replace it with "%s()".',
            index,
            code="ReplacementMissing",
            args=[name, replacement],
        )
        if fix:
            context.fixer.replace_token(index, replacement)
        return None


RULES = [ArrayPushMisused, IsNullCouldBeReplacedByNullOperator, NoCaseCheckForStrstrStrposStrrpos]
