"""Navigation helpers shared by several rules."""

from __future__ import annotations

from sniffkit.navigator import find_start_of_statement, next_non_empty, previous_non_empty
from sniffkit.stream import TokenStream
from sniffkit.tokens import (
    ASSIGNMENT_TOKENS,
    CLOSERS,
    EMPTY_TOKENS,
    OPENERS,
    STATEMENT_TERMINATORS,
    TokenKind,
)

K = TokenKind

# A name preceded by one of these is a method, a declaration or a class
# constant, never a call to a global function.
_NOT_A_FUNCTION_CALL = frozenset(
    {K.OBJECT_OPERATOR, K.NULLSAFE_OBJECT_OPERATOR, K.DOUBLE_COLON, K.FUNCTION, K.NEW, K.CONST}
)

# Operators binding looser than ``?:``; they delimit a ternary expression.
TERNARY_BOUNDARIES = ASSIGNMENT_TOKENS | {
    K.LOGICAL_AND,
    K.LOGICAL_OR,
    K.LOGICAL_XOR,
    K.COMMA,
}

# Keywords that introduce an expression without being part of it.
_EXPRESSION_KEYWORDS = frozenset(
    {K.RETURN, K.ECHO, K.PRINT, K.YIELD, K.THROW, K.CASE, K.INCLUDE, K.REQUIRE}
)


def function_call_opener(stream: TokenStream, index: int) -> int | None:
    """Return the ``(`` of a global function call named by the token at ``index``.

    Method calls, static calls, declarations and namespace-qualified names
    (``Foo\\bar()``) are not global function calls. A fully qualified
    ``\\bar()`` is.
    """
    opener = next_non_empty(stream, index + 1)
    if opener is None or stream[opener].kind is not K.OPEN_PARENTHESIS:
        return None
    previous = previous_non_empty(stream, index - 1)
    if previous is None or stream[previous].kind in _NOT_A_FUNCTION_CALL:
        return None
    if stream[previous].kind is K.NS_SEPARATOR:
        qualifier = previous_non_empty(stream, previous - 1)
        if qualifier is not None and stream[qualifier].kind in (K.STRING, K.NAMESPACE):
            return None
    return opener


def call_arguments(stream: TokenStream, opener: int) -> list[tuple[int, int]]:
    """Split a parenthesized argument list into ``(first, last)`` token ranges.

    Ranges are inclusive and trimmed of whitespace and comments; empty
    arguments (``f()``) produce no range.
    """
    closer = stream[opener].partner
    if closer is None:
        return []
    ranges: list[tuple[int, int]] = []
    start = opener + 1
    i = start
    while i <= closer:
        token = stream[i]
        if token.kind in OPENERS and token.partner is not None:
            i = token.partner + 1
            continue
        if i == closer or token.kind is K.COMMA:
            first = next_non_empty(stream, start, i)
            last = previous_non_empty(stream, i - 1, start)
            if first is not None and last is not None:
                ranges.append((first, last))
            start = i + 1
        i += 1
    return ranges


def inline_else_for(stream: TokenStream, index: int) -> int | None:
    """Return the ``:`` matching the ``?`` at ``index``, or None."""
    depth = 1
    i = index + 1
    while i < len(stream):
        token = stream[i]
        if token.kind in OPENERS:
            if token.partner is None:
                return None
            i = token.partner + 1
            continue
        if token.kind in CLOSERS or token.kind is K.SEMICOLON:
            return None
        if token.kind is K.INLINE_THEN:
            depth += 1
        elif token.kind is K.INLINE_ELSE:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def ternary_start(stream: TokenStream, index: int) -> int | None:
    """Return the first token of the condition of the ``?`` at ``index``."""
    floor = find_start_of_statement(stream, index)
    if floor is None:
        return None
    first = index
    i = index - 1
    while i >= floor:
        token = stream[i]
        if token.kind in CLOSERS:
            if token.partner is None:
                return None
            first = token.partner
            i = token.partner - 1
            continue
        if (
            token.kind in TERNARY_BOUNDARIES
            or token.kind in _EXPRESSION_KEYWORDS
            or token.kind in (K.INLINE_THEN, K.INLINE_ELSE)
        ):
            break
        if token.kind not in EMPTY_TOKENS:
            first = i
        i -= 1
    return first if first != index else None


def ternary_end(stream: TokenStream, inline_else: int) -> int | None:
    """Return the last token of the ``else`` branch starting after ``inline_else``."""
    last = inline_else
    i = inline_else + 1
    while i < len(stream):
        token = stream[i]
        if token.kind in OPENERS:
            if token.partner is None:
                return None
            last = token.partner
            i = token.partner + 1
            continue
        if (
            token.kind in CLOSERS
            or token.kind in TERNARY_BOUNDARIES
            or token.kind in STATEMENT_TERMINATORS
        ):
            break
        if token.kind not in EMPTY_TOKENS:
            last = i
        i += 1
    return last if last != inline_else else None


def strip_parentheses(text: str) -> str:
    """Trim whitespace, then any surrounding parenthesis characters.

    Behaves like PHP's ``trim($text, '()')``: every leading and trailing
    parenthesis goes, balanced or not, so ``"(a) && (b)"`` becomes
    ``"a) && (b"``.
    """
    return text.strip().strip("()").strip()
