"""Pure navigation queries over a ``TokenStream``.

Every function here is read-only and returns token indexes. ``None`` is the
single not-found sentinel: searches that run off either end of the stream,
hit their stop index, or meet an unmatched bracket on malformed input all
return ``None`` rather than raising.
"""

from __future__ import annotations

from collections.abc import Iterable

from sniffkit.stream import TokenStream
from sniffkit.tokens import (
    CLOSERS,
    EMPTY_TOKENS,
    EXPRESSION_SCOPE_OWNERS,
    OPENERS,
    STATEMENT_TERMINATORS,
    TokenKind,
)

K = TokenKind

Kinds = TokenKind | Iterable[TokenKind]

# Tokens that begin a new statement when scanning backward.
_START_BOUNDARIES = STATEMENT_TERMINATORS | {K.OPEN_TAG_WITH_ECHO}


def _as_set(kinds: Kinds) -> frozenset[TokenKind]:
    if isinstance(kinds, TokenKind):
        return frozenset({kinds})
    return frozenset(kinds)


def find_next(
    stream: TokenStream,
    kinds: Kinds,
    start: int,
    stop: int | None = None,
    *,
    exclude: bool = False,
    value: str | None = None,
    local: bool = False,
) -> int | None:
    """Find the nearest token at or after ``start`` matching ``kinds``.

    Args:
        stream: Stream to search.
        kinds: A kind or collection of kinds to look for.
        start: First index to inspect.
        stop: Index to stop before (exclusive). Defaults to the stream end.
        exclude: When True, look for the first token whose kind is NOT in
            ``kinds``.
        value: When given, the token content must also equal this string.
        local: When True, do not look past the next ``;``.

    Returns:
        The matching index, or None.
    """
    wanted = _as_set(kinds)
    end = len(stream) if stop is None else min(stop, len(stream))
    for i in range(max(start, 0), end):
        token = stream[i]
        if (token.kind in wanted) != exclude and (value is None or token.content == value):
            return i
        if local and token.kind is K.SEMICOLON:
            break
    return None


def find_previous(
    stream: TokenStream,
    kinds: Kinds,
    start: int,
    stop: int | None = None,
    *,
    exclude: bool = False,
    value: str | None = None,
    local: bool = False,
) -> int | None:
    """Find the nearest token at or before ``start`` matching ``kinds``.

    ``stop`` is inclusive: the token at ``stop`` is still inspected.

    Args:
        stream: Stream to search.
        kinds: A kind or collection of kinds to look for.
        start: First index to inspect.
        stop: Lowest index to inspect. Defaults to 0.
        exclude: When True, look for the first token whose kind is NOT in
            ``kinds``.
        value: When given, the token content must also equal this string.
        local: When True, do not look past the previous ``;`` or ``{``.

    Returns:
        The matching index, or None.
    """
    wanted = _as_set(kinds)
    low = 0 if stop is None else max(stop, 0)
    for i in range(min(start, len(stream) - 1), low - 1, -1):
        token = stream[i]
        if (token.kind in wanted) != exclude and (value is None or token.content == value):
            return i
        if local and token.kind in (K.SEMICOLON, K.OPEN_CURLY_BRACKET):
            break
    return None


def next_non_empty(stream: TokenStream, start: int, stop: int | None = None) -> int | None:
    """Index of the first token at or after ``start`` that is not whitespace or a comment."""
    return find_next(stream, EMPTY_TOKENS, start, stop, exclude=True)


def previous_non_empty(
    stream: TokenStream, start: int, stop: int | None = None
) -> int | None:
    """Index of the first token at or before ``start`` that is not whitespace or a comment."""
    return find_previous(stream, EMPTY_TOKENS, start, stop, exclude=True)


def matching_bracket(stream: TokenStream, index: int) -> int | None:
    """Return the partner of the bracket at ``index``.

    The lookup is a precomputed O(1) read and is its own inverse:
    ``matching_bracket(s, matching_bracket(s, i)) == i`` for paired brackets.
    """
    if not 0 <= index < len(stream):
        return None
    return stream[index].partner


def tokens_as_string(stream: TokenStream, start: int, length: int) -> str:
    """Render ``length`` tokens starting at ``start`` as raw source text."""
    if length <= 0 or start < 0:
        return ""
    return "".join(token.content for token in stream[start : start + length])


def _is_expression_body(stream: TokenStream, brace: int) -> bool:
    scope = stream[brace].scope
    return (
        scope is not None
        and scope.owner is not None
        and stream[scope.owner].kind in EXPRESSION_SCOPE_OWNERS
    )


def find_start_of_statement(stream: TokenStream, start: int) -> int | None:
    """Find the first token of the statement containing ``start``.

    The scan walks backward, jumping over balanced bracket pairs (and closure
    or ``match`` bodies) in one step, and stops at the nearest statement
    boundary at the same nesting level: a terminator (``;``, ``,``, ``=>``,
    ``:``, open/close tag), an enclosing opener, or the end of a block.

    Args:
        stream: Stream to scan.
        start: Index of any token inside the statement.

    Returns:
        Index of the first non-empty token of the statement, or None when an
        unmatched bracket is met.
    """
    if not 0 <= start < len(stream):
        return None
    first = start
    i = start - 1
    while i >= 0:
        token = stream[i]
        kind = token.kind
        if kind in CLOSERS:
            if token.partner is None:
                return None
            if kind is K.CLOSE_CURLY_BRACKET and not _is_expression_body(stream, token.partner):
                break
            first = token.partner
            i = token.partner - 1
            continue
        if kind in OPENERS or kind in _START_BOUNDARIES:
            break
        if kind not in EMPTY_TOKENS:
            first = i
        i -= 1
    return first


def find_end_of_statement(stream: TokenStream, start: int) -> int | None:
    """Find the last token of the statement containing ``start``.

    The scan walks forward, jumping over balanced bracket pairs, and stops at
    the nearest terminator at the same nesting level (which is returned) or
    just before an enclosing closer. A block statement such as ``if (...) {}``
    ends at its closing brace; closure and ``match`` bodies are part of the
    surrounding expression.

    Args:
        stream: Stream to scan.
        start: Index of any token inside the statement.

    Returns:
        Index of the terminating token, or None when an unmatched bracket is
        met.
    """
    if not 0 <= start < len(stream):
        return None
    last = start
    i = start
    while i < len(stream):
        token = stream[i]
        kind = token.kind
        if kind in OPENERS:
            if token.partner is None:
                return None
            if kind is K.OPEN_CURLY_BRACKET and not _is_expression_body(stream, i):
                return token.partner
            last = token.partner
            i = token.partner + 1
            continue
        if kind in CLOSERS and i != start:
            return last
        if kind in STATEMENT_TERMINATORS:
            return i
        if kind not in EMPTY_TOKENS:
            last = i
        i += 1
    return last
