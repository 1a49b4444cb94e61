"""Immutable token stream with precomputed bracket and scope pairing.

A ``TokenStream`` is built once per tokenize pass from the lexer output. All
pairing (brackets, curly scopes, case scopes, owner parentheses) and nesting
levels are computed here so that every navigation query afterwards is a plain
index lookup.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import overload

from sniffkit.tokens import (
    CLOSER_FOR,
    CLOSERS,
    EMPTY_TOKENS,
    OPENERS,
    PARENTHESIS_OWNERS,
    SCOPE_OWNERS,
    Pair,
    Scope,
    Token,
    TokenKind,
)

# (kind, content, line, column) as produced by the lexer.
Lexeme = tuple[TokenKind, str, int, int]

K = TokenKind

# Tokens that stop the backward search for the owner of a curly brace.
_OWNER_SEARCH_STOP = frozenset(
    {
        K.SEMICOLON,
        K.OPEN_CURLY_BRACKET,
        K.CLOSE_CURLY_BRACKET,
        K.OPEN_TAG,
        K.OPEN_TAG_WITH_ECHO,
        K.CLOSE_TAG,
        K.OPEN_PARENTHESIS,
        K.OPEN_SQUARE_BRACKET,
        K.OPEN_SHORT_ARRAY,
        K.DOUBLE_ARROW,
        K.INLINE_HTML,
    }
)


class TokenStream(Sequence[Token]):
    """Randomly indexable, immutable sequence of tokens.

    Attributes:
        unmatched: Indexes of bracket tokens that have no partner. Empty for
            well-formed input.
    """

    def __init__(self, tokens: Sequence[Token], unmatched: Iterable[int] = ()) -> None:
        self._tokens: tuple[Token, ...] = tuple(tokens)
        self.unmatched: tuple[int, ...] = tuple(sorted(unmatched))

    @overload
    def __getitem__(self, index: int) -> Token: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Token]: ...

    def __getitem__(self, index: int | slice) -> Token | Sequence[Token]:
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __repr__(self) -> str:
        return f"TokenStream({len(self._tokens)} tokens, {len(self.unmatched)} unmatched)"

    @property
    def source(self) -> str:
        """The source text the stream was built from."""
        return "".join(token.content for token in self._tokens)

    @property
    def is_well_formed(self) -> bool:
        """Whether every bracket token has a partner."""
        return not self.unmatched

    def pair(self, index: int) -> int | None:
        """Return the index of the bracket matching ``index``, or None."""
        if 0 <= index < len(self._tokens):
            return self._tokens[index].partner
        return None

    def kinds(self) -> list[TokenKind]:
        """Return the kinds of all tokens, in order."""
        return [token.kind for token in self._tokens]

    @classmethod
    def from_lexemes(cls, lexemes: Iterable[Lexeme]) -> TokenStream:
        """Build a stream from lexer output, computing all pairing metadata.

        Unmatched brackets never raise here: they are left without a partner
        and listed in ``unmatched`` so callers can decide how strict to be.

        Args:
            lexemes: Ordered (kind, content, line, column) tuples.

        Returns:
            The fully annotated TokenStream.
        """
        lexemes = list(lexemes)
        kinds = [lexeme[0] for lexeme in lexemes]
        partner, unmatched = _pair_brackets(kinds)
        parenthesis = _owner_parentheses(kinds, partner)

        count = len(lexemes)
        scope_of: dict[int, Scope] = {}
        level = [0] * count
        enclosing_scope: list[Scope | None] = [None] * count
        conditions: list[tuple[int, ...]] = [()] * count

        # Curly scopes, in source order.
        stack: list[Scope] = []
        for i, kind in enumerate(kinds):
            if kind is K.CLOSE_CURLY_BRACKET and stack and stack[-1].closer == i:
                stack.pop()
            level[i] = len(stack)
            enclosing_scope[i] = stack[-1] if stack else None
            conditions[i] = tuple(s.owner for s in stack if s.owner is not None)
            closer = partner[i]
            if kind is K.OPEN_CURLY_BRACKET and closer is not None:
                owner = _find_scope_owner(kinds, partner, i)
                scope = Scope(opener=i, closer=closer, owner=owner, level=len(stack) + 1)
                scope_of[i] = scope
                scope_of[closer] = scope
                if owner is not None:
                    scope_of[owner] = scope
                stack.append(scope)

        # Case and default scopes run from their colon to the next case.
        for i, kind in enumerate(kinds):
            if kind not in (K.CASE, K.DEFAULT):
                continue
            outer = enclosing_scope[i]
            if outer is None or outer.owner is None or kinds[outer.owner] is not K.SWITCH:
                continue
            colon = _find_case_colon(kinds, partner, i, outer.closer)
            if colon is not None:
                scope_of[i] = Scope(opener=colon, closer=None, owner=i, level=level[i] + 1)

        enclosing_bracket = _enclosing_brackets(kinds, partner)

        tokens = [
            Token(
                index=i,
                kind=kind,
                content=content,
                line=line,
                column=column,
                level=level[i],
                enclosing_scope=enclosing_scope[i],
                enclosing_bracket=enclosing_bracket[i],
                partner=partner[i],
                scope=scope_of.get(i),
                parenthesis=parenthesis.get(i),
                conditions=conditions[i],
            )
            for i, (kind, content, line, column) in enumerate(lexemes)
        ]
        return cls(tokens, unmatched)


def _pair_brackets(kinds: list[TokenKind]) -> tuple[list[int | None], list[int]]:
    """Pair openers with closers using a stack.

    A closer only pops the stack when it closes the innermost opener, which
    keeps every pair well-nested.
    """
    partner: list[int | None] = [None] * len(kinds)
    unmatched: list[int] = []
    stack: list[int] = []
    for i, kind in enumerate(kinds):
        if kind in OPENERS:
            stack.append(i)
        elif kind in CLOSERS:
            if stack and CLOSER_FOR[kinds[stack[-1]]] is kind:
                opener = stack.pop()
                partner[opener] = i
                partner[i] = opener
            else:
                unmatched.append(i)
    unmatched.extend(stack)
    return partner, unmatched


def _next_non_empty(kinds: list[TokenKind], start: int) -> int | None:
    for i in range(start, len(kinds)):
        if kinds[i] not in EMPTY_TOKENS:
            return i
    return None


def _owner_parentheses(
    kinds: list[TokenKind], partner: list[int | None]
) -> dict[int, Pair]:
    """Map each parenthesis owner keyword to the parenthesis pair it controls."""
    result: dict[int, Pair] = {}
    for i, kind in enumerate(kinds):
        if kind not in PARENTHESIS_OWNERS:
            continue
        nxt = _next_non_empty(kinds, i + 1)
        if kind is K.FUNCTION:
            # function &name(...)
            while nxt is not None and kinds[nxt] in (K.BITWISE_AND, K.STRING):
                nxt = _next_non_empty(kinds, nxt + 1)
        elif kind is K.CLOSURE and nxt is not None and kinds[nxt] is K.BITWISE_AND:
            nxt = _next_non_empty(kinds, nxt + 1)
        if nxt is None or kinds[nxt] is not K.OPEN_PARENTHESIS:
            continue
        closer = partner[nxt]
        if closer is not None:
            result[i] = Pair(nxt, closer)
    return result


def _find_scope_owner(
    kinds: list[TokenKind], partner: list[int | None], brace: int
) -> int | None:
    """Walk back from a ``{`` to the keyword owning it, if any."""
    i = brace - 1
    while i >= 0:
        kind = kinds[i]
        if kind in CLOSERS and kind is not K.CLOSE_CURLY_BRACKET:
            opener = partner[i]
            if opener is None:
                return None
            i = opener - 1
            continue
        if kind in SCOPE_OWNERS:
            return i
        if kind in _OWNER_SEARCH_STOP:
            return None
        i -= 1
    return None


def _find_case_colon(
    kinds: list[TokenKind], partner: list[int | None], case: int, limit: int | None
) -> int | None:
    """Find the ``:`` (or ``;``) ending a case label, skipping nested brackets."""
    end = len(kinds) if limit is None else limit
    i = case + 1
    while i < end:
        kind = kinds[i]
        if kind in (K.COLON, K.SEMICOLON):
            return i
        if kind in OPENERS:
            closer = partner[i]
            if closer is None:
                return None
            i = closer + 1
            continue
        if kind in CLOSERS:
            return None
        i += 1
    return None


def _enclosing_brackets(
    kinds: list[TokenKind], partner: list[int | None]
) -> list[Pair | None]:
    """Innermost parenthesis or square/short-array pair around each token."""
    result: list[Pair | None] = [None] * len(kinds)
    stack: list[Pair] = []
    for i, kind in enumerate(kinds):
        if stack and stack[-1].closer == i:
            stack.pop()
        result[i] = stack[-1] if stack else None
        if kind in OPENERS and kind is not K.OPEN_CURLY_BRACKET:
            closer = partner[i]
            if closer is not None:
                stack.append(Pair(i, closer))
    return result
