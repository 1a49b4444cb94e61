"""Rules flagging code that is almost certainly a mistake."""

from __future__ import annotations

import re

from sniffkit.navigator import (
    find_end_of_statement,
    find_next,
    find_previous,
    find_start_of_statement,
    previous_non_empty,
    tokens_as_string,
)
from sniffkit.rules.base import RuleContext
from sniffkit.stream import TokenStream
from sniffkit.tokens import OPENERS, Pair, Token, TokenKind

K = TokenKind

_INTEGER_STRING = re.compile(r"0|-?[1-9][0-9]*")

ArrayKey = int | str | tuple[str, str]


def _int_literal(text: str) -> int:
    """Value of a PHP integer literal (decimal, hex, binary or octal)."""
    text = text.replace("_", "").lower()
    if text.startswith(("0x", "0b", "0o")):
        return int(text, 0)
    if len(text) > 1 and text.startswith("0"):
        return int(text, 8)
    return int(text)


def normalize_array_key(token: Token) -> ArrayKey:
    """Normalize a single-token array key the way PHP casts it.

    ``"8"`` and ``8`` are the same key, ``"08"`` is not; booleans become
    integers, floats are truncated and ``null`` is the empty string.
    Constants and other names compare by their spelling.
    """
    kind = token.kind
    content = token.content
    if kind is K.LNUMBER:
        try:
            return _int_literal(content)
        except ValueError:
            return content
    if kind is K.CONSTANT_ENCAPSED_STRING:
        value = content[1:-1]
        return int(value) if _INTEGER_STRING.fullmatch(value) else value
    if kind is K.DNUMBER:
        try:
            return int(float(content.replace("_", "")))
        except (OverflowError, ValueError):
            return content
    if kind in (K.TRUE, K.FALSE):
        return int(kind is K.TRUE)
    if kind is K.NULL:
        return ""
    return (kind.value, content)


class DuplicateArrayKeys:
    """Error on every key repeated inside one array literal.

    The report is attached to the repeated key and cites the line of its
    first occurrence. Keys of nested arrays are checked when the nested array
    itself is dispatched.
    """

    rule_id = "duplicate_array_keys"
    category = "probable_bugs"
    description = "Identical keys in one array literal."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.ARRAY, K.OPEN_SHORT_ARRAY})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        token = stream[index]
        if token.kind is K.ARRAY:
            if token.parenthesis is None:
                return None
            opener, closer = token.parenthesis.opener, token.parenthesis.closer
        else:
            if token.partner is None:
                return None
            opener, closer = index, token.partner

        first_lines: dict[ArrayKey, int] = {}
        own = Pair(opener, closer)
        for start, end in _array_elements(stream, opener, closer):
            arrow = find_next(stream, K.DOUBLE_ARROW, start, end)
            # Arrows nested in brackets belong to inner expressions.
            while arrow is not None and stream[arrow].enclosing_bracket != own:
                arrow = find_next(stream, K.DOUBLE_ARROW, arrow + 1, end)
            if arrow is None:
                continue
            key_token = previous_non_empty(stream, arrow - 1, start)
            if key_token is None:
                continue
            raw_key = stream[key_token].content
            complex_key = tokens_as_string(stream, start, arrow - start).strip()
            key: ArrayKey = (
                normalize_array_key(stream[key_token]) if complex_key == raw_key else complex_key
            )
            if key not in first_lines:
                first_lines[key] = stream[key_token].line
                continue
            context.add_error(
                "Duplicate array key: %s. First occurrence of this key at line %d.",
                key_token,
                args=[raw_key, first_lines[key]],
            )
        return None


def _array_elements(stream: TokenStream, opener: int, closer: int) -> list[tuple[int, int]]:
    """Top-level ``[start, end)`` element ranges between two brackets."""
    elements: list[tuple[int, int]] = []
    start = opener + 1
    i = start
    while i < closer:
        token = stream[i]
        if token.kind in OPENERS and token.partner is not None:
            i = token.partner + 1
            continue
        if token.kind is K.COMMA:
            elements.append((start, i))
            start = i + 1
        i += 1
    if start < closer:
        elements.append((start, closer))
    return elements


class DuplicateSwitchCase:
    """Error on a ``case`` expression repeated within the same switch."""

    rule_id = "duplicate_switch_case"
    category = "probable_bugs"
    description = "Identical case expressions in one switch."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.SWITCH})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        scope = stream[index].scope
        if scope is None or scope.closer is None:
            return None
        case_level = stream[index].level + 1

        first_lines: dict[str, int] = {}
        for i in range(scope.opener + 1, scope.closer):
            token = stream[i]
            if token.kind is not K.CASE or token.level != case_level or token.scope is None:
                continue
            condition = tokens_as_string(stream, i + 1, token.scope.opener - i - 1).strip()
            if condition not in first_lines:
                first_lines[condition] = token.line
                continue
            context.add_error(
                "Duplicate case expression: %s. First occurrence of this expression at line %d.",
                i,
                args=[condition, first_lines[condition]],
            )
        return None


class ForeachArrayIsUsedAsKeyOrValue:
    """Error when a foreach reuses one variable name for array, key or value.

    Covers ``foreach (<array> as <value>)`` and
    ``foreach (<array> as <key> => <value>)``.
    """

    rule_id = "foreach_array_is_used_as_key_or_value"
    category = "probable_bugs"
    description = "Foreach array variable reused as key or value."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.FOREACH})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        names = _foreach_variables(stream, index)
        if names is None:
            return None
        array_name, key_name, value_name = names

        if key_name == value_name == array_name:
            context.add_error(
                'The "%s" variable is defined in "array_expression", "key_expression" '
                'and "value_expression".',
                index,
                code="AllIdentical",
                args=[array_name],
            )
            return None
        if array_name == key_name:
            context.add_error(
                'The "%s" variable is already defined in "array_expression" and "key_expression".',
                index,
                code="ArrayAsKey",
                args=[array_name],
            )
        if array_name == value_name:
            context.add_error(
                'The "%s" variable is already defined in "array_expression" and "value_expression".',
                index,
                code="ArrayAsValue",
                args=[array_name],
            )
        if key_name == value_name:
            context.add_error(
                'The "%s" variable is already defined in "key_expression" and "value_expression".',
                index,
                code="KeyAsValue",
                args=[key_name],
            )
        return None


def _foreach_variables(stream: TokenStream, index: int) -> tuple[str, str | None, str] | None:
    """Return the (array, key, value) variable names of a foreach, or None."""
    pair = stream[index].parenthesis
    if pair is None:
        return None
    as_index = find_next(stream, K.AS, pair.opener, pair.closer)
    if as_index is None:
        return None
    array_var = find_previous(stream, K.VARIABLE, as_index - 1, pair.opener)
    if array_var is None:
        return None
    value_var = find_next(stream, K.VARIABLE, as_index + 1, pair.closer)
    if value_var is None:
        return None
    key_var = None
    if find_next(stream, K.DOUBLE_ARROW, value_var + 1, pair.closer) is not None:
        key_var = value_var
        value_var = find_next(stream, K.VARIABLE, key_var + 1, pair.closer)
        if value_var is None:
            return None
    key_name = stream[key_var].content if key_var is not None else None
    return stream[array_var].content, key_name, stream[value_var].content


class SillyAssignment:
    """Fixable error on assignments whose two sides are identical.

    ``$a = $a;`` and ``$array['foo'] = $array['foo'];`` are flagged. The fix
    removes the whole statement together with the whitespace before it.
    """

    rule_id = "silly_assignment"
    category = "probable_bugs"
    description = "Assignment of a variable to itself."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.EQUAL})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        if stream[index].enclosing_bracket is not None:
            return None
        start = find_start_of_statement(stream, index)
        if start is None or stream[start].kind is not K.VARIABLE:
            return None
        end = find_end_of_statement(stream, index)
        if end is None or stream[end].kind is not K.SEMICOLON:
            return None

        assignee = tokens_as_string(stream, start, index - start).strip()
        assigner = tokens_as_string(stream, index + 1, end - index - 1).strip()
        if assignee != assigner:
            return None

        fix = context.add_fixable_error(
            "The left and the right parts of assignment are equal.", index, code="RemoveUseless"
        )
        if not fix:
            return None

        fixer = context.fixer
        fixer.begin_changeset()
        for i in range(start, end + 1):
            fixer.remove_token(i)
        i = start - 1
        while i >= 0 and stream[i].kind is K.WHITESPACE:
            fixer.remove_token(i)
            i -= 1
        fixer.end_changeset()
        return None


RULES = [DuplicateArrayKeys, DuplicateSwitchCase, ForeachArrayIsUsedAsKeyOrValue, SillyAssignment]
