"""File-level rules."""

from __future__ import annotations

from sniffkit.navigator import find_next, find_previous, next_non_empty
from sniffkit.rules.base import RuleContext
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind

K = TokenKind

STRICT_TYPES_STATEMENT = "declare(strict_types = 1);"


class DeclareStrictTypes:
    """Fixable warning when a PHP file does not declare ``strict_types = 1``.

    Only the first open tag of a file is checked, and files starting with
    inline HTML other than a shebang line are templates, not scripts, so they
    are skipped. A declaration with any other value is reported at the value
    and fixed to ``1``.
    """

    rule_id = "declare_strict_types"
    category = "general"
    description = 'Missing or wrong "declare(strict_types = 1);".'

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.OPEN_TAG})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        if find_previous(stream, K.OPEN_TAG, index - 1) is not None:
            return None
        for i in range(index):
            if stream[i].kind is K.INLINE_HTML and not stream[i].content.startswith("#!"):
                return None

        declaration = _strict_types_declaration(stream, index)
        if declaration is None:
            self._missing(stream, index, context)
            return None

        value = _declared_value(stream, declaration)
        if value is None or stream[value].content == "1":
            return None
        fix = context.add_fixable_warning(
            "Bad value for the declaration of strict_types.", value, code="BadValue"
        )
        if fix:
            context.fixer.replace_token(value, "1")
        return None

    def _missing(self, stream: TokenStream, tag: int, context: RuleContext) -> None:
        fix = context.add_fixable_warning(
            'Missing statement "declare(strict_types = 1);" at start of file.',
            tag,
            code="MissingStatement",
        )
        if not fix:
            return

        fixer = context.fixer
        fixer.begin_changeset()
        i = tag + 1
        while i < len(stream) and stream[i].kind is K.WHITESPACE:
            fixer.remove_token(i)
            i += 1
        prefix = "" if stream[tag].content[-1:].isspace() else "\n"
        fixer.insert_after(tag, prefix + STRICT_TYPES_STATEMENT + "\n\n")
        fixer.end_changeset()


def _strict_types_declaration(stream: TokenStream, start: int) -> int | None:
    """Index of the ``strict_types`` directive name of a declare statement."""
    declare = find_next(stream, K.DECLARE, start)
    while declare is not None:
        pair = stream[declare].parenthesis
        if pair is not None:
            name = find_next(stream, K.STRING, pair.opener, pair.closer, value="strict_types")
            if name is not None:
                return name
        declare = find_next(stream, K.DECLARE, declare + 1)
    return None


def _declared_value(stream: TokenStream, name: int) -> int | None:
    equal = next_non_empty(stream, name + 1)
    if equal is None or stream[equal].kind is not K.EQUAL:
        return None
    return next_non_empty(stream, equal + 1)


RULES = [DeclareStrictTypes]
