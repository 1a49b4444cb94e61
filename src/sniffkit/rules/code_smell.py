"""Rules about code that works but tends to age badly."""

from __future__ import annotations

from sniffkit.navigator import find_next, previous_non_empty
from sniffkit.rules.base import RuleContext
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind

K = TokenKind


class BeforeAndAfterConcatenate:
    """Fixable error on a ``.`` operator not surrounded by whitespace."""

    rule_id = "before_and_after_concatenate"
    category = "code_smell"
    description = "Concatenation operator without surrounding spaces."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.STRING_CONCAT})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        space_before = index == 0 or stream[index - 1].kind is K.WHITESPACE
        space_after = index + 1 >= len(stream) or stream[index + 1].kind is K.WHITESPACE
        if space_before and space_after:
            return None

        fix = context.add_fixable_error(
            "You must surround the concat operator by one space.", index, code="MissingSpace"
        )
        if not fix:
            return None

        fixer = context.fixer
        fixer.begin_changeset()
        if not space_before:
            fixer.insert_before(index, " ")
        if not space_after:
            fixer.insert_after(index, " ")
        fixer.end_changeset()
        return None


_CLASS_LIKE = frozenset({K.CLASS, K.INTERFACE, K.TRAIT})
_METHOD_MODIFIERS = frozenset({K.STATIC, K.PUBLIC, K.PROTECTED, K.PRIVATE, K.ABSTRACT, K.FINAL})


class TooManyParameters:
    """Warning on functions and methods declaring too many parameters.

    Options:
        max_args_functions: Limit for functions (default 4).
        max_args_methods: Limit for non-static methods (default 3).
        max_args_statics: Limit for static methods and constructors (default 4).
        ignore_constructors: Skip ``__construct`` entirely (default False).

    A negative limit disables the check for that kind of function.
    """

    rule_id = "too_many_parameters"
    category = "code_smell"
    description = "Function or method with too many parameters."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.FUNCTION})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        token = stream[index]
        if token.parenthesis is None:
            return None

        if not token.conditions or stream[token.conditions[-1]].kind not in _CLASS_LIKE:
            label, limit = "function", context.option("max_args_functions", 4)
        elif _is_static(stream, index):
            label, limit = "static method", context.option("max_args_statics", 4)
        elif _method_name(stream, index) == "__construct":
            if context.option("ignore_constructors", False):
                return None
            label, limit = "constructor", context.option("max_args_statics", 4)
        else:
            label, limit = "dynamic method", context.option("max_args_methods", 3)

        if limit < 0:
            return None
        count = _parameter_count(stream, index)
        if count > limit:
            context.add_warning(
                "Too many parameters in %s. Found %d while maximum allowed is %d.",
                index,
                code="TooHigh",
                args=[label, count, limit],
            )
        return None


def _is_static(stream: TokenStream, index: int) -> bool:
    pointer = previous_non_empty(stream, index - 1)
    while pointer is not None and stream[pointer].kind in _METHOD_MODIFIERS:
        if stream[pointer].kind is K.STATIC:
            return True
        pointer = previous_non_empty(stream, pointer - 1)
    return False


def _method_name(stream: TokenStream, index: int) -> str:
    pair = stream[index].parenthesis
    name = find_next(stream, K.STRING, index + 1, pair.opener if pair else None)
    return stream[name].content.lower() if name is not None else ""


def _parameter_count(stream: TokenStream, index: int) -> int:
    pair = stream[index].parenthesis
    return sum(
        1
        for i in range(pair.opener + 1, pair.closer)
        if stream[i].kind is K.VARIABLE and stream[i].enclosing_bracket == pair
    )


RULES = [BeforeAndAfterConcatenate, TooManyParameters]
