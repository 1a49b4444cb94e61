"""Rules about constructs that are deprecated or behave poorly on modern PHP."""

from __future__ import annotations

from sniffkit.navigator import find_next, next_non_empty
from sniffkit.rules.base import RuleContext
from sniffkit.rules.utils import function_call_opener
from sniffkit.stream import TokenStream
from sniffkit.tokens import TokenKind

K = TokenKind


class DeprecatedOldConstructorStyle:
    """Fixable error on a method named after its class (PHP 4 constructor).

    The fix renames the method to ``__construct``. Classes that already
    declare ``__construct`` are skipped, since the old-style method is then an
    ordinary method.
    """

    rule_id = "deprecated_old_constructor_style"
    category = "compatibility"
    description = "PHP 4 style constructor named after the class."

    def interest_set(self) -> frozenset[TokenKind]:
        return frozenset({K.CLASS})

    def process(self, stream: TokenStream, index: int, context: RuleContext) -> int | None:
        name_index = next_non_empty(stream, index + 1)
        scope = stream[index].scope
        if (
            name_index is None
            or stream[name_index].kind is not K.STRING
            or scope is None
            or scope.closer is None
        ):
            return None
        class_name = stream[name_index].content.lower()

        constructor = None
        for i in range(scope.opener + 1, scope.closer):
            token = stream[i]
            if token.kind is not K.FUNCTION or token.level != scope.level:
                continue
            method = find_next(stream, K.STRING, i + 1, scope.closer)
            if method is None:
                continue
            method_name = stream[method].content.lower()
            if method_name == "__construct":
                return None
            if method_name == class_name and constructor is None:
                constructor = method

        if constructor is None:
            return None

        fix = context.add_fixable_error(
            "Old constructor style found. Replace it with the __construct method.",
            constructor,
            code="ReplacementMissing",
        )
        if fix:
            context.fixer.replace_token(constructor, "__construct")
        return None


class _FunctionReplacementRule:
    """Shared logic for rules replacing a global function call by another."""

    replacements: dict[str, str] = {}
    message = ""
    requires_no_arguments = False

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
        if self.requires_no_arguments and next_non_empty(stream, opener + 1) != stream[opener].partner:
            return None

        fix = context.add_fixable_error(self.message, index, code="ReplacementMissing", args=[name])
        if fix:
            context.fixer.replace_token(index, replacement)
        return None


class MktimeNotCompatible(_FunctionReplacementRule):
    """Fixable error on ``mktime()``/``gmmktime()`` called without arguments.

    Without arguments both return the current timestamp; ``time()`` says so.
    """

    rule_id = "mktime_not_compatible"
    category = "compatibility"
    description = "Argument-less mktime()/gmmktime() instead of time()."

    replacements = {"mktime": "time", "gmmktime": "time"}
    message = 'Function "%s()" misused. Replace it with "time()" function.'
    requires_no_arguments = True


class RandomAreNotMersenneTwister(_FunctionReplacementRule):
    """Fixable error on ``rand``/``srand``/``getrandmax``; the fix uses the ``mt_`` variant."""

    rule_id = "random_are_not_mersenne_twister"
    category = "compatibility"
    description = "libc random functions instead of Mersenne Twister ones."

    replacements = {"rand": "mt_rand", "srand": "mt_srand", "getrandmax": "mt_getrandmax"}
    message = 'Random function "%s()" used. Replace it with the Mersenne Twister function equivalent.'


RULES = [DeprecatedOldConstructorStyle, MktimeNotCompatible, RandomAreNotMersenneTwister]
