"""Built-in rules for PHP sources.

Each category module exposes a ``RULES`` list; the default registry collects
them all.
"""

from __future__ import annotations

from sniffkit.rules.base import Rule, RuleContext
from sniffkit.rules.code_smell import BeforeAndAfterConcatenate, TooManyParameters
from sniffkit.rules.code_style import (
    ElvisOperatorCanBeUsed,
    NestedNotOperatorUsage,
    NestedPositiveIfs,
    PrefixedIncrementOrDecrement,
    TraditionalArraySyntax,
)
from sniffkit.rules.compatibility import (
    DeprecatedOldConstructorStyle,
    MktimeNotCompatible,
    RandomAreNotMersenneTwister,
)
from sniffkit.rules.control_flow import TernaryOperatorCouldBeSimplified, WrongCatchOrder
from sniffkit.rules.general import DeclareStrictTypes
from sniffkit.rules.performance import (
    ArrayPushMisused,
    IsNullCouldBeReplacedByNullOperator,
    NoCaseCheckForStrstrStrposStrrpos,
)
from sniffkit.rules.probable_bugs import (
    DuplicateArrayKeys,
    DuplicateSwitchCase,
    ForeachArrayIsUsedAsKeyOrValue,
    SillyAssignment,
)
from sniffkit.rules.registry import RuleRegistry, get_global_registry

__all__ = [
    # Base types
    "Rule",
    "RuleContext",
    # Registry
    "RuleRegistry",
    "get_global_registry",
    # Rules
    "ArrayPushMisused",
    "BeforeAndAfterConcatenate",
    "DeclareStrictTypes",
    "DeprecatedOldConstructorStyle",
    "DuplicateArrayKeys",
    "DuplicateSwitchCase",
    "ElvisOperatorCanBeUsed",
    "ForeachArrayIsUsedAsKeyOrValue",
    "IsNullCouldBeReplacedByNullOperator",
    "MktimeNotCompatible",
    "NestedNotOperatorUsage",
    "NestedPositiveIfs",
    "NoCaseCheckForStrstrStrposStrrpos",
    "PrefixedIncrementOrDecrement",
    "RandomAreNotMersenneTwister",
    "SillyAssignment",
    "TernaryOperatorCouldBeSimplified",
    "TooManyParameters",
    "TraditionalArraySyntax",
    "WrongCatchOrder",
]
