"""Token kinds and token data structures.

Kinds mirror the PHP tokenizer names (``T_VARIABLE``, ``T_OPEN_SHORT_ARRAY``,
...) so rule authors can read them the same way they read PHP token dumps.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    """Lexical category of a token."""

    # Markup and trivia
    INLINE_HTML = "T_INLINE_HTML"
    OPEN_TAG = "T_OPEN_TAG"
    OPEN_TAG_WITH_ECHO = "T_OPEN_TAG_WITH_ECHO"
    CLOSE_TAG = "T_CLOSE_TAG"
    WHITESPACE = "T_WHITESPACE"
    COMMENT = "T_COMMENT"
    DOC_COMMENT = "T_DOC_COMMENT"

    # Operands
    VARIABLE = "T_VARIABLE"
    STRING = "T_STRING"
    LNUMBER = "T_LNUMBER"
    DNUMBER = "T_DNUMBER"
    CONSTANT_ENCAPSED_STRING = "T_CONSTANT_ENCAPSED_STRING"
    DOUBLE_QUOTED_STRING = "T_DOUBLE_QUOTED_STRING"
    HEREDOC = "T_HEREDOC"
    TRUE = "T_TRUE"
    FALSE = "T_FALSE"
    NULL = "T_NULL"
    SELF = "T_SELF"
    PARENT = "T_PARENT"
    DOLLAR = "T_DOLLAR"
    NS_SEPARATOR = "T_NS_SEPARATOR"

    # Keywords
    ABSTRACT = "T_ABSTRACT"
    ARRAY = "T_ARRAY"
    ARRAY_HINT = "T_ARRAY_HINT"
    AS = "T_AS"
    BREAK = "T_BREAK"
    CASE = "T_CASE"
    CATCH = "T_CATCH"
    CLASS = "T_CLASS"
    CLONE = "T_CLONE"
    CLOSURE = "T_CLOSURE"
    CONST = "T_CONST"
    CONTINUE = "T_CONTINUE"
    DECLARE = "T_DECLARE"
    DEFAULT = "T_DEFAULT"
    DO = "T_DO"
    ECHO = "T_ECHO"
    ELSE = "T_ELSE"
    ELSEIF = "T_ELSEIF"
    EMPTY = "T_EMPTY"
    EXTENDS = "T_EXTENDS"
    FINAL = "T_FINAL"
    FINALLY = "T_FINALLY"
    FN = "T_FN"
    FOR = "T_FOR"
    FOREACH = "T_FOREACH"
    FUNCTION = "T_FUNCTION"
    GLOBAL = "T_GLOBAL"
    IF = "T_IF"
    IMPLEMENTS = "T_IMPLEMENTS"
    INCLUDE = "T_INCLUDE"
    INSTANCEOF = "T_INSTANCEOF"
    INTERFACE = "T_INTERFACE"
    ISSET = "T_ISSET"
    LIST = "T_LIST"
    MATCH = "T_MATCH"
    NAMESPACE = "T_NAMESPACE"
    NEW = "T_NEW"
    PRINT = "T_PRINT"
    PRIVATE = "T_PRIVATE"
    PROTECTED = "T_PROTECTED"
    PUBLIC = "T_PUBLIC"
    REQUIRE = "T_REQUIRE"
    RETURN = "T_RETURN"
    STATIC = "T_STATIC"
    SWITCH = "T_SWITCH"
    THROW = "T_THROW"
    TRAIT = "T_TRAIT"
    TRY = "T_TRY"
    USE = "T_USE"
    VAR = "T_VAR"
    WHILE = "T_WHILE"
    YIELD = "T_YIELD"
    LOGICAL_AND = "T_LOGICAL_AND"
    LOGICAL_OR = "T_LOGICAL_OR"
    LOGICAL_XOR = "T_LOGICAL_XOR"

    # Casts
    ARRAY_CAST = "T_ARRAY_CAST"
    BOOL_CAST = "T_BOOL_CAST"
    DOUBLE_CAST = "T_DOUBLE_CAST"
    INT_CAST = "T_INT_CAST"
    OBJECT_CAST = "T_OBJECT_CAST"
    STRING_CAST = "T_STRING_CAST"
    UNSET_CAST = "T_UNSET_CAST"

    # Brackets
    OPEN_PARENTHESIS = "T_OPEN_PARENTHESIS"
    CLOSE_PARENTHESIS = "T_CLOSE_PARENTHESIS"
    OPEN_SQUARE_BRACKET = "T_OPEN_SQUARE_BRACKET"
    CLOSE_SQUARE_BRACKET = "T_CLOSE_SQUARE_BRACKET"
    OPEN_SHORT_ARRAY = "T_OPEN_SHORT_ARRAY"
    CLOSE_SHORT_ARRAY = "T_CLOSE_SHORT_ARRAY"
    OPEN_CURLY_BRACKET = "T_OPEN_CURLY_BRACKET"
    CLOSE_CURLY_BRACKET = "T_CLOSE_CURLY_BRACKET"

    # Assignment operators
    EQUAL = "T_EQUAL"
    PLUS_EQUAL = "T_PLUS_EQUAL"
    MINUS_EQUAL = "T_MINUS_EQUAL"
    MUL_EQUAL = "T_MUL_EQUAL"
    DIV_EQUAL = "T_DIV_EQUAL"
    CONCAT_EQUAL = "T_CONCAT_EQUAL"
    MOD_EQUAL = "T_MOD_EQUAL"
    POW_EQUAL = "T_POW_EQUAL"
    AND_EQUAL = "T_AND_EQUAL"
    OR_EQUAL = "T_OR_EQUAL"
    XOR_EQUAL = "T_XOR_EQUAL"
    SL_EQUAL = "T_SL_EQUAL"
    SR_EQUAL = "T_SR_EQUAL"
    COALESCE_EQUAL = "T_COALESCE_EQUAL"

    # Comparison operators
    IS_IDENTICAL = "T_IS_IDENTICAL"
    IS_NOT_IDENTICAL = "T_IS_NOT_IDENTICAL"
    IS_EQUAL = "T_IS_EQUAL"
    IS_NOT_EQUAL = "T_IS_NOT_EQUAL"
    IS_SMALLER_OR_EQUAL = "T_IS_SMALLER_OR_EQUAL"
    IS_GREATER_OR_EQUAL = "T_IS_GREATER_OR_EQUAL"
    LESS_THAN = "T_LESS_THAN"
    GREATER_THAN = "T_GREATER_THAN"
    SPACESHIP = "T_SPACESHIP"

    # Other operators and punctuation
    DOUBLE_ARROW = "T_DOUBLE_ARROW"
    OBJECT_OPERATOR = "T_OBJECT_OPERATOR"
    NULLSAFE_OBJECT_OPERATOR = "T_NULLSAFE_OBJECT_OPERATOR"
    DOUBLE_COLON = "T_DOUBLE_COLON"
    INC = "T_INC"
    DEC = "T_DEC"
    POW = "T_POW"
    COALESCE = "T_COALESCE"
    BOOLEAN_AND = "T_BOOLEAN_AND"
    BOOLEAN_OR = "T_BOOLEAN_OR"
    BOOLEAN_NOT = "T_BOOLEAN_NOT"
    SL = "T_SL"
    SR = "T_SR"
    ELLIPSIS = "T_ELLIPSIS"
    PLUS = "T_PLUS"
    MINUS = "T_MINUS"
    MULTIPLY = "T_MULTIPLY"
    DIVIDE = "T_DIVIDE"
    MODULUS = "T_MODULUS"
    STRING_CONCAT = "T_STRING_CONCAT"
    BITWISE_AND = "T_BITWISE_AND"
    BITWISE_OR = "T_BITWISE_OR"
    BITWISE_XOR = "T_BITWISE_XOR"
    BITWISE_NOT = "T_BITWISE_NOT"
    ASPERAND = "T_ASPERAND"
    INLINE_THEN = "T_INLINE_THEN"
    INLINE_ELSE = "T_INLINE_ELSE"
    NULLABLE = "T_NULLABLE"
    COLON = "T_COLON"
    SEMICOLON = "T_SEMICOLON"
    COMMA = "T_COMMA"
    BACKTICK = "T_BACKTICK"

    def __str__(self) -> str:
        return self.value


K = TokenKind

# Tokens that carry no code: skipped by "non-empty" navigation.
EMPTY_TOKENS = frozenset({K.WHITESPACE, K.COMMENT, K.DOC_COMMENT})

OPENERS = frozenset(
    {K.OPEN_PARENTHESIS, K.OPEN_SQUARE_BRACKET, K.OPEN_SHORT_ARRAY, K.OPEN_CURLY_BRACKET}
)
CLOSERS = frozenset(
    {K.CLOSE_PARENTHESIS, K.CLOSE_SQUARE_BRACKET, K.CLOSE_SHORT_ARRAY, K.CLOSE_CURLY_BRACKET}
)
CLOSER_FOR = {
    K.OPEN_PARENTHESIS: K.CLOSE_PARENTHESIS,
    K.OPEN_SQUARE_BRACKET: K.CLOSE_SQUARE_BRACKET,
    K.OPEN_SHORT_ARRAY: K.CLOSE_SHORT_ARRAY,
    K.OPEN_CURLY_BRACKET: K.CLOSE_CURLY_BRACKET,
}

ASSIGNMENT_TOKENS = frozenset(
    {
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
    }
)

COMPARISON_TOKENS = frozenset(
    {
        K.IS_IDENTICAL,
        K.IS_NOT_IDENTICAL,
        K.IS_EQUAL,
        K.IS_NOT_EQUAL,
        K.IS_SMALLER_OR_EQUAL,
        K.IS_GREATER_OR_EQUAL,
        K.LESS_THAN,
        K.GREATER_THAN,
        K.SPACESHIP,
    }
)

# Keywords that own a curly-brace scope.
SCOPE_OWNERS = frozenset(
    {
        K.IF,
        K.ELSEIF,
        K.ELSE,
        K.FOR,
        K.FOREACH,
        K.WHILE,
        K.DO,
        K.SWITCH,
        K.FUNCTION,
        K.CLOSURE,
        K.CLASS,
        K.INTERFACE,
        K.TRAIT,
        K.TRY,
        K.CATCH,
        K.FINALLY,
        K.NAMESPACE,
        K.DECLARE,
        K.MATCH,
    }
)

# Scope owners whose body is part of an expression, not a statement.
EXPRESSION_SCOPE_OWNERS = frozenset({K.CLOSURE, K.MATCH})

# Keywords directly followed by a parenthesis pair they control.
PARENTHESIS_OWNERS = frozenset(
    {
        K.IF,
        K.ELSEIF,
        K.FOR,
        K.FOREACH,
        K.WHILE,
        K.SWITCH,
        K.CATCH,
        K.FUNCTION,
        K.CLOSURE,
        K.FN,
        K.ARRAY,
        K.LIST,
        K.ISSET,
        K.EMPTY,
        K.DECLARE,
        K.MATCH,
    }
)

# Tokens that end a statement when scanning forward.
STATEMENT_TERMINATORS = frozenset(
    {K.SEMICOLON, K.COMMA, K.DOUBLE_ARROW, K.COLON, K.OPEN_TAG, K.CLOSE_TAG}
)


@dataclass(frozen=True)
class Pair:
    """An opener/closer index pair (``opener < closer``)."""

    opener: int
    closer: int

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.opener < index < self.closer


@dataclass(frozen=True)
class Scope:
    """A curly-brace (or case) scope.

    Attributes:
        opener: Index of the token opening the scope (``{`` or a case ``:``).
        closer: Index of the token closing the scope, or None for case scopes
            that run until the next case.
        owner: Index of the keyword owning the scope, or None for bare blocks.
        level: Nesting level of the tokens inside the scope.
    """

    opener: int
    closer: int | None
    owner: int | None
    level: int


@dataclass(frozen=True)
class Token:
    """A single token of a tokenized source.

    Attributes:
        index: Position of the token in its stream.
        kind: Lexical category.
        content: Raw source text of the token.
        line: 1-based line of the first character.
        column: 1-based column of the first character.
        level: Number of curly scopes enclosing the token.
        enclosing_scope: Innermost curly scope containing the token.
        enclosing_bracket: Innermost parenthesis/bracket pair containing the token.
        partner: Matching bracket index, for bracket tokens.
        scope: Scope opened by this token, for scope owners and braces.
        parenthesis: Parenthesis pair controlled by this token, for owners
            such as ``if``, ``foreach``, ``function`` and ``array``.
        conditions: Indexes of enclosing scope owners, outermost first.
    """

    index: int
    kind: TokenKind
    content: str
    line: int
    column: int
    level: int = 0
    enclosing_scope: Scope | None = None
    enclosing_bracket: Pair | None = None
    partner: int | None = None
    scope: Scope | None = None
    parenthesis: Pair | None = None
    conditions: tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Whether the token is whitespace or a comment."""
        return self.kind in EMPTY_TOKENS
