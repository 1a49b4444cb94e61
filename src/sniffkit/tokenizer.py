"""PHP lexer producing a ``TokenStream``.

The lexer is regex-driven: inline HTML outside ``<?php`` tags is one token,
PHP code is matched against an ordered alternation of token patterns. A few
context rules run during lexing (short array vs. index access, ternary
``?``/``:`` pairing, identifiers after ``->``/``::``/``function``) and a small
post-pass retypes ``function``/``array`` depending on what follows them.
"""

from __future__ import annotations

import logging
import re

from sniffkit.errors import TokenizerError
from sniffkit.stream import Lexeme, TokenStream
from sniffkit.tokens import CLOSER_FOR, EMPTY_TOKENS, OPENERS, TokenKind

logger = logging.getLogger(__name__)

K = TokenKind

KEYWORDS: dict[str, TokenKind] = {
    "abstract": K.ABSTRACT,
    "and": K.LOGICAL_AND,
    "array": K.ARRAY,
    "as": K.AS,
    "break": K.BREAK,
    "case": K.CASE,
    "catch": K.CATCH,
    "class": K.CLASS,
    "clone": K.CLONE,
    "const": K.CONST,
    "continue": K.CONTINUE,
    "declare": K.DECLARE,
    "default": K.DEFAULT,
    "do": K.DO,
    "echo": K.ECHO,
    "else": K.ELSE,
    "elseif": K.ELSEIF,
    "empty": K.EMPTY,
    "extends": K.EXTENDS,
    "false": K.FALSE,
    "final": K.FINAL,
    "finally": K.FINALLY,
    "fn": K.FN,
    "for": K.FOR,
    "foreach": K.FOREACH,
    "function": K.FUNCTION,
    "global": K.GLOBAL,
    "if": K.IF,
    "implements": K.IMPLEMENTS,
    "include": K.INCLUDE,
    "include_once": K.INCLUDE,
    "instanceof": K.INSTANCEOF,
    "interface": K.INTERFACE,
    "isset": K.ISSET,
    "list": K.LIST,
    "match": K.MATCH,
    "namespace": K.NAMESPACE,
    "new": K.NEW,
    "null": K.NULL,
    "or": K.LOGICAL_OR,
    "parent": K.PARENT,
    "print": K.PRINT,
    "private": K.PRIVATE,
    "protected": K.PROTECTED,
    "public": K.PUBLIC,
    "require": K.REQUIRE,
    "require_once": K.REQUIRE,
    "return": K.RETURN,
    "self": K.SELF,
    "static": K.STATIC,
    "switch": K.SWITCH,
    "throw": K.THROW,
    "trait": K.TRAIT,
    "true": K.TRUE,
    "try": K.TRY,
    "use": K.USE,
    "var": K.VAR,
    "while": K.WHILE,
    "xor": K.LOGICAL_XOR,
    "yield": K.YIELD,
}

CASTS: dict[str, TokenKind] = {
    "int": K.INT_CAST,
    "integer": K.INT_CAST,
    "bool": K.BOOL_CAST,
    "boolean": K.BOOL_CAST,
    "float": K.DOUBLE_CAST,
    "double": K.DOUBLE_CAST,
    "real": K.DOUBLE_CAST,
    "string": K.STRING_CAST,
    "binary": K.STRING_CAST,
    "array": K.ARRAY_CAST,
    "object": K.OBJECT_CAST,
    "unset": K.UNSET_CAST,
}

OPERATORS: dict[str, TokenKind] = {
    "<=>": K.SPACESHIP,
    "**=": K.POW_EQUAL,
    "...": K.ELLIPSIS,
    "<<=": K.SL_EQUAL,
    ">>=": K.SR_EQUAL,
    "===": K.IS_IDENTICAL,
    "!==": K.IS_NOT_IDENTICAL,
    "??=": K.COALESCE_EQUAL,
    "?->": K.NULLSAFE_OBJECT_OPERATOR,
    "==": K.IS_EQUAL,
    "!=": K.IS_NOT_EQUAL,
    "<>": K.IS_NOT_EQUAL,
    "<=": K.IS_SMALLER_OR_EQUAL,
    ">=": K.IS_GREATER_OR_EQUAL,
    "=>": K.DOUBLE_ARROW,
    "->": K.OBJECT_OPERATOR,
    "::": K.DOUBLE_COLON,
    "++": K.INC,
    "--": K.DEC,
    "+=": K.PLUS_EQUAL,
    "-=": K.MINUS_EQUAL,
    "*=": K.MUL_EQUAL,
    "/=": K.DIV_EQUAL,
    ".=": K.CONCAT_EQUAL,
    "%=": K.MOD_EQUAL,
    "&=": K.AND_EQUAL,
    "|=": K.OR_EQUAL,
    "^=": K.XOR_EQUAL,
    "**": K.POW,
    "??": K.COALESCE,
    "&&": K.BOOLEAN_AND,
    "||": K.BOOLEAN_OR,
    "<<": K.SL,
    ">>": K.SR,
    "=": K.EQUAL,
    "+": K.PLUS,
    "-": K.MINUS,
    "*": K.MULTIPLY,
    "/": K.DIVIDE,
    "%": K.MODULUS,
    ".": K.STRING_CONCAT,
    "!": K.BOOLEAN_NOT,
    "?": K.INLINE_THEN,
    ":": K.COLON,
    ";": K.SEMICOLON,
    ",": K.COMMA,
    "(": K.OPEN_PARENTHESIS,
    ")": K.CLOSE_PARENTHESIS,
    "[": K.OPEN_SQUARE_BRACKET,
    "]": K.CLOSE_SQUARE_BRACKET,
    "{": K.OPEN_CURLY_BRACKET,
    "}": K.CLOSE_CURLY_BRACKET,
    "&": K.BITWISE_AND,
    "|": K.BITWISE_OR,
    "^": K.BITWISE_XOR,
    "~": K.BITWISE_NOT,
    "@": K.ASPERAND,
    "\\": K.NS_SEPARATOR,
    "<": K.LESS_THAN,
    ">": K.GREATER_THAN,
    "$": K.DOLLAR,
}

_IDENT = r"[A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*"

_OPEN_TAG = re.compile(r"<\?php(?:\r\n|[ \t\n\r])?|<\?=", re.IGNORECASE)
_CLOSE_TAG = re.compile(r"\?>(?:\r\n|\n)?")
_HEREDOC_START = re.compile(r"<<<[ \t]*([\"']?)(" + _IDENT + r")\1\r?\n")

_PHP_PATTERN = re.compile(
    "|".join(
        [
            r"(?P<whitespace>[ \t]*(?:\r\n|\n|\r)|[ \t]+)",
            r"(?P<doc_comment>/\*\*(?=[\s*])[\s\S]*?\*/)",
            r"(?P<comment>/\*[\s\S]*?\*/|(?://|\#)[^\r\n?]*(?:\?(?!>)[^\r\n?]*)*)",
            r"(?P<variable>\$" + _IDENT + r")",
            r"(?P<cast>\([ \t]*(?:"
            + "|".join(sorted(CASTS, key=len, reverse=True))
            + r")[ \t]*\))",
            r"(?P<dnumber>(?:\d[\d_]*)?\.\d[\d_]*(?:[eE][+-]?\d+)?"
            r"|\d[\d_]*\.(?![.\d])(?:[eE][+-]?\d+)?"
            r"|\d[\d_]*[eE][+-]?\d+)",
            r"(?P<lnumber>0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*)",
            r"(?P<single_string>'(?:[^'\\]|\\[\s\S])*')",
            r"(?P<double_string>\"(?:[^\"\\]|\\[\s\S])*\")",
            r"(?P<backtick>`(?:[^`\\]|\\[\s\S])*`)",
            r"(?P<identifier>" + _IDENT + r")",
            r"(?P<operator>"
            + "|".join(re.escape(op) for op in sorted(OPERATORS, key=len, reverse=True))
            + r")",
        ]
    ),
    re.IGNORECASE,
)

_INTERPOLATION = re.compile(r"(?<!\\)\$(?:[A-Za-z_{])|\{\$")

# After these kinds an identifier is always a plain name, never a keyword.
_NAME_CONTEXT = frozenset(
    {
        K.OBJECT_OPERATOR,
        K.NULLSAFE_OBJECT_OPERATOR,
        K.DOUBLE_COLON,
        K.FUNCTION,
        K.CONST,
        K.CLASS,
        K.INTERFACE,
        K.TRAIT,
    }
)

# After these kinds a ``?`` starts a nullable type, not a ternary.
_NULLABLE_CONTEXT = frozenset(
    {
        K.COLON,
        K.OPEN_PARENTHESIS,
        K.COMMA,
        K.PUBLIC,
        K.PROTECTED,
        K.PRIVATE,
        K.VAR,
        K.STATIC,
        K.CONST,
    }
)

# After these kinds a ``[`` indexes into a value instead of opening an array.
_INDEXABLE = frozenset(
    {
        K.VARIABLE,
        K.STRING,
        K.CLOSE_PARENTHESIS,
        K.CLOSE_SQUARE_BRACKET,
        K.CLOSE_SHORT_ARRAY,
        K.CONSTANT_ENCAPSED_STRING,
        K.DOUBLE_QUOTED_STRING,
        K.SELF,
        K.PARENT,
        K.STATIC,
    }
)


class _Lexer:
    """Single-use lexer state over one source string."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.lexemes: list[Lexeme] = []
        # Kinds of currently open brackets, innermost last.
        self.brackets: list[TokenKind] = []
        # (lexeme index, bracket depth) of ``?`` still waiting for their ``:``.
        self.ternaries: list[tuple[int, int]] = []

    def error(self, message: str) -> TokenizerError:
        return TokenizerError(message, self.line, self.column)

    def emit(self, kind: TokenKind, content: str) -> None:
        self.lexemes.append((kind, content, self.line, self.column))
        self.pos += len(content)
        newlines = content.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(content) - content.rfind("\n")
        else:
            self.column += len(content)

    def previous_kind(self) -> TokenKind | None:
        for kind, _content, _line, _column in reversed(self.lexemes):
            if kind not in EMPTY_TOKENS:
                return kind
        return None

    def run(self) -> list[Lexeme]:
        while self.pos < len(self.source):
            self.lex_inline_html()
            if self.pos < len(self.source):
                self.lex_php()
        self.drop_ternaries(depth=-1)
        return self.lexemes

    def lex_inline_html(self) -> None:
        match = _OPEN_TAG.search(self.source, self.pos)
        end = match.start() if match else len(self.source)
        if end > self.pos:
            self.emit(K.INLINE_HTML, self.source[self.pos : end])
        if match:
            tag = match.group(0)
            kind = K.OPEN_TAG_WITH_ECHO if tag == "<?=" else K.OPEN_TAG
            self.emit(kind, tag)

    def lex_php(self) -> None:
        source = self.source
        while self.pos < len(source):
            close = _CLOSE_TAG.match(source, self.pos)
            if close:
                self.drop_ternaries(depth=len(self.brackets))
                self.emit(K.CLOSE_TAG, close.group(0))
                return
            if source.startswith("<<<", self.pos):
                self.lex_heredoc()
                continue
            if source.startswith("/*", self.pos) and source.find("*/", self.pos + 2) == -1:
                raise self.error("Unterminated comment")
            match = _PHP_PATTERN.match(source, self.pos)
            if match is None or match.end() == self.pos:
                raise self.unexpected()
            group = match.lastgroup
            text = match.group(0)
            if group == "operator":
                self.lex_operator(text)
            elif group == "identifier":
                self.lex_identifier(text)
            elif group == "cast":
                self.emit(CASTS[text[1:-1].strip().lower()], text)
            elif group == "double_string":
                kind = K.DOUBLE_QUOTED_STRING if _INTERPOLATION.search(text) else K.CONSTANT_ENCAPSED_STRING
                self.emit(kind, text)
            elif group == "single_string":
                self.emit(K.CONSTANT_ENCAPSED_STRING, text)
            else:
                self.emit(_GROUP_KINDS[group or ""], text)

    def unexpected(self) -> TokenizerError:
        rest = self.source[self.pos :]
        if rest.startswith("/*"):
            return self.error("Unterminated comment")
        if rest[:1] in ("'", '"', "`"):
            return self.error("Unterminated string")
        return self.error(f"Unexpected character {rest[:1]!r}")

    def lex_heredoc(self) -> None:
        start = _HEREDOC_START.match(self.source, self.pos)
        if start is None:
            # Plain shift followed by a less-than.
            self.lex_operator("<<")
            return
        label = start.group(2)
        closing = re.compile(r"^[ \t]*" + re.escape(label) + r"\b", re.MULTILINE)
        end = closing.search(self.source, start.end())
        if end is None:
            raise self.error(f"Unterminated heredoc '{label}'")
        self.emit(K.HEREDOC, self.source[self.pos : end.end()])

    def lex_identifier(self, text: str) -> None:
        previous = self.previous_kind()
        kind = KEYWORDS.get(text.lower(), K.STRING)
        if previous in _NAME_CONTEXT and kind is not K.STRING:
            kind = K.STRING
        self.emit(kind, text)

    def lex_operator(self, text: str) -> None:
        kind = OPERATORS[text]
        depth = len(self.brackets)
        if kind is K.OPEN_SQUARE_BRACKET and self.previous_kind() not in _INDEXABLE:
            kind = K.OPEN_SHORT_ARRAY
        if kind in OPENERS:
            self.brackets.append(kind)
        elif kind is K.CLOSE_SQUARE_BRACKET:
            if self.brackets and self.brackets[-1] is K.OPEN_SHORT_ARRAY:
                kind = K.CLOSE_SHORT_ARRAY
            self.close_bracket(kind)
        elif kind in (K.CLOSE_PARENTHESIS, K.CLOSE_CURLY_BRACKET):
            self.close_bracket(kind)
        elif kind is K.INLINE_THEN:
            if self.previous_kind() in _NULLABLE_CONTEXT:
                kind = K.NULLABLE
            else:
                self.ternaries.append((len(self.lexemes), depth))
        elif kind is K.COLON:
            if self.ternaries and self.ternaries[-1][1] == depth:
                self.ternaries.pop()
                kind = K.INLINE_ELSE
        elif kind is K.SEMICOLON:
            self.drop_ternaries(depth)
        self.emit(kind, text)

    def close_bracket(self, kind: TokenKind) -> None:
        if self.brackets and CLOSER_FOR[self.brackets[-1]] is kind:
            self.brackets.pop()
            self.drop_ternaries(len(self.brackets) + 1)
        # A stray closer is kept as-is; the stream records it as unmatched.

    def drop_ternaries(self, depth: int) -> None:
        """Forget pending ``?`` tokens opened at ``depth`` or deeper."""
        while self.ternaries and self.ternaries[-1][1] >= depth:
            self.ternaries.pop()


_GROUP_KINDS: dict[str, TokenKind] = {
    "whitespace": K.WHITESPACE,
    "doc_comment": K.DOC_COMMENT,
    "comment": K.COMMENT,
    "variable": K.VARIABLE,
    "dnumber": K.DNUMBER,
    "lnumber": K.LNUMBER,
    "backtick": K.BACKTICK,
}


def _retype(lexemes: list[Lexeme]) -> list[Lexeme]:
    """Retype ``function``/``array`` tokens depending on the next code token."""
    result = list(lexemes)
    for i, (kind, content, line, column) in enumerate(result):
        if kind not in (K.FUNCTION, K.ARRAY):
            continue
        j = i + 1
        while j < len(result) and result[j][0] in EMPTY_TOKENS:
            j += 1
        following = result[j][0] if j < len(result) else None
        if kind is K.FUNCTION and following is K.BITWISE_AND:
            j += 1
            while j < len(result) and result[j][0] in EMPTY_TOKENS:
                j += 1
            following = result[j][0] if j < len(result) else None
        if kind is K.FUNCTION and following is K.OPEN_PARENTHESIS:
            result[i] = (K.CLOSURE, content, line, column)
        elif kind is K.ARRAY and following is not K.OPEN_PARENTHESIS:
            result[i] = (K.ARRAY_HINT, content, line, column)
    return result


def lex(source: str) -> list[Lexeme]:
    """Split source text into (kind, content, line, column) lexemes.

    Args:
        source: PHP source text.

    Returns:
        Ordered lexemes whose contents concatenate back to ``source``.

    Raises:
        TokenizerError: On unterminated strings, comments or heredocs, or on
            characters that cannot start any token.
    """
    return _retype(_Lexer(source).run())


def tokenize(source: str, *, strict: bool = True) -> TokenStream:
    """Tokenize PHP source into a fully annotated ``TokenStream``.

    Args:
        source: PHP source text.
        strict: When True, unmatched brackets raise TokenizerError. When
            False they are left unpaired in the stream.

    Returns:
        The TokenStream for ``source``.

    Raises:
        TokenizerError: If the source cannot be tokenized.
    """
    stream = TokenStream.from_lexemes(lex(source))
    if strict and stream.unmatched:
        token = stream[stream.unmatched[0]]
        raise TokenizerError(f"Unmatched '{token.content}'", token.line, token.column)
    logger.debug("Tokenized %d characters into %d tokens", len(source), len(stream))
    return stream
