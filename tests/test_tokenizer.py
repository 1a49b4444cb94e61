"""Tests for the PHP tokenizer."""

from __future__ import annotations

import pytest

from sniffkit.errors import TokenizerError
from sniffkit.tokenizer import tokenize
from sniffkit.tokens import TokenKind as K


def kinds_of(source: str) -> list[K]:
    return tokenize(source).kinds()


def kind_of(source: str, content: str) -> K:
    """Kind of the first token whose content is ``content``."""
    for token in tokenize(source):
        if token.content == content:
            return token.kind
    raise AssertionError(f"no token {content!r}")


class TestRoundTrip:
    """Token contents always concatenate back to the input."""

    @pytest.mark.parametrize(
        "source",
        [
            "",
            "<p>only html</p>",
            "<?php\n$a = 1;\n",
            "<?php\r\n$a = [1, 'x' => \"y$z\"];\r\n",
            "<p>Hi</p>\n<?php echo 1; ?>\n<p>Bye</p>",
            "<?php\n$s = <<<EOT\nline $a\nEOT;\n",
            "<?php\n/** doc */\n// comment\n# hash\nfoo(); /* block */\n",
        ],
    )
    def test_contents_concatenate_to_source(self, source: str) -> None:
        stream = tokenize(source)
        assert "".join(token.content for token in stream) == source
        assert stream.source == source

    def test_indexes_are_positions(self) -> None:
        stream = tokenize("<?php $a = 1;")
        assert [token.index for token in stream] == list(range(len(stream)))


class TestKinds:
    """Lexical categories."""

    def test_simple_statement(self) -> None:
        assert kinds_of("<?php\n$a = 1;\n") == [
            K.OPEN_TAG,
            K.VARIABLE,
            K.WHITESPACE,
            K.EQUAL,
            K.WHITESPACE,
            K.LNUMBER,
            K.SEMICOLON,
            K.WHITESPACE,
        ]

    def test_open_tag_keeps_one_whitespace_character(self) -> None:
        stream = tokenize("<?php  $a;")
        assert stream[0].content == "<?php "
        assert stream[1].kind is K.WHITESPACE

    def test_inline_html_and_close_tag(self) -> None:
        stream = tokenize("<p>Hi</p>\n<?php echo 1; ?>\n<p>Bye</p>")
        assert stream[0].kind is K.INLINE_HTML
        assert stream[1].kind is K.OPEN_TAG
        assert stream[-1].kind is K.INLINE_HTML
        assert stream[-2].kind is K.CLOSE_TAG
        assert stream[-2].content == "?>\n"

    def test_keywords_are_case_insensitive(self) -> None:
        kinds = kinds_of("<?php IF ($a) {} ElSe {}")
        assert K.IF in kinds
        assert K.ELSE in kinds

    def test_keyword_after_object_operator_is_a_name(self) -> None:
        source = "<?php $obj->list; Foo::class;"
        assert kind_of(source, "list") is K.STRING
        assert kind_of(source, "class") is K.STRING

    def test_function_name_is_a_string(self) -> None:
        assert kind_of("<?php function list() {}", "list") is K.STRING

    def test_short_array_and_index(self) -> None:
        stream = tokenize("<?php $a = [1]; $b = $a[0];")
        assert stream.kinds().count(K.OPEN_SHORT_ARRAY) == 1
        assert stream.kinds().count(K.CLOSE_SHORT_ARRAY) == 1
        assert stream.kinds().count(K.OPEN_SQUARE_BRACKET) == 1
        assert stream.kinds().count(K.CLOSE_SQUARE_BRACKET) == 1

    def test_nullable_and_ternary(self) -> None:
        kinds = kinds_of("<?php function f(?int $a): ?int { return $a ? 1 : 2; }")
        assert kinds.count(K.NULLABLE) == 2
        assert kinds.count(K.INLINE_THEN) == 1
        assert kinds.count(K.INLINE_ELSE) == 1

    def test_short_ternary(self) -> None:
        kinds = kinds_of("<?php $x = $a ?: $b;")
        assert K.INLINE_THEN in kinds
        assert K.INLINE_ELSE in kinds

    def test_case_colon_is_not_inline_else(self) -> None:
        kinds = kinds_of("<?php switch ($a) { case 1: break; }")
        assert K.COLON in kinds
        assert K.INLINE_ELSE not in kinds

    def test_closure_and_named_function(self) -> None:
        assert kind_of("<?php $f = function ($x) { return $x; };", "function") is K.CLOSURE
        assert kind_of("<?php function f($x) {}", "function") is K.FUNCTION

    def test_array_keyword_and_type_hint(self) -> None:
        assert kind_of("<?php $a = array(1);", "array") is K.ARRAY
        assert kind_of("<?php function g(array $x) {}", "array") is K.ARRAY_HINT

    def test_casts(self) -> None:
        assert kind_of("<?php $a = (int) $b;", "(int)") is K.INT_CAST
        assert kind_of("<?php $a = ( BOOL )$b;", "( BOOL )") is K.BOOL_CAST

    def test_strings(self) -> None:
        assert kind_of("<?php $a = 'x$y';", "'x$y'") is K.CONSTANT_ENCAPSED_STRING
        assert kind_of('<?php $a = "plain";', '"plain"') is K.CONSTANT_ENCAPSED_STRING
        assert kind_of('<?php $a = "hi $name";', '"hi $name"') is K.DOUBLE_QUOTED_STRING

    def test_numbers(self) -> None:
        assert kind_of("<?php $a = 0x1F;", "0x1F") is K.LNUMBER
        assert kind_of("<?php $a = 1.5;", "1.5") is K.DNUMBER
        assert kind_of("<?php $a = 1e3;", "1e3") is K.DNUMBER

    def test_heredoc_is_one_token(self) -> None:
        stream = tokenize("<?php\n$s = <<<EOT\nline $a\nEOT;\n")
        heredocs = [t for t in stream if t.kind is K.HEREDOC]
        assert len(heredocs) == 1
        assert heredocs[0].content == "<<<EOT\nline $a\nEOT"

    def test_comments(self) -> None:
        stream = tokenize("<?php\n/** doc */\n// line\nfoo();")
        assert stream[1].kind is K.DOC_COMMENT
        assert K.COMMENT in stream.kinds()


class TestPositions:
    """Line and column tracking."""

    def test_lines_and_columns(self) -> None:
        stream = tokenize("<?php\n$a = 1;\n$b = 2;\n")
        b = next(t for t in stream if t.content == "$b")
        assert (b.line, b.column) == (3, 1)
        equal = next(t for t in stream if t.kind is K.EQUAL)
        assert (equal.line, equal.column) == (2, 4)

    def test_crlf_counts_as_one_line(self) -> None:
        stream = tokenize("<?php\r\n$a;\r\n$b;")
        b = next(t for t in stream if t.content == "$b")
        assert (b.line, b.column) == (3, 1)


class TestErrors:
    """Invalid input raises TokenizerError with a position."""

    def test_unterminated_string(self) -> None:
        with pytest.raises(TokenizerError) as exc_info:
            tokenize("<?php $a = 'abc;")
        assert "Unterminated string" in str(exc_info.value)
        assert exc_info.value.line == 1
        assert exc_info.value.column == 12

    def test_unterminated_comment(self) -> None:
        with pytest.raises(TokenizerError, match="Unterminated comment"):
            tokenize("<?php\n/* never closed")

    def test_unterminated_heredoc(self) -> None:
        with pytest.raises(TokenizerError, match="Unterminated heredoc 'EOT'"):
            tokenize("<?php\n$s = <<<EOT\nno end\n")

    def test_unmatched_opener(self) -> None:
        with pytest.raises(TokenizerError) as exc_info:
            tokenize("<?php foo(;")
        assert "Unmatched '('" in str(exc_info.value)
        assert (exc_info.value.line, exc_info.value.column) == (1, 10)

    def test_stray_closer(self) -> None:
        with pytest.raises(TokenizerError, match=r"Unmatched '\)'"):
            tokenize("<?php );")

    def test_non_strict_keeps_unmatched_tokens(self) -> None:
        stream = tokenize("<?php foo(;", strict=False)
        assert not stream.is_well_formed
        opener = next(t.index for t in stream if t.kind is K.OPEN_PARENTHESIS)
        assert stream.unmatched == (opener,)
        assert stream[opener].partner is None
