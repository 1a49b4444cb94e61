"""Tests for the code_style rules."""

from __future__ import annotations

import pytest

from sniffkit.rules.utils import strip_parentheses


class TestElvisOperatorCanBeUsed:
    """Tests for elvis_operator_can_be_used."""

    def test_reported_as_warning(self, lint) -> None:
        result = lint("<?php\n$x = $a ? $a : $b;\n", "elvis_operator_can_be_used")
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.code == "elvis_operator_can_be_used.ReplacementMissing"
        assert diagnostic.severity == "warning"
        assert diagnostic.message == "Elvis operator can be used."

    def test_fix(self, lint) -> None:
        result = lint("<?php\n$x = $a ? $a : $b;\n", "elvis_operator_can_be_used", fix=True)
        assert result.fixed_source == "<?php\n$x = $a ?: $b;\n"
        assert result.converged

    def test_parentheses_are_ignored(self, lint) -> None:
        result = lint("<?php $x = ($a) ? $a : $b;", "elvis_operator_can_be_used")
        assert len(result.diagnostics) == 1

    def test_only_outer_parenthesis_characters_are_trimmed(self) -> None:
        assert strip_parentheses(" (($a)) ") == "$a"
        assert strip_parentheses("($a) && ($b)") == "$a) && ($b"

    @pytest.mark.parametrize(
        "source",
        [
            "<?php $x = $a ? $b : $a;",
            "<?php $x = $a ?: $b;",
            "<?php $x = $a->b ? $a : $c;",
        ],
    )
    def test_not_reported(self, lint, source: str) -> None:
        assert lint(source, "elvis_operator_can_be_used").diagnostics == []


class TestNestedNotOperatorUsage:
    """Tests for nested_not_operator_usage."""

    def test_double_not_becomes_cast(self, lint) -> None:
        result = lint("<?php $x = !!$a;", "nested_not_operator_usage", fix=True)
        assert result.fixed_source == "<?php $x = (bool)$a;"

    def test_triple_not_becomes_single(self, lint) -> None:
        result = lint("<?php $x = ! ! !$a;", "nested_not_operator_usage", fix=True)
        assert result.fixed_source == "<?php $x = !$a;"

    def test_chain_reported_once(self, lint) -> None:
        result = lint("<?php $x = !!!$a;", "nested_not_operator_usage")
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].code == "nested_not_operator_usage.NotAllowed"
        assert result.diagnostics[0].column == 12

    def test_single_not_is_fine(self, lint) -> None:
        assert lint("<?php $x = !$a && !$b;", "nested_not_operator_usage").diagnostics == []


class TestNestedPositiveIfs:
    """Tests for nested_positive_ifs."""

    def test_if_containing_only_if(self, lint) -> None:
        source = "<?php\nif ($a) {\n    if ($b) {\n        foo();\n    }\n}\n"
        result = lint(source, "nested_positive_ifs")
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].line == 2
        assert result.diagnostics[0].message == "Nested if detected."
        assert not result.diagnostics[0].fixable

    @pytest.mark.parametrize(
        "source",
        [
            "<?php if ($a) { if ($b) { foo(); } } else { bar(); }",
            "<?php if ($a) { if ($b) { foo(); } else { bar(); } }",
            "<?php if ($a) { if ($b) { foo(); } baz(); }",
            "<?php if ($a) { foo(); if ($b) { bar(); } }",
        ],
    )
    def test_not_reported(self, lint, source: str) -> None:
        assert lint(source, "nested_positive_ifs").diagnostics == []


class TestPrefixedIncrementOrDecrement:
    """Tests for prefixed_increment_or_decrement."""

    def test_plus_equal_one(self, lint) -> None:
        result = lint("<?php $i += 1;", "prefixed_increment_or_decrement", fix=True)
        assert result.fixed_source == "<?php $i++;"
        assert result.fixed[0].severity == "warning"

    def test_minus_equal_one(self, lint) -> None:
        result = lint("<?php $i -= 1;", "prefixed_increment_or_decrement", fix=True)
        assert result.fixed_source == "<?php $i--;"

    def test_for_step(self, lint) -> None:
        result = lint(
            "<?php for ($i = 0; $i < 10; $i += 1) {}", "prefixed_increment_or_decrement", fix=True
        )
        assert result.fixed_source == "<?php for ($i = 0; $i < 10; $i++) {}"

    @pytest.mark.parametrize(
        "source",
        [
            "<?php $i += 2;",
            "<?php foo($i += 1);",
            "<?php $i += 1 + $j;",
        ],
    )
    def test_not_reported(self, lint, source: str) -> None:
        assert lint(source, "prefixed_increment_or_decrement").diagnostics == []


class TestTraditionalArraySyntax:
    """Tests for traditional_array_syntax."""

    def test_fix(self, lint) -> None:
        result = lint("<?php $a = array(1, 2);", "traditional_array_syntax", fix=True)
        assert result.fixed_source == "<?php $a = [1, 2];"
        assert result.fixed[0].message == "Traditional syntax array literal detected."

    def test_nested_arrays_fixed_in_one_pass(self, lint) -> None:
        result = lint(
            "<?php $a = array('k' => array(1), ARRAY());", "traditional_array_syntax", fix=True
        )
        assert result.fixed_source == "<?php $a = ['k' => [1], []];"
        assert result.passes == 2

    def test_type_hint_is_not_reported(self, lint) -> None:
        result = lint("<?php function f(array $a) {}", "traditional_array_syntax")
        assert result.diagnostics == []
