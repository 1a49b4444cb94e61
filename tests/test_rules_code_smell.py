"""Tests for the code_smell rules."""

from __future__ import annotations

import pytest

CONCAT = "before_and_after_concatenate"
PARAMS = "too_many_parameters"


class TestBeforeAndAfterConcatenate:
    """Tests for before_and_after_concatenate."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("$a = 'x'.'y';", "$a = 'x' . 'y';"),
            ("$a = 'x' .'y';", "$a = 'x' . 'y';"),
            ("$a = $b. $c;", "$a = $b . $c;"),
        ],
    )
    def test_fix(self, lint, source: str, expected: str) -> None:
        result = lint(f"<?php {source}", CONCAT, fix=True)
        assert result.fixed_source == f"<?php {expected}"

    def test_reported(self, lint) -> None:
        result = lint("<?php $a = $b.$c;", CONCAT)
        assert result.diagnostics[0].code == f"{CONCAT}.MissingSpace"
        assert result.diagnostics[0].message == (
            "You must surround the concat operator by one space."
        )

    def test_spaced_concat_is_fine(self, lint) -> None:
        assert lint("<?php $a = $b . $c . 'd';", CONCAT).diagnostics == []

    def test_concat_equal_is_not_checked(self, lint) -> None:
        assert lint("<?php $a .= $b;", CONCAT).diagnostics == []


class TestTooManyParameters:
    """Tests for too_many_parameters."""

    def test_function_over_limit(self, lint) -> None:
        result = lint("<?php function f($a, $b, $c, $d, $e) {}", PARAMS)
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.code == f"{PARAMS}.TooHigh"
        assert diagnostic.severity == "warning"
        assert diagnostic.message == (
            "Too many parameters in function. Found 5 while maximum allowed is 4."
        )

    def test_function_at_limit(self, lint) -> None:
        assert lint("<?php function f($a, $b, $c, $d) {}", PARAMS).diagnostics == []

    def test_dynamic_method(self, lint) -> None:
        source = "<?php class A { public function m(int $a, $b = [1, 2], ?B $c, ...$d) {} }"
        result = lint(source, PARAMS)
        assert result.diagnostics[0].message == (
            "Too many parameters in dynamic method. Found 4 while maximum allowed is 3."
        )

    def test_static_method(self, lint) -> None:
        source = "<?php class A { public static function m($a, $b, $c, $d) {} }"
        assert lint(source, PARAMS).diagnostics == []
        source = "<?php class A { static public function m($a, $b, $c, $d, $e) {} }"
        assert "static method" in lint(source, PARAMS).diagnostics[0].message

    def test_constructor(self, lint) -> None:
        source = "<?php class A { function __construct($a, $b, $c, $d, $e) {} }"
        result = lint(source, PARAMS)
        assert result.diagnostics[0].message == (
            "Too many parameters in constructor. Found 5 while maximum allowed is 4."
        )

    def test_ignore_constructors_option(self, lint) -> None:
        source = "<?php class A { function __construct($a, $b, $c, $d, $e) {} }"
        result = lint(source, PARAMS, options={PARAMS: {"ignore_constructors": True}})
        assert result.diagnostics == []

    def test_custom_limits(self, lint) -> None:
        result = lint(
            "<?php function f($a, $b) {}", PARAMS, options={PARAMS: {"max_args_functions": 1}}
        )
        assert "maximum allowed is 1" in result.diagnostics[0].message

    def test_negative_limit_disables_check(self, lint) -> None:
        result = lint(
            "<?php function f($a, $b, $c, $d, $e, $f) {}",
            PARAMS,
            options={PARAMS: {"max_args_functions": -1}},
        )
        assert result.diagnostics == []

    def test_interface_methods_are_methods(self, lint) -> None:
        source = "<?php interface I { public function m($a, $b, $c, $d); }"
        assert "dynamic method" in lint(source, PARAMS).diagnostics[0].message

    def test_closures_are_not_checked(self, lint) -> None:
        source = "<?php $f = function ($a, $b, $c, $d, $e) use ($x) {};"
        assert lint(source, PARAMS).diagnostics == []

    def test_function_nested_in_method_is_a_function(self, lint) -> None:
        source = "<?php class A { function m() { function inner($a, $b, $c, $d) {} } }"
        assert lint(source, PARAMS).diagnostics == []
