"""Tests for the declare_strict_types rule."""

from __future__ import annotations

import pytest

RULE = "declare_strict_types"


class TestMissingDeclaration:
    """Files without a strict_types declaration."""

    def test_reported_at_open_tag(self, lint) -> None:
        result = lint("<?php\n\necho 1;\n", RULE)
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.code == f"{RULE}.MissingStatement"
        assert diagnostic.severity == "warning"
        assert (diagnostic.line, diagnostic.column) == (1, 1)
        assert diagnostic.message == (
            'Missing statement "declare(strict_types = 1);" at start of file.'
        )

    def test_fix_inserts_declaration(self, lint) -> None:
        result = lint("<?php\n\necho 1;\n", RULE, fix=True)
        assert result.fixed_source == "<?php\ndeclare(strict_types = 1);\n\necho 1;\n"
        assert result.converged
        assert result.diagnostics == []

    def test_fix_after_tag_without_newline(self, lint) -> None:
        result = lint("<?php", RULE, fix=True)
        assert result.fixed_source == "<?php\ndeclare(strict_types = 1);\n\n"

    def test_shebang_is_allowed(self, lint) -> None:
        result = lint("#!/usr/bin/env php\n<?php\necho 1;\n", RULE)
        assert len(result.diagnostics) == 1

    def test_template_is_skipped(self, lint) -> None:
        assert lint("<html><?php echo 1; ?></html>", RULE).diagnostics == []


class TestDeclaredValue:
    """Files with a strict_types declaration."""

    @pytest.mark.parametrize(
        "source",
        [
            "<?php\ndeclare(strict_types=1);\n",
            "<?php\ndeclare(strict_types = 1);\n",
            "<?php\ndeclare(ticks=1, strict_types=1);\n",
        ],
    )
    def test_correct_declaration(self, lint, source: str) -> None:
        assert lint(source, RULE).diagnostics == []

    def test_bad_value_fixed(self, lint) -> None:
        result = lint("<?php\ndeclare(strict_types=0);\n", RULE, fix=True)
        assert result.fixed_source == "<?php\ndeclare(strict_types=1);\n"
        assert result.fixed[0].code == f"{RULE}.BadValue"
        assert result.fixed[0].message == "Bad value for the declaration of strict_types."

    def test_only_first_open_tag_checked(self, lint) -> None:
        source = "<?php declare(strict_types=1); ?>\n<p>x</p>\n<?php echo 1;"
        assert lint(source, RULE).diagnostics == []
