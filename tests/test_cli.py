"""Tests for sniffkit CLI commands."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sniffkit.cli import app
from sniffkit.config import ENV_PREFIX

runner = CliRunner()

DUPLICATE_KEYS = "<?php\n$a = ['x' => 1, 'x' => 2];\n"
SILLY = "<?php\n$b = 1;\n$a = $a;\n"
CLEAN = "<?php\n$a = 1;\n"


@pytest.fixture(autouse=True)
def _workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory with no SNIFFKIT_* variables."""
    for var in list(os.environ):
        if var.startswith(ENV_PREFIX):
            monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version() -> None:
    """Test --version flag shows version."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "sniffkit version 0.1.0" in result.stdout


def test_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "static analysis and autofix" in result.stdout


# -----------------------------------------------------------------------------
# Check Command Tests
# -----------------------------------------------------------------------------


class TestCheckCommand:
    """Tests for the check command."""

    def test_errors_exit_with_one(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(DUPLICATE_KEYS)
        result = runner.invoke(app, ["check", "a.php", "--rules", "duplicate_array_keys"])
        assert result.exit_code == 1
        assert "a.php" in result.stdout
        assert "duplicate_array_keys.Found" in result.stdout
        assert "1 error(s)" in result.stdout

    def test_clean_file_exits_with_zero(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(CLEAN)
        result = runner.invoke(app, ["check", "a.php"])
        assert result.exit_code == 0
        assert "0 error(s)" in result.stdout

    def test_warnings_alone_pass(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text("<?php\necho 1;\n")
        result = runner.invoke(app, ["check", "a.php", "-r", "declare_strict_types"])
        assert result.exit_code == 0
        assert "1 warning(s)" in result.stdout

    def test_check_never_writes(self, tmp_path: Path) -> None:
        path = tmp_path / "a.php"
        path.write_text(SILLY)
        runner.invoke(app, ["check", "a.php", "-r", "silly_assignment"])
        assert path.read_text() == SILLY

    def test_quiet_output(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(DUPLICATE_KEYS)
        result = runner.invoke(app, ["check", "a.php", "-r", "duplicate_array_keys", "-q"])
        assert result.exit_code == 1
        assert result.stdout.strip() == (
            "a.php:2:17: error: Duplicate array key: 'x'. First occurrence of this key "
            "at line 2. [duplicate_array_keys.Found]"
        )

    def test_json_output(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(DUPLICATE_KEYS)
        (tmp_path / "b.php").write_text(CLEAN)
        result = runner.invoke(
            app, ["check", ".", "--rules", "duplicate_array_keys", "--json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["status"] == "fail"
        assert data["summary"] == {"files_checked": 2, "errors": 1, "warnings": 0, "fixed": 0}
        assert len(data["diagnostics"]) == 1
        record = data["diagnostics"][0]
        assert record["file"] == "a.php"
        assert (record["line"], record["column"]) == (2, 17)
        assert record["code"] == "duplicate_array_keys.Found"

    def test_exclude(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(DUPLICATE_KEYS)
        result = runner.invoke(
            app, ["check", "a.php", "-x", "duplicate_array_keys,declare_strict_types"]
        )
        assert result.exit_code == 0

    def test_unknown_rule_exits_with_two(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(CLEAN)
        result = runner.invoke(app, ["check", "a.php", "--rules", "no_such_rule"])
        assert result.exit_code == 2
        assert "Unknown rule(s): no_such_rule" in result.output

    def test_missing_path_exits_with_two(self) -> None:
        result = runner.invoke(app, ["check", "missing.php"])
        assert result.exit_code == 2
        assert "Path does not exist" in result.output

    def test_invalid_config_exits_with_two(self, tmp_path: Path) -> None:
        (tmp_path / ".sniffkitrc").write_text("max_iterations = 0\n")
        (tmp_path / "a.php").write_text(CLEAN)
        result = runner.invoke(app, ["check", "a.php"])
        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_ruleset_option(self, tmp_path: Path) -> None:
        (tmp_path / "team.yml").write_text(
            "rules:\n  - too_many_parameters:\n      max_args_functions: 1\n"
        )
        (tmp_path / "a.php").write_text("<?php function f($a, $b) {}\n")
        result = runner.invoke(app, ["check", "a.php", "--ruleset", "team.yml", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [d["code"] for d in data["diagnostics"]] == ["too_many_parameters.TooHigh"]

    def test_unmatched_bracket_is_reported(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text("<?php\nfoo(;\n")
        result = runner.invoke(app, ["check", "a.php", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [d["code"] for d in data["diagnostics"]] == ["internal.tokenizer"]


# -----------------------------------------------------------------------------
# Fix Command Tests
# -----------------------------------------------------------------------------


class TestFixCommand:
    """Tests for the fix command."""

    def test_fix_writes_files(self, tmp_path: Path) -> None:
        path = tmp_path / "a.php"
        path.write_text(SILLY)
        result = runner.invoke(app, ["fix", "a.php", "-r", "silly_assignment"])
        assert result.exit_code == 0
        assert path.read_text() == "<?php\n$b = 1;\n"
        assert "Fixed" in result.stdout
        assert "1 fixed" in result.stdout

    def test_dry_run_prints_diff(self, tmp_path: Path) -> None:
        path = tmp_path / "a.php"
        path.write_text(SILLY)
        result = runner.invoke(app, ["fix", "a.php", "-r", "silly_assignment", "--dry-run"])
        assert result.exit_code == 0
        assert path.read_text() == SILLY
        assert "--- a/a.php" in result.stdout
        assert "+++ b/a.php" in result.stdout
        assert "-$a = $a;" in result.stdout

    def test_json_lists_changed_files(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(SILLY)
        (tmp_path / "b.php").write_text(CLEAN)
        result = runner.invoke(
            app, ["fix", "a.php", "b.php", "-r", "silly_assignment", "--json"]
        )
        data = json.loads(result.stdout)
        assert data["changed_files"] == ["a.php"]
        assert data["summary"]["fixed"] == 1
        assert data["status"] == "pass"

    def test_unfixable_errors_still_fail(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(DUPLICATE_KEYS)
        result = runner.invoke(app, ["fix", "a.php", "-r", "duplicate_array_keys"])
        assert result.exit_code == 1

    def test_max_iterations_must_be_positive(self, tmp_path: Path) -> None:
        (tmp_path / "a.php").write_text(CLEAN)
        result = runner.invoke(app, ["fix", "a.php", "--max-iterations", "0"])
        assert result.exit_code == 2


# -----------------------------------------------------------------------------
# Rules Command Tests
# -----------------------------------------------------------------------------


class TestRulesCommand:
    """Tests for the rules command."""

    def test_table(self) -> None:
        result = runner.invoke(app, ["rules"])
        assert result.exit_code == 0
        assert "Available Rules" in result.stdout
        assert "silly_assignment" in result.stdout

    def test_quiet_lists_ids(self) -> None:
        result = runner.invoke(app, ["rules", "--quiet"])
        ids = result.stdout.split()
        assert len(ids) == 20
        assert ids == sorted(ids)

    def test_json(self) -> None:
        result = runner.invoke(app, ["rules", "--json"])
        data = json.loads(result.stdout)
        by_id = {rule["id"]: rule for rule in data["rules"]}
        assert by_id["wrong_catch_order"]["category"] == "control_flow"
        assert by_id["wrong_catch_order"]["description"]


def test_empty_directory_warns(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    result = runner.invoke(app, ["check", "src"])
    assert result.exit_code == 0
    assert "No source files found." in result.output
