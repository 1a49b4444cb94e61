"""Tests for the changeset-based Fixer."""

from __future__ import annotations

import pytest

from sniffkit.diagnostics import Diagnostic
from sniffkit.errors import ChangesetError
from sniffkit.fixer import Fixer
from sniffkit.tokenizer import tokenize

# 0 OPEN_TAG, 1 $a, 2 ' ', 3 '=', 4 ' ', 5 '1', 6 ';'
SOURCE = "<?php $a = 1;"


def make_diagnostic(code: str = "demo.Found") -> Diagnostic:
    return Diagnostic(
        code=code, severity="error", message="m", token_index=1, line=1, column=7, fixable=True
    )


@pytest.fixture
def fixer() -> Fixer:
    return Fixer(tokenize(SOURCE))


class TestDirectEdits:
    """Edits made outside a changeset commit immediately."""

    def test_replace_token(self, fixer) -> None:
        assert fixer.replace_token(5, "2") is True
        assert fixer.get_contents() == "<?php $a = 2;"
        assert fixer.changed
        assert fixer.commit_count == 1

    def test_remove_token(self, fixer) -> None:
        fixer.remove_token(2)
        assert fixer.get_contents() == "<?php $a= 1;"

    def test_insert_before_and_after(self, fixer) -> None:
        fixer.insert_before(1, "/* x */")
        fixer.insert_after(5, "0")
        assert fixer.get_contents() == "<?php /* x */$a = 10;"
        assert fixer.get_token_content(5) == "10"

    def test_no_edits_leaves_source_unchanged(self, fixer) -> None:
        assert fixer.get_contents() == SOURCE
        assert not fixer.changed

    def test_out_of_range_index(self, fixer) -> None:
        with pytest.raises(ChangesetError, match="out of range"):
            fixer.replace_token(99, "x")


class TestChangesets:
    """Atomic batches."""

    def test_changeset_applies_on_end(self, fixer) -> None:
        fixer.begin_changeset()
        fixer.replace_token(1, "$b")
        fixer.replace_token(5, "2")
        assert fixer.get_contents() == SOURCE
        assert fixer.end_changeset() is True
        assert fixer.get_contents() == "<?php $b = 2;"
        assert fixer.commit_count == 1

    def test_rollback_discards_staged_edits(self, fixer) -> None:
        fixer.begin_changeset()
        fixer.replace_token(1, "$b")
        fixer.rollback_changeset()
        assert not fixer.in_changeset
        assert fixer.get_contents() == SOURCE

    def test_nested_begin_raises(self, fixer) -> None:
        fixer.begin_changeset()
        with pytest.raises(ChangesetError):
            fixer.begin_changeset()

    def test_end_without_begin_raises(self, fixer) -> None:
        with pytest.raises(ChangesetError):
            fixer.end_changeset()

    def test_same_index_twice_in_one_changeset_last_wins(self, fixer) -> None:
        fixer.begin_changeset()
        fixer.remove_token(5)
        fixer.replace_token(5, "3")
        fixer.end_changeset()
        assert fixer.get_contents() == "<?php $a = 3;"

    def test_empty_changeset_commits_nothing(self, fixer) -> None:
        fixer.begin_changeset()
        assert fixer.end_changeset() is True
        assert fixer.commit_count == 0


class TestConflicts:
    """First committed changeset wins."""

    def test_overlapping_changeset_is_discarded_whole(self, fixer) -> None:
        fixer.replace_token(5, "2")
        fixer.begin_changeset()
        fixer.replace_token(1, "$b")
        fixer.replace_token(5, "3")
        assert fixer.end_changeset() is False
        assert fixer.get_contents() == "<?php $a = 2;"
        assert len(fixer.conflicts) == 1
        assert fixer.conflicts[0].indexes == [5]

    def test_disjoint_changesets_both_apply(self, fixer) -> None:
        fixer.replace_token(1, "$b")
        fixer.replace_token(5, "2")
        assert fixer.get_contents() == "<?php $b = 2;"
        assert fixer.conflicts == []

    def test_offered_diagnostic_is_marked_fixed(self, fixer) -> None:
        diagnostic = make_diagnostic()
        fixer.offer(diagnostic)
        fixer.begin_changeset()
        fixer.replace_token(5, "2")
        fixer.end_changeset()
        assert diagnostic.fix_state == "fixed"
        assert fixer.fixed == [diagnostic]

    def test_losing_diagnostic_is_marked_conflicted(self, fixer) -> None:
        winner = make_diagnostic("demo.First")
        loser = make_diagnostic("demo.Second")
        fixer.offer(winner)
        fixer.replace_token(5, "2")
        fixer.offer(loser)
        fixer.replace_token(5, "3")
        assert winner.fix_state == "fixed"
        assert loser.fix_state == "conflicted"
        assert "demo.Second" in loser.note
        assert fixer.fixed == [winner]

    def test_cleared_offer_is_not_bound(self, fixer) -> None:
        diagnostic = make_diagnostic()
        fixer.offer(diagnostic)
        fixer.clear_offer()
        fixer.replace_token(5, "2")
        assert diagnostic.fix_state == "unfixed"
        assert fixer.fixed == []
