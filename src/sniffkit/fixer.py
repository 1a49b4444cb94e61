"""Atomic, conflict-checked source rewriting over one token stream.

Edits are expressed against token indexes of the stream the current pass
dispatched. They are staged inside a changeset and only become visible when
the changeset commits; a changeset touching any index already modified by an
earlier commit in the same pass is discarded as a whole (first committed
wins). The rendered result is read back with ``get_contents()`` and the run
loop re-tokenizes it before the next pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from sniffkit.diagnostics import Diagnostic
from sniffkit.errors import ChangesetError, FixConflictError
from sniffkit.stream import TokenStream

logger = logging.getLogger(__name__)

EditKind = Literal["replace", "before", "after"]


@dataclass(frozen=True)
class Edit:
    """One staged edit. Removal is a replacement with the empty string."""

    kind: EditKind
    index: int
    text: str


class Fixer:
    """Stages and commits changesets for one dispatch pass.

    Attributes:
        stream: Stream the edit indexes refer to.
        conflicts: Conflicts recorded during this pass, in order.
        fixed: Diagnostics whose changeset committed during this pass.
        commit_count: Number of committed changesets (direct edits count
            as single-edit changesets).
    """

    def __init__(self, stream: TokenStream) -> None:
        self.stream = stream
        self.conflicts: list[FixConflictError] = []
        self.fixed: list[Diagnostic] = []
        self.commit_count = 0
        self._replacements: dict[int, str] = {}
        self._before: dict[int, str] = {}
        self._after: dict[int, str] = {}
        self._touched: set[int] = set()
        self._staged: list[Edit] | None = None
        self._offered: Diagnostic | None = None
        self._bound: Diagnostic | None = None

    @property
    def in_changeset(self) -> bool:
        """Whether a changeset is currently open."""
        return self._staged is not None

    @property
    def changed(self) -> bool:
        """Whether at least one changeset committed in this pass."""
        return self.commit_count > 0

    def offer(self, diagnostic: Diagnostic) -> None:
        """Bind the next changeset (or direct edit) to ``diagnostic``."""
        self._offered = diagnostic

    def clear_offer(self) -> None:
        """Drop an offer the rule did not act on."""
        self._offered = None

    def begin_changeset(self) -> None:
        """Open a changeset.

        Raises:
            ChangesetError: If a changeset is already open.
        """
        if self._staged is not None:
            raise ChangesetError("A changeset is already open; end or roll it back first")
        self._staged = []
        self._bound = self._offered
        self._offered = None

    def end_changeset(self) -> bool:
        """Commit the open changeset atomically.

        Returns:
            True if every staged edit was applied, False if the changeset was
            discarded because it conflicts with an earlier commit.

        Raises:
            ChangesetError: If no changeset is open.
        """
        if self._staged is None:
            raise ChangesetError("end_changeset() called without begin_changeset()")
        edits, diagnostic = self._staged, self._bound
        self._staged = None
        self._bound = None
        return self._commit(edits, diagnostic)

    def rollback_changeset(self) -> None:
        """Discard the open changeset, if any, without applying anything."""
        if self._staged is not None:
            logger.debug("Rolled back changeset with %d staged edit(s)", len(self._staged))
        self._staged = None
        self._bound = None

    def replace_token(self, index: int, text: str) -> bool:
        """Replace the content of the token at ``index``."""
        return self._stage(Edit("replace", index, text))

    def remove_token(self, index: int) -> bool:
        """Remove the token at ``index``."""
        return self._stage(Edit("replace", index, ""))

    def insert_before(self, index: int, text: str) -> bool:
        """Insert ``text`` immediately before the token at ``index``."""
        return self._stage(Edit("before", index, text))

    def insert_after(self, index: int, text: str) -> bool:
        """Insert ``text`` immediately after the token at ``index``."""
        return self._stage(Edit("after", index, text))

    def get_token_content(self, index: int) -> str:
        """Current content of a token with committed edits applied."""
        token = self.stream[index]
        body = self._replacements.get(index, token.content)
        return self._before.get(index, "") + body + self._after.get(index, "")

    def get_contents(self) -> str:
        """Render the whole source with every committed edit applied."""
        return "".join(self.get_token_content(i) for i in range(len(self.stream)))

    def _stage(self, edit: Edit) -> bool:
        if not 0 <= edit.index < len(self.stream):
            raise ChangesetError(
                f"Token index {edit.index} out of range (0..{len(self.stream) - 1})"
            )
        if self._staged is not None:
            self._staged.append(edit)
            return True
        # Outside a changeset: commit as a batch of one.
        return self._commit([edit], self._offered)

    def _commit(self, edits: list[Edit], diagnostic: Diagnostic | None) -> bool:
        if not edits:
            return True
        clashing = sorted({edit.index for edit in edits} & self._touched)
        if clashing:
            conflict = FixConflictError(clashing, diagnostic.code if diagnostic else None)
            self.conflicts.append(conflict)
            logger.info("%s", conflict)
            if diagnostic is not None and diagnostic.fix_state != "fixed":
                diagnostic.fix_state = "conflicted"
                diagnostic.note = str(conflict)
            return False

        for edit in edits:
            if edit.kind == "replace":
                self._replacements[edit.index] = edit.text
            elif edit.kind == "before":
                self._before[edit.index] = self._before.get(edit.index, "") + edit.text
            else:
                self._after[edit.index] = self._after.get(edit.index, "") + edit.text
            self._touched.add(edit.index)
        self.commit_count += 1
        if diagnostic is not None and diagnostic.fix_state != "fixed":
            diagnostic.fix_state = "fixed"
            self.fixed.append(diagnostic)
        return True
