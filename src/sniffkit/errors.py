"""Exception taxonomy for sniffkit.

Only configuration errors are fatal to a run. Every other error is scoped to a
single file (tokenizer failures) or a single rule invocation (rule failures,
changeset conflicts) and is converted into a diagnostic or a note by the layer
that catches it.
"""

from __future__ import annotations


class SniffkitError(Exception):
    """Base class for all sniffkit errors."""


class ConfigurationError(SniffkitError):
    """Raised when the run configuration is invalid. Aborts the whole run."""


class UnknownRuleError(ConfigurationError):
    """Raised when a requested rule identifier is not registered."""

    def __init__(self, rule_ids: list[str]) -> None:
        self.rule_ids = rule_ids
        super().__init__(f"Unknown rule(s): {', '.join(rule_ids)}")


class TokenizerError(SniffkitError):
    """Raised when source text cannot be tokenized.

    Attributes:
        line: 1-based line where the problem was detected.
        column: 1-based column where the problem was detected.
    """

    def __init__(self, message: str, line: int = 1, column: int = 1) -> None:
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, column {column})")


class RuleExecutionError(SniffkitError):
    """A rule raised an unexpected exception while processing a token."""

    def __init__(self, rule_id: str, index: int, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.index = index
        self.cause = cause
        super().__init__(
            f"Rule '{rule_id}' failed on token {index}: {type(cause).__name__}: {cause}"
        )


class ChangesetError(SniffkitError):
    """The changeset protocol was misused (nested batch, end without begin)."""


class FixConflictError(SniffkitError):
    """A changeset touched tokens already modified by an earlier changeset.

    Attributes:
        indexes: Token indexes that were already touched in this pass.
        code: Code of the diagnostic the changeset was fixing, if any.
    """

    def __init__(self, indexes: list[int], code: str | None = None) -> None:
        self.indexes = indexes
        self.code = code
        owner = f" for {code}" if code else ""
        super().__init__(
            f"Changeset{owner} discarded: token(s) {indexes} already modified in this pass"
        )


class IterationBudgetExceeded(SniffkitError):
    """The fix loop stopped because the iteration cap was reached."""

    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(
            f"Fix loop stopped after {max_iterations} iteration(s); fix not applied"
        )
