"""Custom exception hierarchy for chainql.

All public errors inherit from ChainQLError so callers can catch the base
class for any chainql-specific failure.
"""
from __future__ import annotations

from typing import Any


class ChainQLError(Exception):
    """Base exception for all chainql errors."""


class InvalidOperatorError(ChainQLError):
    """Raised when a WHERE / HAVING operator is not in the whitelist.

    Raised while the clause is being registered, so no SQL text is ever
    produced for the offending call.

    Args:
        operator: The rejected operator, exactly as supplied.
        allowed: The whitelisted operators.
    """

    def __init__(self, operator: Any, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid operator {operator!r}. Allowed operators: {', '.join(allowed)}."
        )
        self.operator = operator
        self.allowed = allowed


class MissingTableError(ChainQLError):
    """Raised when a terminal operation runs before ``table(...)`` was set."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Cannot run '{operation}' without a table. Call table(name) first."
        )
        self.operation = operation


class TransactionStateError(ChainQLError):
    """Raised on an illegal transaction transition.

    Args:
        action: The attempted action (``begin``, ``commit``, ``rollback``).
        state: The state the transaction was in when the action was attempted.
    """

    def __init__(self, action: str, state: str) -> None:
        super().__init__(f"Cannot {action} a transaction in state '{state}'.")
        self.action = action
        self.state = state


class CompilationError(ChainQLError):
    """Raised when SQL compilation fails for an unexpected reason.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class BindingCountError(CompilationError):
    """Raised when a raw fragment's ``?`` markers and values disagree in number."""

    def __init__(self, expected: int, given: int, clause: str = "RAW") -> None:
        super().__init__(
            f"Raw fragment has {expected} '?' placeholder(s) but {given} binding(s) were given.",
            clause=clause,
        )
        self.expected = expected
        self.given = given


class UnconditionalMutationError(ChainQLError):
    """Raised when an UPDATE / DELETE without WHERE is blocked by settings.

    Only raised when ``allow_unconditional_mutations`` is disabled.
    """

    def __init__(self, operation: str, table: str) -> None:
        super().__init__(
            f"Refusing to {operation} every row of '{table}': no WHERE clause was given."
        )
        self.operation = operation
        self.table = table


class ExecutionError(ChainQLError):
    """Wraps an error reported by the database driver.

    The original driver exception is chained as ``__cause__``.  Only binding
    *names* are attached, never their values, so the error can be logged
    without leaking data.

    Args:
        message: The driver's message.
        sql: The SQL text that was submitted.
        binding_names: Names of the parameters bound to ``sql``.
    """

    def __init__(
        self,
        message: str,
        sql: str | None = None,
        binding_names: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.sql = sql
        self.binding_names: list[str] = binding_names or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.sql is None:
            return base
        return f"{base} [sql={self.sql!r}, bindings={self.binding_names}]"


class EmptySetClauseWarning(UserWarning):
    """Emitted when ``where_in`` / ``where_not_in`` receives no values.

    Not an error: the clause compiles to an always-false (IN) or
    always-true (NOT IN) fragment instead.
    """
