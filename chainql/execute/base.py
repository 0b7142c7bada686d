"""Executor boundary: the only way chainql talks to a database.

Connection management, pooling and timeouts live behind this protocol.
chainql only needs prepare+bind+execute, fetching, row counts, the last
inserted key, and transaction control on the borrowed connection.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

#: Parameters as handed to the driver: a mapping for named placeholders,
#: a tuple for positional ones.
DriverParams = Mapping[str, Any] | Sequence[Any]


@dataclass
class StatementHandle:
    """Buffered outcome of one executed statement.

    Attributes:
        sql: The SQL text that was executed.
        rows: Result rows as dicts, or ``None`` for statements without a
            result set.
        rowcount: Affected-row count reported by the driver (``-1`` when
            the driver does not know).
        lastrowid: Driver-assigned key of the last inserted row, if any.
    """

    sql: str
    rows: list[dict[str, Any]] | None = None
    rowcount: int = -1
    lastrowid: Any = None


@dataclass
class RawResult:
    """What ``raw()`` hands back to the caller.

    Attributes:
        rows: Result rows; empty for statements without a result set.
        rowcount: Affected-row count, ``0`` when unknown.
        lastrowid: Driver-assigned key, if any.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    lastrowid: Any = None

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


@runtime_checkable
class Executor(Protocol):
    """Capability consumed by the execution layer.

    Implementations must raise :class:`~chainql.errors.ExecutionError`
    (with the driver error chained) when the database rejects a statement.
    """

    def execute_prepared(self, sql: str, params: DriverParams) -> Any:
        """Prepare ``sql``, bind ``params`` and execute; return a handle."""
        ...

    def fetch_all(self, handle: Any) -> list[dict[str, Any]]:
        """Return every row of ``handle``; ``[]`` when there are none."""
        ...

    def fetch_one(self, handle: Any) -> dict[str, Any] | None:
        """Return the first row of ``handle`` or ``None``."""
        ...

    def affected_row_count(self, handle: Any) -> int:
        """Return the number of rows changed by ``handle``'s statement."""
        ...

    def last_insert_id(self) -> Any:
        """Return the key generated by the most recent INSERT."""
        ...

    def begin_transaction(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


def rows_from_cursor(description: Sequence[Sequence[Any]], rows: Sequence[Sequence[Any]]) -> list[dict[str, Any]]:
    """Turn DB-API result tuples into dicts keyed by column name."""
    columns = [col[0] for col in description]
    return [dict(zip(columns, row)) for row in rows]


def binding_names_of(params: DriverParams) -> list[str]:
    """Names to report for ``params``; ``$1, $2 …`` for positional values."""
    if isinstance(params, Mapping):
        return list(params)
    return [f"${i}" for i in range(1, len(params) + 1)]
