"""Compiler abstractions: CompiledSQL and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` defines the dialect-independent defaults (ANSI
  ``LIMIT`` / ``OFFSET``, plain ``INSERT ... VALUES``).
- ``SQLiteCompiler``, ``PostgresCompiler``, ``MySQLCompiler`` and
  ``SQLServerCompiler`` override the dialect-specific steps (parameter
  placeholder style, pagination, returning the inserted key).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with dialect placeholders.
        params: Bound values keyed by parameter name, ordered by their first
            appearance in ``sql``.
        dialect: The target dialect name.
        positional: True when the driver expects a sequence of values
            (``?`` placeholders) instead of a mapping.
        returns_rows: True when executing ``sql`` produces a result set.
    """

    sql: str
    params: dict[str, Any] = field(default_factory=dict)
    dialect: str = "sqlite"
    positional: bool = False
    returns_rows: bool = True

    @property
    def binding_names(self) -> list[str]:
        """Parameter names in placeholder order."""
        return list(self.params)

    def driver_params(self) -> dict[str, Any] | tuple[Any, ...]:
        """Return ``params`` in the shape the driver expects.

        Returns:
            A tuple of values for positional dialects, otherwise a dict.
        """
        if self.positional:
            return tuple(self.params.values())
        return dict(self.params)


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers.

    Subclasses implement the dialect-specific methods; the
    ``StatementBuilder`` uses this interface via the Strategy / Template
    Method patterns.
    """

    #: Whether bindings are sent to the driver as a sequence.
    positional: bool = False

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'sqlite'``, ``'postgres'`` ...)."""

    @abstractmethod
    def param_placeholder(self, name: str) -> str:
        """Return the SQL placeholder string for a named parameter.

        Args:
            name: Parameter name (e.g. ``'qb_status_0'``).

        Returns:
            Dialect-specific placeholder string.
        """

    def escape_text(self, text: str) -> str:
        """Escape caller-written SQL for the driver's paramstyle.

        Raw clauses and every select-list expression (plain columns,
        ``select_raw`` text and aggregate arguments) pass through here.
        The default leaves the text unchanged.
        """
        return text

    def pagination(self, limit: int | None, offset: int | None, ordered: bool) -> list[str]:
        """Return the trailing pagination fragments.

        Args:
            limit: Maximum number of rows, or ``None``.
            offset: Rows to skip, or ``None``.
            ordered: Whether the statement already has an ORDER BY.

        Returns:
            Zero or more SQL fragments appended after ORDER BY.
        """
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            parts.append(f"OFFSET {int(offset)}")
        return parts

    def build_insert(
        self,
        table: str,
        columns: list[str],
        placeholders: list[str],
        returning: str | None = None,
    ) -> str:
        """Assemble an INSERT statement.

        ``returning`` names the key column to hand back for dialects that
        cannot report it through the driver; the ANSI default ignores it.
        """
        return (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)})"
        )

    def insert_returns_rows(self, returning: str | None) -> bool:
        """Whether :meth:`build_insert` yields a result set for ``returning``."""
        return False
