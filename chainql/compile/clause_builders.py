"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  All of them receive the same
:class:`~chainql.compile.context.CompilationContext`, so every placeholder
they emit is recorded in one list and the statement's parameters come out
in text order.

Classes
-------
PredicateBuilder: WHERE / HAVING bodies, including nested groups
SelectClauseBuilder: ``SELECT [DISTINCT] <items>``
JoinClauseBuilder: ``<KIND> JOIN … ON …``
OrderByClauseBuilder: ``ORDER BY …``
"""
from __future__ import annotations

from chainql.compile.context import CompilationContext
from chainql.errors import BindingCountError, CompilationError
from chainql.schema.clauses import (
    BasicClause,
    BetweenClause,
    Clause,
    GroupClause,
    InClause,
    JoinSpec,
    NullClause,
    OrderSpec,
    RawClause,
    SelectItem,
)
from chainql.schema.expressions import JoinKind

#: Constant predicates standing in for ``IN ()`` / ``NOT IN ()``.
ALWAYS_FALSE = "1 = 0"
ALWAYS_TRUE = "1 = 1"


class PredicateBuilder:
    """Renders an ordered list of clauses joined by their connectors.

    The first clause's connector is dropped; every later clause is prefixed
    with its own.  Clauses are never reordered, so ``a OR b AND c`` comes
    out exactly as called and the database applies its usual precedence.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, clauses: list[Clause]) -> str:
        parts: list[str] = []
        for clause in clauses:
            if isinstance(clause, GroupClause) and not clause.nested:
                continue
            sql = self._render(clause)
            if parts:
                parts.append(f"{clause.connector.value} {sql}")
            else:
                parts.append(sql)
        return " ".join(parts)

    def _render(self, clause: Clause) -> str:
        place = self._ctx.place
        if isinstance(clause, BasicClause):
            return f"{clause.column} {clause.operator} {place(clause.binding)}"

        if isinstance(clause, InClause):
            if not clause.bindings:
                return ALWAYS_TRUE if clause.negated else ALWAYS_FALSE
            keyword = "NOT IN" if clause.negated else "IN"
            values = ", ".join(place(name) for name in clause.bindings)
            return f"{clause.column} {keyword} ({values})"

        if isinstance(clause, NullClause):
            keyword = "IS NOT NULL" if clause.negated else "IS NULL"
            return f"{clause.column} {keyword}"

        if isinstance(clause, BetweenClause):
            keyword = "NOT BETWEEN" if clause.negated else "BETWEEN"
            return f"{clause.column} {keyword} {place(clause.low)} AND {place(clause.high)}"

        if isinstance(clause, RawClause):
            return self._render_raw(clause)

        if isinstance(clause, GroupClause):
            return f"({self.build(clause.nested)})"

        raise CompilationError(
            f"Unknown clause type: {type(clause).__name__}", clause="WHERE"
        )

    def _render_raw(self, clause: RawClause) -> str:
        pieces = self._ctx.compiler.escape_text(clause.text).split("?")
        markers = len(pieces) - 1
        if markers != len(clause.bindings):
            raise BindingCountError(markers, len(clause.bindings))
        out = [pieces[0]]
        for name, tail in zip(clause.bindings, pieces[1:]):
            out.append(self._ctx.place(name))
            out.append(tail)
        return "".join(out)


class SelectClauseBuilder:
    """Builds the ``SELECT [DISTINCT] …`` clause."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, items: list[SelectItem], distinct: bool = False) -> str:
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        if not items:
            return f"{prefix} *"
        escape = self._ctx.compiler.escape_text
        return f"{prefix} {', '.join(escape(item.expr) for item in items)}"


class JoinClauseBuilder:
    """Builds a single ``JOIN … ON …`` fragment."""

    def build(self, join: JoinSpec) -> str:
        if join.kind is JoinKind.CROSS:
            return f"CROSS JOIN {join.table}"
        if join.left is None or join.right is None:
            raise CompilationError(
                f"{join.kind.value} JOIN on '{join.table}' has no ON columns.",
                clause="JOIN",
            )
        return (
            f"{join.kind.value} JOIN {join.table} "
            f"ON {join.left} {join.operator or '='} {join.right}"
        )


class OrderByClauseBuilder:
    """Builds the ``ORDER BY …`` clause."""

    def build(self, orders: list[OrderSpec]) -> str:
        return "ORDER BY " + ", ".join(
            f"{order.column} {order.direction.value}" for order in orders
        )
