"""Core QueryState → SQL compilation logic.

``StatementBuilder`` is the top-level orchestrator.  It wires together the
clause-level sub-builders and assembles one statement per call.  All
dialect-specific behaviour is delegated to the injected ``SQLCompiler``.

Sub-builder hierarchy
---------------------
StatementBuilder
  ├── SelectClauseBuilder   (clause_builders.py)
  ├── JoinClauseBuilder     (clause_builders.py)
  ├── PredicateBuilder      (clause_builders.py)
  └── OrderByClauseBuilder  (clause_builders.py)

Purity
------
Every ``build_*`` method reads the state and returns a fresh
:class:`~chainql.compile.base.CompiledSQL`; nothing is written back.
Values for INSERT / UPDATE / INCREMENT are registered by the caller-facing
builder *before* compilation, so compiling the same state twice yields the
same text and the same parameters.
"""

from __future__ import annotations

from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.clause_builders import (
    JoinClauseBuilder,
    OrderByClauseBuilder,
    PredicateBuilder,
    SelectClauseBuilder,
)
from chainql.compile.context import CompilationContext
from chainql.errors import CompilationError, MissingTableError
from chainql.schema.clauses import SelectItem
from chainql.schema.expressions import AGGREGATE_ALIAS, AggregateFunc
from chainql.schema.state import QueryState


class StatementBuilder:
    """Compiles a :class:`QueryState` to parameterized SQL.

    Args:
        compiler: Dialect-specific compiler instance.
    """

    def __init__(self, compiler: SQLCompiler) -> None:
        self._compiler = compiler

    @property
    def compiler(self) -> SQLCompiler:
        return self._compiler

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_select(self, state: QueryState, limit: int | None = None) -> CompiledSQL:
        """Compile the SELECT described by ``state``.

        Args:
            state: The accumulated query state.
            limit: Overrides ``state.limit`` for this compilation only
                (``first()`` uses it to fetch one row without mutating state).

        Raises:
            MissingTableError: If no table has been set.
        """
        table = self._require_table(state, "select")
        ctx = self._context(state)
        parts = [SelectClauseBuilder(ctx).build(state.selects, state.distinct)]
        parts.append(f"FROM {table}")
        parts.extend(self._filter_parts(state, ctx))

        if state.order_by:
            parts.append(OrderByClauseBuilder().build(state.order_by))

        effective_limit = state.limit if limit is None else limit
        parts.extend(
            self._compiler.pagination(effective_limit, state.offset, bool(state.order_by))
        )
        return self._result(" ".join(parts), ctx)

    def build_aggregate(
        self,
        state: QueryState,
        func: AggregateFunc | str,
        column: str = "*",
    ) -> CompiledSQL:
        """Compile ``SELECT FUNC(column) AS agg FROM …`` for ``state``.

        The select list, ordering and pagination are ignored; joins and
        filters are kept.
        """
        table = self._require_table(state, "aggregate")
        try:
            func = AggregateFunc(str(getattr(func, "value", func)).upper())
        except ValueError as exc:
            raise CompilationError(
                f"Unsupported aggregate function: {func!r}", clause="SELECT"
            ) from exc
        ctx = self._context(state)
        select = SelectClauseBuilder(ctx).build(
            [SelectItem(expr=f"{func.value}({column}) AS {AGGREGATE_ALIAS}", raw=False)]
        )
        parts = [select, f"FROM {table}", *self._filter_parts(state, ctx)]
        return self._result(" ".join(parts), ctx)

    def build_exists(self, state: QueryState) -> CompiledSQL:
        """Compile the ``COUNT(*)`` query behind ``exists()``."""
        return self.build_aggregate(state, AggregateFunc.COUNT, "*")

    def build_insert(self, state: QueryState, returning: str | None = None) -> CompiledSQL:
        """Compile ``INSERT INTO t (c1, …) VALUES (:b1, …)`` from ``state.assignments``."""
        table = self._require_table(state, "insert")
        if not state.assignments:
            raise CompilationError("INSERT has no columns.", clause="INSERT")
        ctx = self._context(state)
        columns = [a.column for a in state.assignments]
        placeholders = [ctx.place(a.binding) for a in state.assignments]
        sql = self._compiler.build_insert(table, columns, placeholders, returning)
        return self._result(
            sql, ctx, returns_rows=self._compiler.insert_returns_rows(returning)
        )

    def build_update(self, state: QueryState) -> CompiledSQL:
        """Compile ``UPDATE t SET c1 = :b1, … WHERE …``.

        A missing WHERE clause is not an error here; guarding against
        table-wide updates is the caller's decision.
        """
        table = self._require_table(state, "update")
        if not state.assignments:
            raise CompilationError("UPDATE has no columns to set.", clause="SET")
        ctx = self._context(state)
        sets = ", ".join(f"{a.column} = {ctx.place(a.binding)}" for a in state.assignments)
        parts = [f"UPDATE {table} SET {sets}", *self._where_part(state, ctx)]
        return self._result(" ".join(parts), ctx, returns_rows=False)

    def build_increment(
        self,
        state: QueryState,
        column: str,
        amount_binding: str,
        sign: str = "+",
    ) -> CompiledSQL:
        """Compile ``UPDATE t SET col = col {+|-} :amount WHERE …``."""
        table = self._require_table(state, "increment")
        if sign not in ("+", "-"):
            raise CompilationError(f"Invalid increment sign: {sign!r}", clause="SET")
        ctx = self._context(state)
        amount = ctx.place(amount_binding)
        parts = [
            f"UPDATE {table} SET {column} = {column} {sign} {amount}",
            *self._where_part(state, ctx),
        ]
        return self._result(" ".join(parts), ctx, returns_rows=False)

    def build_delete(self, state: QueryState) -> CompiledSQL:
        """Compile ``DELETE FROM t WHERE …``."""
        table = self._require_table(state, "delete")
        ctx = self._context(state)
        parts = [f"DELETE FROM {table}", *self._where_part(state, ctx)]
        return self._result(" ".join(parts), ctx, returns_rows=False)

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    def _filter_parts(self, state: QueryState, ctx: CompilationContext) -> list[str]:
        """JOIN … WHERE … GROUP BY … HAVING …, in that order."""
        parts: list[str] = []
        joins = JoinClauseBuilder()
        for join in state.joins:
            parts.append(joins.build(join))

        parts.extend(self._where_part(state, ctx))

        if state.group_by:
            parts.append(f"GROUP BY {', '.join(state.group_by)}")

        having = PredicateBuilder(ctx).build(state.havings)
        if having:
            parts.append(f"HAVING {having}")
        return parts

    @staticmethod
    def _where_part(state: QueryState, ctx: CompilationContext) -> list[str]:
        where = PredicateBuilder(ctx).build(state.wheres)
        return [f"WHERE {where}"] if where else []

    def _context(self, state: QueryState) -> CompilationContext:
        return CompilationContext(compiler=self._compiler, bindings=state.bindings)

    def _result(
        self,
        sql: str,
        ctx: CompilationContext,
        returns_rows: bool = True,
    ) -> CompiledSQL:
        return CompiledSQL(
            sql=sql,
            params=ctx.params(),
            dialect=self._compiler.dialect_name,
            positional=self._compiler.positional,
            returns_rows=returns_rows,
        )

    @staticmethod
    def _require_table(state: QueryState, operation: str) -> str:
        if not state.table:
            raise MissingTableError(operation)
        return state.table
