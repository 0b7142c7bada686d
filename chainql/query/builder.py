"""Fluent, chainable query builder.

``QueryBuilder`` records what the caller asks for in a
:class:`~chainql.schema.state.QueryState`, allocating a binding for every
literal value as it arrives, and compiles that state once per terminal
call::

    users = (
        db.table("users")
        .select("id", "name")
        .where("status", "active")
        .where(lambda q: q.where("age", ">", 18).or_where("role", "admin"))
        .order_by("created_at", "DESC")
        .paginate(20, page=2)
        .get()
    )

Every chained call mutates *this* builder and returns it; chaining never
copies.  Use :meth:`QueryBuilder.clone` to branch a partially built query.
"""

from __future__ import annotations

import logging
import numbers
import warnings
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from chainql.compile.base import CompiledSQL
from chainql.errors import (
    BindingCountError,
    CompilationError,
    EmptySetClauseWarning,
    UnconditionalMutationError,
)
from chainql.execute.base import RawResult
from chainql.schema.bindings import BindingGenerator
from chainql.schema.clauses import (
    Assignment,
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
from chainql.schema.expressions import (
    AggregateFunc,
    Connector,
    JoinKind,
    normalize_direction,
    normalize_join_operator,
    normalize_operator,
)
from chainql.schema.state import QueryState

if TYPE_CHECKING:
    from chainql.database import Database

logger = logging.getLogger(__name__)

_MISSING: Any = object()

#: Which clause list of the state a predicate call writes to.
_WHERE = "wheres"
_HAVING = "havings"


class QueryBuilder:
    """Accumulates one query and runs it.

    Args:
        database: The owning :class:`~chainql.database.Database`; supplies
            the compiler, the executor and the settings.
        state: Pre-built state (used for nested groups and clones).
        nested: True for the builder handed to a group callback; it shares
            the parent's table and binding generator.
    """

    def __init__(
        self,
        database: Database,
        state: QueryState | None = None,
        nested: bool = False,
    ) -> None:
        self._db = database
        self._state = state if state is not None else self._fresh_state()
        self._nested = nested

    @property
    def state(self) -> QueryState:
        return self._state

    # ------------------------------------------------------------------
    # Target and select list
    # ------------------------------------------------------------------

    def table(self, name: str) -> QueryBuilder:
        """Start a new query on ``name``, discarding any previous state.

        Raises:
            CompilationError: When called on the builder inside a group
                callback.
        """
        if self._nested:
            raise CompilationError(
                "table() cannot be called inside a nested where/having group.", clause="GROUP"
            )
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Table name must be a non-empty string, got {name!r}.")
        self._state = self._fresh_state()
        self._state.table = name
        return self

    def select(self, *columns: str | Sequence[str]) -> QueryBuilder:
        """Add columns to the SELECT list (``select("a", "b")`` or ``select(["a", "b"])``)."""
        for column in _flatten(columns):
            self._state.selects.append(SelectItem(expr=column))
        return self

    def select_raw(self, expression: str) -> QueryBuilder:
        """Add a verbatim expression (``COUNT(*) AS total``) to the SELECT list."""
        self._state.selects.append(SelectItem(expr=expression, raw=True))
        return self

    def distinct(self) -> QueryBuilder:
        self._state.distinct = True
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator_or_value: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        """Add an AND-connected predicate.

        Accepted forms::

            where("status", "active")          # status = :qb_status_0
            where("age", ">", 18)              # age > :qb_age_1
            where({"status": "active", "role": "admin"})
            where(lambda q: q.where("a", 1).or_where("b", 2))   # (a = … OR b = …)

        Raises:
            InvalidOperatorError: If the three-argument form uses an
                operator outside the whitelist.
        """
        return self._predicate(_WHERE, Connector.AND, column, operator_or_value, value)

    def or_where(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator_or_value: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        """Like :meth:`where`, connected with OR."""
        return self._predicate(_WHERE, Connector.OR, column, operator_or_value, value)

    def where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_WHERE, Connector.AND, column, values, negated=False)

    def or_where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_WHERE, Connector.OR, column, values, negated=False)

    def where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_WHERE, Connector.AND, column, values, negated=True)

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_WHERE, Connector.OR, column, values, negated=True)

    def where_null(self, column: str) -> QueryBuilder:
        return self._null(_WHERE, Connector.AND, column, negated=False)

    def or_where_null(self, column: str) -> QueryBuilder:
        return self._null(_WHERE, Connector.OR, column, negated=False)

    def where_not_null(self, column: str) -> QueryBuilder:
        return self._null(_WHERE, Connector.AND, column, negated=True)

    def or_where_not_null(self, column: str) -> QueryBuilder:
        return self._null(_WHERE, Connector.OR, column, negated=True)

    def where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        """``column BETWEEN low AND high``; the bounds are never reordered."""
        return self._between(_WHERE, Connector.AND, column, low, high, negated=False)

    def or_where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(_WHERE, Connector.OR, column, low, high, negated=False)

    def where_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(_WHERE, Connector.AND, column, low, high, negated=True)

    def or_where_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(_WHERE, Connector.OR, column, low, high, negated=True)

    def where_raw(self, sql: str, bindings: Sequence[Any] = ()) -> QueryBuilder:
        """Add caller-written SQL; each ``?`` is bound to the next value.

        The text is not inspected beyond counting ``?`` markers, so it must
        never contain untrusted input.

        Raises:
            BindingCountError: If markers and values differ in number.
        """
        return self._raw(_WHERE, Connector.AND, sql, bindings)

    def or_where_raw(self, sql: str, bindings: Sequence[Any] = ()) -> QueryBuilder:
        return self._raw(_WHERE, Connector.OR, sql, bindings)

    # ------------------------------------------------------------------
    # HAVING
    # ------------------------------------------------------------------

    def having(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator_or_value: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        """Add an AND-connected HAVING predicate; same forms as :meth:`where`."""
        return self._predicate(_HAVING, Connector.AND, column, operator_or_value, value)

    def or_having(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator_or_value: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        return self._predicate(_HAVING, Connector.OR, column, operator_or_value, value)

    def having_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_HAVING, Connector.AND, column, values, negated=False)

    def having_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._in(_HAVING, Connector.AND, column, values, negated=True)

    def having_null(self, column: str) -> QueryBuilder:
        return self._null(_HAVING, Connector.AND, column, negated=False)

    def having_not_null(self, column: str) -> QueryBuilder:
        return self._null(_HAVING, Connector.AND, column, negated=True)

    def having_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(_HAVING, Connector.AND, column, low, high, negated=False)

    def having_not_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self._between(_HAVING, Connector.AND, column, low, high, negated=True)

    def having_raw(self, sql: str, bindings: Sequence[Any] = ()) -> QueryBuilder:
        return self._raw(_HAVING, Connector.AND, sql, bindings)

    def or_having_raw(self, sql: str, bindings: Sequence[Any] = ()) -> QueryBuilder:
        return self._raw(_HAVING, Connector.OR, sql, bindings)

    # ------------------------------------------------------------------
    # Joins, grouping, ordering, pagination
    # ------------------------------------------------------------------

    def join(
        self,
        table: str,
        first: str,
        operator: str | None = None,
        second: str | None = None,
        kind: JoinKind | str = JoinKind.INNER,
    ) -> QueryBuilder:
        """Add ``{kind} JOIN table ON first operator second``.

        ``join("posts", "users.id", "posts.user_id")`` implies ``=``.
        """
        if second is None:
            operator, second = "=", operator
        if second is None:
            raise ValueError(f"JOIN on '{table}' needs two columns to compare.")
        self._state.joins.append(
            JoinSpec(
                kind=JoinKind(str(getattr(kind, "value", kind)).upper()),
                table=table,
                left=first,
                operator=normalize_join_operator(operator),
                right=second,
            )
        )
        return self

    def left_join(
        self, table: str, first: str, operator: str | None = None, second: str | None = None
    ) -> QueryBuilder:
        return self.join(table, first, operator, second, JoinKind.LEFT)

    def right_join(
        self, table: str, first: str, operator: str | None = None, second: str | None = None
    ) -> QueryBuilder:
        return self.join(table, first, operator, second, JoinKind.RIGHT)

    def cross_join(self, table: str) -> QueryBuilder:
        self._state.joins.append(
            JoinSpec(kind=JoinKind.CROSS, table=table, operator=None)
        )
        return self

    def group_by(self, *columns: str | Sequence[str]) -> QueryBuilder:
        self._state.group_by.extend(_flatten(columns))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> QueryBuilder:
        """Sort by ``column``; unknown directions fall back to ``ASC``."""
        self._state.order_by.append(
            OrderSpec(column=column, direction=normalize_direction(direction))
        )
        return self

    def limit(self, limit: int) -> QueryBuilder:
        self._state.limit = _non_negative("limit", limit)
        return self

    def offset(self, offset: int) -> QueryBuilder:
        self._state.offset = _non_negative("offset", offset)
        return self

    def paginate(self, per_page: int, page: int = 1) -> QueryBuilder:
        """Set ``LIMIT per_page OFFSET (page - 1) * per_page``; pages start at 1."""
        per_page = _non_negative("per_page", per_page)
        page = _non_negative("page", page)
        if per_page < 1 or page < 1:
            raise ValueError(
                f"paginate() needs per_page >= 1 and page >= 1, got {per_page}, {page}."
            )
        self._state.limit = per_page
        self._state.offset = (page - 1) * per_page
        return self

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self) -> list[dict[str, Any]]:
        """All matching rows; ``[]`` when nothing matches."""
        return self._db.runner.rows(self.compile())

    def first(self) -> dict[str, Any] | None:
        """The first matching row, or ``None``.  The state's limit is left alone."""
        return self._db.runner.row(self._db.statements.build_select(self._state, limit=1))

    def find(self, id: Any, primary_key: str | None = None) -> dict[str, Any] | None:
        """Shorthand for ``where(primary_key, id).first()``."""
        return self.where(primary_key or self._db.settings.default_primary_key, id).first()

    def value(self, column: str) -> Any:
        """``column`` of the first matching row, or ``None``."""
        state = self._only_column(column)
        row = self._db.runner.row(self._db.statements.build_select(state, limit=1))
        if row is None:
            return None
        return next(iter(row.values()), None)

    def pluck(self, column: str) -> list[Any]:
        """The values of ``column`` across all matching rows."""
        state = self._only_column(column)
        rows = self._db.runner.rows(self._db.statements.build_select(state))
        return [next(iter(row.values()), None) for row in rows]

    def exists(self) -> bool:
        """Whether any row matches; runs ``COUNT(*)``, not a row fetch."""
        result = self._db.runner.scalar(self._db.statements.build_exists(self._state))
        return int(result or 0) > 0

    def count(self, column: str = "*") -> int | None:
        result = self._aggregate(AggregateFunc.COUNT, column)
        return None if result is None else int(result)

    def sum(self, column: str) -> Any:
        return self._aggregate(AggregateFunc.SUM, column)

    def avg(self, column: str) -> Any:
        return self._aggregate(AggregateFunc.AVG, column)

    def min(self, column: str) -> Any:
        return self._aggregate(AggregateFunc.MIN, column)

    def max(self, column: str) -> Any:
        return self._aggregate(AggregateFunc.MAX, column)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(
        self, values: Mapping[str, Any], primary_key: str | bool | None = None
    ) -> Any:
        """Insert one row and return its driver-assigned key.

        Args:
            values: ``column -> value``; column order is kept.
            primary_key: Key column to return on dialects that need
                ``RETURNING`` / ``OUTPUT``.  ``None`` (or ``True``) uses the
                configured ``default_primary_key``.  ``False`` or ``""`` is
                for tables without a generated key (join tables, natural
                keys): no key clause is emitted and ``None`` is returned.
        """
        if primary_key is None or primary_key is True:
            returning = self._db.settings.default_primary_key
        else:
            returning = primary_key or None
        self._assign(values, "insert")
        try:
            compiled = self._db.statements.build_insert(self._state, returning=returning)
        finally:
            self._state.assignments.clear()
        result = self._db.runner.insert(compiled)
        return result if returning else None

    def update(self, values: Mapping[str, Any]) -> int:
        """Update matching rows and return how many changed."""
        self._guard("update")
        self._assign(values, "update")
        try:
            compiled = self._db.statements.build_update(self._state)
        finally:
            self._state.assignments.clear()
        return self._db.runner.affected(compiled)

    def delete(self) -> int:
        """Delete matching rows and return how many were removed."""
        self._guard("delete")
        return self._db.runner.affected(self._db.statements.build_delete(self._state))

    def increment(self, column: str, amount: int | float = 1) -> int:
        """``SET column = column + :amount`` on matching rows."""
        return self._step(column, amount, "+")

    def decrement(self, column: str, amount: int | float = 1) -> int:
        """``SET column = column - :amount`` on matching rows."""
        return self._step(column, amount, "-")

    # ------------------------------------------------------------------
    # Raw statements, debugging, transactions
    # ------------------------------------------------------------------

    def raw(self, sql: str, bindings: Mapping[str, Any] | Sequence[Any] | None = None) -> RawResult:
        """Run caller-written SQL through the executor, untouched."""
        return self._db.raw(sql, bindings)

    def compile(self) -> CompiledSQL:
        """Compile the SELECT without running it."""
        return self._db.statements.build_select(self._state)

    def to_sql(self) -> str:
        """The SELECT text this builder would run.  Executes nothing."""
        return self.compile().sql

    def get_bindings(self) -> dict[str, Any]:
        """The SELECT's bindings in placeholder order.  Executes nothing."""
        return self.compile().params

    def clone(self) -> QueryBuilder:
        """An independent copy of this builder, for branching a query."""
        return QueryBuilder(self._db, self._state.copy(), nested=self._nested)

    def begin_transaction(self) -> QueryBuilder:
        self._db.begin_transaction()
        return self

    def commit(self) -> None:
        self._db.commit()

    def rollback(self) -> None:
        self._db.rollback()

    def __repr__(self) -> str:
        return f"<QueryBuilder table={self._state.table!r} dialect={self._db.dialect!r}>"

    # ------------------------------------------------------------------
    # Clause registration
    # ------------------------------------------------------------------

    def _clauses(self, target: str) -> list[Clause]:
        return getattr(self._state, target)

    def _predicate(
        self,
        target: str,
        connector: Connector,
        column: Any,
        operator_or_value: Any,
        value: Any,
    ) -> QueryBuilder:
        if callable(column) and not isinstance(column, str):
            return self._group(target, connector, column)

        if isinstance(column, Mapping):
            for key, val in column.items():
                self._basic(target, connector, key, "=", val)
            return self

        if operator_or_value is _MISSING:
            raise TypeError(f"No value given for column {column!r}.")
        if value is _MISSING:
            operator, value = "=", operator_or_value
        else:
            operator = normalize_operator(operator_or_value)
        return self._basic(target, connector, column, operator, value)

    def _basic(
        self,
        target: str,
        connector: Connector,
        column: str,
        operator: str,
        value: Any,
    ) -> QueryBuilder:
        _require_column(column)
        if value is None and operator in ("=", "!=", "<>"):
            # a bound NULL never compares equal
            return self._null(target, connector, column, negated=operator != "=")
        binding = self._state.bindings.add(column, value)
        self._clauses(target).append(
            BasicClause(connector=connector, column=column, operator=operator, binding=binding)
        )
        return self

    def _in(
        self,
        target: str,
        connector: Connector,
        column: str,
        values: Iterable[Any],
        negated: bool,
    ) -> QueryBuilder:
        _require_column(column)
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise TypeError(f"Expected a collection of values for {column!r}, got {values!r}.")
        values = list(values)
        if not values:
            keyword = "NOT IN" if negated else "IN"
            message = f"Empty {keyword} list for {column!r}; compiling a constant predicate."
            logger.warning(message)
            warnings.warn(message, EmptySetClauseWarning, stacklevel=3)
        names = self._state.bindings.add_many(column, values)
        self._clauses(target).append(
            InClause(connector=connector, column=column, negated=negated, bindings=names)
        )
        return self

    def _null(self, target: str, connector: Connector, column: str, negated: bool) -> QueryBuilder:
        _require_column(column)
        self._clauses(target).append(
            NullClause(connector=connector, column=column, negated=negated)
        )
        return self

    def _between(
        self,
        target: str,
        connector: Connector,
        column: str,
        low: Any,
        high: Any,
        negated: bool,
    ) -> QueryBuilder:
        _require_column(column)
        bindings = self._state.bindings
        low_name = bindings.add(f"{column}_min", low)
        high_name = bindings.add(f"{column}_max", high)
        self._clauses(target).append(
            BetweenClause(
                connector=connector,
                column=column,
                negated=negated,
                low=low_name,
                high=high_name,
            )
        )
        return self

    def _raw(
        self,
        target: str,
        connector: Connector,
        sql: str,
        bindings: Sequence[Any],
    ) -> QueryBuilder:
        if isinstance(bindings, (str, bytes)) or isinstance(bindings, Mapping):
            raise TypeError("Raw fragment bindings must be a sequence of positional values.")
        values = list(bindings)
        markers = sql.count("?")
        if markers != len(values):
            raise BindingCountError(markers, len(values))
        names = self._state.bindings.add_many("raw", values)
        self._clauses(target).append(RawClause(connector=connector, text=sql, bindings=names))
        return self

    def _group(
        self,
        target: str,
        connector: Connector,
        callback: Callable[[QueryBuilder], Any],
    ) -> QueryBuilder:
        child = QueryBuilder(self._db, self._state.child(), nested=True)
        callback(child)
        nested = list(getattr(child.state, target))
        if nested:
            self._clauses(target).append(GroupClause(connector=connector, nested=nested))
        return self

    # ------------------------------------------------------------------
    # Terminal helpers
    # ------------------------------------------------------------------

    def _aggregate(self, func: AggregateFunc, column: str) -> Any:
        compiled = self._db.statements.build_aggregate(self._state, func, column)
        return self._db.runner.scalar(compiled)

    def _assign(self, values: Mapping[str, Any], operation: str) -> None:
        if not isinstance(values, Mapping) or not values:
            raise ValueError(f"{operation}() needs a non-empty mapping of column -> value.")
        bindings = self._state.bindings
        self._state.assignments = [
            Assignment(column=_require_column(column), binding=bindings.add(column, val))
            for column, val in values.items()
        ]

    def _step(self, column: str, amount: Any, sign: str) -> int:
        _require_column(column)
        if isinstance(amount, bool) or not isinstance(amount, numbers.Number):
            raise TypeError(f"Increment amount must be a number, got {amount!r}.")
        self._guard("increment" if sign == "+" else "decrement")
        binding = self._state.bindings.add("amount", amount)
        compiled = self._db.statements.build_increment(self._state, column, binding, sign)
        return self._db.runner.affected(compiled)

    def _guard(self, operation: str) -> None:
        if self._db.settings.allow_unconditional_mutations or self._state.wheres:
            return
        raise UnconditionalMutationError(operation, self._state.table or "?")

    def _only_column(self, column: str) -> QueryState:
        state = self._state.copy()
        state.selects = [SelectItem(expr=_require_column(column))]
        return state

    def _fresh_state(self) -> QueryState:
        return QueryState(bindings=BindingGenerator(prefix=self._db.settings.binding_prefix))


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _flatten(columns: tuple[Any, ...]) -> list[str]:
    """Accept ``f("a", "b")`` as well as ``f(["a", "b"])``."""
    if len(columns) == 1 and isinstance(columns[0], (list, tuple)):
        columns = tuple(columns[0])
    return [_require_column(c) for c in columns]


def _require_column(column: Any) -> str:
    if not isinstance(column, str) or not column.strip():
        raise TypeError(f"Column must be a non-empty string, got {column!r}.")
    return column


def _non_negative(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise TypeError(f"{name} must be an integer, got {value!r}.")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}.")
    return int(value)
