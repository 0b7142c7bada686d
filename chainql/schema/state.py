"""Mutable query state accumulated by one builder instance."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field

from chainql.schema.bindings import BindingGenerator
from chainql.schema.clauses import Assignment, Clause, JoinSpec, OrderSpec, SelectItem


@dataclass
class QueryState:
    """Everything a builder has been told so far.

    Mutated in place by every chained call; read (never written) by the
    compiler.  Nested groups get their own ``QueryState`` that shares the
    parent's ``bindings`` object.

    Attributes:
        table: Target table; required before any terminal operation.
        selects: SELECT list; empty means ``*``.
        distinct: Emit ``SELECT DISTINCT``.
        joins: JOIN entries in registration order.
        wheres: WHERE clauses in call order.
        havings: HAVING clauses in call order.
        group_by: GROUP BY expressions.
        order_by: ORDER BY entries.
        limit: Optional LIMIT.
        offset: Optional OFFSET.
        assignments: Column/binding pairs of a pending INSERT or UPDATE.
        bindings: Name allocator and value store.
    """

    table: str | None = None
    selects: list[SelectItem] = field(default_factory=list)
    distinct: bool = False
    joins: list[JoinSpec] = field(default_factory=list)
    wheres: list[Clause] = field(default_factory=list)
    havings: list[Clause] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    order_by: list[OrderSpec] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None
    assignments: list[Assignment] = field(default_factory=list)
    bindings: BindingGenerator = field(default_factory=BindingGenerator)

    def child(self) -> QueryState:
        """Return an empty state for a nested group, sharing ``bindings``."""
        return QueryState(table=self.table, bindings=self.bindings)

    def copy(self) -> QueryState:
        """Deep copy, including an independent binding generator."""
        return copy.deepcopy(self)
