"""Typed clause models for the query state.

Predicates are a discriminated union on ``kind``; the compiler matches on
the concrete class, so a new clause shape cannot be added without the
renderer noticing.  Clauses never hold values, only the names under which
the values were registered with the
:class:`~chainql.schema.bindings.BindingGenerator`.

Usage::

    from chainql.schema.clauses import BasicClause, Connector

    clause = BasicClause(column="status", operator="=", binding="qb_status_0")
    assert clause.connector is Connector.AND
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from chainql.schema.expressions import Connector, Direction, JoinKind

_FORBID = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Predicate clauses (WHERE / HAVING)
# ---------------------------------------------------------------------------


class BasicClause(BaseModel):
    """``column operator :binding``."""

    model_config = _FORBID

    kind: Literal["basic"] = "basic"
    connector: Connector = Connector.AND
    column: str
    operator: str
    binding: str


class InClause(BaseModel):
    """``column [NOT] IN (:b1, :b2, ...)``.

    An empty ``bindings`` list is legal; it renders as a constant
    predicate instead of ``IN ()``.
    """

    model_config = _FORBID

    kind: Literal["in"] = "in"
    connector: Connector = Connector.AND
    column: str
    negated: bool = False
    bindings: list[str] = Field(default_factory=list)


class NullClause(BaseModel):
    """``column IS [NOT] NULL``."""

    model_config = _FORBID

    kind: Literal["null"] = "null"
    connector: Connector = Connector.AND
    column: str
    negated: bool = False


class BetweenClause(BaseModel):
    """``column [NOT] BETWEEN :low AND :high``."""

    model_config = _FORBID

    kind: Literal["between"] = "between"
    connector: Connector = Connector.AND
    column: str
    negated: bool = False
    low: str
    high: str


class RawClause(BaseModel):
    """Caller-written SQL with positional ``?`` markers.

    ``text`` is kept exactly as given; each ``?`` is paired, left to right,
    with one entry of ``bindings`` when the clause is rendered.
    """

    model_config = _FORBID

    kind: Literal["raw"] = "raw"
    connector: Connector = Connector.AND
    text: str
    bindings: list[str] = Field(default_factory=list)


class GroupClause(BaseModel):
    """A parenthesized sub-expression: ``(a OR b)``."""

    model_config = _FORBID

    kind: Literal["group"] = "group"
    connector: Connector = Connector.AND
    nested: list[Clause] = Field(default_factory=list)


Clause = Annotated[
    BasicClause | InClause | NullClause | BetweenClause | RawClause | GroupClause,
    Field(discriminator="kind"),
]

GroupClause.model_rebuild()


# ---------------------------------------------------------------------------
# Non-predicate state entries
# ---------------------------------------------------------------------------


class SelectItem(BaseModel):
    """One entry of the SELECT list.

    Attributes:
        expr: Column name or raw expression, rendered verbatim.
        raw: True when added through ``select_raw``.
    """

    model_config = _FORBID

    expr: str
    raw: bool = False


class JoinSpec(BaseModel):
    """A single ``JOIN ... ON ...`` entry.

    ``left``, ``operator`` and ``right`` are ``None`` for CROSS joins.
    """

    model_config = _FORBID

    kind: JoinKind = JoinKind.INNER
    table: str
    left: str | None = None
    operator: str | None = "="
    right: str | None = None


class OrderSpec(BaseModel):
    """A single ORDER BY entry."""

    model_config = _FORBID

    column: str
    direction: Direction = Direction.ASC


class Assignment(BaseModel):
    """``column = :binding`` for INSERT column lists and UPDATE ... SET."""

    model_config = _FORBID

    column: str
    binding: str
