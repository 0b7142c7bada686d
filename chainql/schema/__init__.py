"""chainql query model: clauses, bindings and query state."""
from chainql.schema.bindings import BindingGenerator, sanitize_stem
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
    ComparisonOp,
    Connector,
    Direction,
    JoinKind,
)
from chainql.schema.state import QueryState

__all__ = [
    "AggregateFunc",
    "Assignment",
    "BasicClause",
    "BetweenClause",
    "BindingGenerator",
    "Clause",
    "ComparisonOp",
    "Connector",
    "Direction",
    "GroupClause",
    "InClause",
    "JoinKind",
    "JoinSpec",
    "NullClause",
    "OrderSpec",
    "QueryState",
    "RawClause",
    "SelectItem",
    "sanitize_stem",
]
