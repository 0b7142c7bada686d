"""Keyword vocabulary shared by the clause model and the compiler.

Everything that is allowed to appear verbatim in the SQL text next to a
bound value (operators, connectors, join kinds, sort directions, aggregate
function names) is enumerated here.  Nothing outside these sets is ever
accepted from a caller in those positions.
"""

from __future__ import annotations

from enum import Enum

from chainql.errors import InvalidOperatorError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ComparisonOp(str, Enum):
    """Binary comparison operators accepted by ``where`` / ``having``."""

    EQ = "="
    NE = "!="
    NE_ANSI = "<>"
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "LIKE"


class Connector(str, Enum):
    """Boolean connective placed in front of every clause but the first."""

    AND = "AND"
    OR = "OR"


class JoinKind(str, Enum):
    """Supported JOIN kinds."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CROSS = "CROSS"


class Direction(str, Enum):
    """ORDER BY sort direction."""

    ASC = "ASC"
    DESC = "DESC"


class AggregateFunc(str, Enum):
    """Aggregate functions available as terminal operations."""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


# ---------------------------------------------------------------------------
# Operator groups
# ---------------------------------------------------------------------------

#: Whitelisted comparison operators, in display order.
COMPARISON_OPS: tuple[str, ...] = tuple(op.value for op in ComparisonOp)

#: Operators allowed between the two columns of a JOIN ... ON.
JOIN_OPS: frozenset[str] = frozenset(
    {"=", "!=", "<>", ">", ">=", "<", "<="}
)

#: Alias written into aggregate SELECTs; the scalar is read back under it.
AGGREGATE_ALIAS = "agg"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_operator(operator: object) -> str:
    """Return the canonical spelling of a whitelisted comparison operator.

    Args:
        operator: Operator as supplied by the caller (``">="``, ``"like"``).

    Returns:
        The whitelisted operator string.

    Raises:
        InvalidOperatorError: If ``operator`` is not whitelisted.
    """
    if isinstance(operator, str):
        candidate = operator.strip().upper()
        if candidate in COMPARISON_OPS:
            return candidate
    raise InvalidOperatorError(operator, list(COMPARISON_OPS))


def normalize_join_operator(operator: object) -> str:
    """Return ``operator`` if it may appear in a JOIN ... ON clause.

    Raises:
        InvalidOperatorError: If ``operator`` is not an allowed join operator.
    """
    if isinstance(operator, str) and operator.strip() in JOIN_OPS:
        return operator.strip()
    raise InvalidOperatorError(operator, sorted(JOIN_OPS))


def normalize_direction(direction: str) -> Direction:
    """Map a user-supplied direction to :class:`Direction`.

    Anything other than ``asc`` / ``desc`` (any case) falls back to ``ASC``.
    """
    try:
        return Direction(str(direction).strip().upper())
    except ValueError:
        return Direction.ASC
