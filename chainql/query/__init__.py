"""chainql caller-facing query builder."""
from chainql.query.builder import QueryBuilder

__all__ = ["QueryBuilder"]
