"""SQLite dialect compiler."""
from __future__ import annotations

from chainql.compile.base import SQLCompiler


class SQLiteCompiler(SQLCompiler):
    """Compiles query state to SQLite-flavoured parameterized SQL.

    Parameter style: ``:name``: compatible with Python's built-in
    ``sqlite3`` named-parameter execution (``cursor.execute(sql, dict)``)
    and with SQLAlchemy's ``text()`` constructs on any backend.

    Note: SQLite rejects ``OFFSET`` without ``LIMIT``; ``LIMIT -1`` is
    emitted in that case.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def param_placeholder(self, name: str) -> str:
        return f":{name}"

    def pagination(self, limit: int | None, offset: int | None, ordered: bool) -> list[str]:
        if limit is None and offset is not None:
            return ["LIMIT -1", f"OFFSET {int(offset)}"]
        return super().pagination(limit, offset, ordered)
