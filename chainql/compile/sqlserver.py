"""SQL Server dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler


class SQLServerCompiler(SQLCompiler):
    """Compiles query state to SQL Server (T-SQL) parameterized SQL.

    Parameter style: ``?``: positional, as used by ``pyodbc``.  Values are
    sent in placeholder order (``CompiledSQL.driver_params()``).

    SQL Server has no ``LIMIT``.  Pagination uses the ANSI
    ``OFFSET … ROWS FETCH NEXT … ROWS ONLY`` form, which requires an
    ``ORDER BY``; ``ORDER BY (SELECT NULL)`` is added when none was set.
    """

    positional = True

    @property
    def dialect_name(self) -> str:
        return "sqlserver"

    def param_placeholder(self, name: str) -> str:
        return "?"

    def pagination(self, limit: int | None, offset: int | None, ordered: bool) -> list[str]:
        if limit is None and offset is None:
            return []
        parts: list[str] = []
        if not ordered:
            parts.append("ORDER BY (SELECT NULL)")
        parts.append(f"OFFSET {int(offset or 0)} ROWS")
        if limit is not None:
            parts.append(f"FETCH NEXT {int(limit)} ROWS ONLY")
        return parts

    def build_insert(
        self,
        table: str,
        columns: list[str],
        placeholders: list[str],
        returning: str | None = None,
    ) -> str:
        output = f" OUTPUT INSERTED.{returning}" if returning else ""
        return (
            f"INSERT INTO {table} ({', '.join(columns)}){output} "
            f"VALUES ({', '.join(placeholders)})"
        )

    def insert_returns_rows(self, returning: str | None) -> bool:
        return bool(returning)
