"""PostgreSQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler


class PostgresCompiler(SQLCompiler):
    """Compiles query state to PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``%(name)s``: compatible with ``psycopg2`` and
    ``psycopg`` named-parameter execution.

    PostgreSQL drivers have no ``lastrowid``; inserts that ask for a key
    get a ``RETURNING`` clause and the key is read from the result row.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def param_placeholder(self, name: str) -> str:
        return f"%({name})s"

    def escape_text(self, text: str) -> str:
        # pyformat drivers treat a bare % as the start of a placeholder
        return text.replace("%", "%%")

    def build_insert(
        self,
        table: str,
        columns: list[str],
        placeholders: list[str],
        returning: str | None = None,
    ) -> str:
        sql = super().build_insert(table, columns, placeholders, returning)
        if returning:
            sql += f" RETURNING {returning}"
        return sql

    def insert_returns_rows(self, returning: str | None) -> bool:
        return bool(returning)
