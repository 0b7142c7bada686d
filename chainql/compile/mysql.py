"""MySQL dialect compiler."""

from __future__ import annotations

from chainql.compile.base import SQLCompiler

#: Largest value MySQL accepts for LIMIT; stands in for "no limit".
_MYSQL_MAX_LIMIT = 18446744073709551615


class MySQLCompiler(SQLCompiler):
    """Compiles query state to MySQL-flavoured parameterized SQL.

    Parameter style: ``%(name)s``: compatible with ``PyMySQL`` and
    ``mysql-connector-python`` named-parameter execution.

    Note: MySQL rejects ``OFFSET`` without ``LIMIT``; the documented
    maximum row count is used as the limit in that case.  Also applies to
    MariaDB.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def param_placeholder(self, name: str) -> str:
        return f"%({name})s"

    def escape_text(self, text: str) -> str:
        return text.replace("%", "%%")

    def pagination(self, limit: int | None, offset: int | None, ordered: bool) -> list[str]:
        if limit is None and offset is not None:
            return [f"LIMIT {_MYSQL_MAX_LIMIT}", f"OFFSET {int(offset)}"]
        return super().pagination(limit, offset, ordered)
