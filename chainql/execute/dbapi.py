"""Executor for plain PEP 249 (DB-API 2.0) connections.

Works with ``sqlite3``, ``psycopg`` / ``psycopg2``, ``PyMySQL`` and
``pyodbc`` connections.  Pick the ``Database`` dialect that matches the
driver's paramstyle (``sqlite`` for ``:name``, ``postgres`` / ``mysql`` for
``%(name)s``, ``sqlserver`` for ``?``).

The connection must be in the driver's default (non-autocommit) mode.
Outside an explicit transaction every statement is committed as soon as
it has run; inside one, commits are left to :meth:`DBAPIExecutor.commit`.

Example::

    import sqlite3
    from chainql import Database, DBAPIExecutor

    db = Database(DBAPIExecutor(sqlite3.connect("app.db")))
    db.table("users").where("status", "active").get()
"""
from __future__ import annotations

import logging
from typing import Any

from chainql.errors import ExecutionError
from chainql.execute.base import (
    DriverParams,
    StatementHandle,
    binding_names_of,
    rows_from_cursor,
)

logger = logging.getLogger(__name__)


class DBAPIExecutor:
    """Runs compiled statements on one borrowed DB-API connection.

    Args:
        connection: An open DB-API 2.0 connection.
        error_types: Driver exception classes to wrap in
            :class:`~chainql.errors.ExecutionError`.  Defaults to the
            connection's ``Error`` attribute (a DB-API optional extension)
            and falls back to :class:`Exception`.
    """

    def __init__(
        self,
        connection: Any,
        error_types: tuple[type[BaseException], ...] | None = None,
    ) -> None:
        self._conn = connection
        if error_types is None:
            error_types = (getattr(connection, "Error", Exception),)
        self._error_types = error_types
        self._in_transaction = False
        self._last: StatementHandle | None = None

    @property
    def connection(self) -> Any:
        return self._conn

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_prepared(self, sql: str, params: DriverParams) -> StatementHandle:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, params)
            rows = None
            if cursor.description is not None:
                rows = rows_from_cursor(cursor.description, cursor.fetchall())
            handle = StatementHandle(
                sql=sql,
                rows=rows,
                rowcount=cursor.rowcount,
                lastrowid=getattr(cursor, "lastrowid", None),
            )
            if not self._in_transaction:
                self._conn.commit()
        except self._error_types as exc:
            if not self._in_transaction:
                self._discard_implicit_transaction()
            raise ExecutionError(
                str(exc), sql=sql, binding_names=binding_names_of(params)
            ) from exc
        finally:
            cursor.close()
        self._last = handle
        return handle

    def fetch_all(self, handle: StatementHandle) -> list[dict[str, Any]]:
        return list(handle.rows or [])

    def fetch_one(self, handle: StatementHandle) -> dict[str, Any] | None:
        return handle.rows[0] if handle.rows else None

    def affected_row_count(self, handle: StatementHandle) -> int:
        return max(handle.rowcount, 0)

    def last_insert_id(self) -> Any:
        return self._last.lastrowid if self._last is not None else None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin_transaction(self) -> None:
        # DB-API drivers open the transaction implicitly with the next
        # statement; only the per-statement commit has to stop.
        self._in_transaction = True

    def commit(self) -> None:
        # a failed commit leaves the transaction open for rollback()
        try:
            self._conn.commit()
        except self._error_types as exc:
            raise ExecutionError(f"Commit failed: {exc}") from exc
        self._in_transaction = False

    def rollback(self) -> None:
        try:
            self._conn.rollback()
        except self._error_types as exc:
            raise ExecutionError(f"Rollback failed: {exc}") from exc
        finally:
            self._in_transaction = False

    def _discard_implicit_transaction(self) -> None:
        """Roll back whatever the failed autocommitted statement left open."""
        try:
            self._conn.rollback()
        except self._error_types as exc:
            logger.warning("Rollback after failed statement also failed: %s", exc)
