"""Executor backed by a SQLAlchemy connection.

Install the optional dependency before using this module::

    pip install "chainql[sqlalchemy]"

Statements are sent with :meth:`sqlalchemy.engine.Connection.exec_driver_sql`,
so the compiled SQL reaches the DBAPI driver untouched.  Choose the
``Database`` dialect matching the engine's driver paramstyle, exactly as
with :class:`~chainql.execute.dbapi.DBAPIExecutor`.

Example::

    from sqlalchemy import create_engine
    from chainql import Database
    from chainql.execute.sqla import SQLAlchemyExecutor

    engine = create_engine("sqlite:///app.db")
    db = Database(SQLAlchemyExecutor(engine), dialect="sqlite")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from chainql.errors import ExecutionError
from chainql.execute.base import DriverParams, StatementHandle, binding_names_of

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine


class SQLAlchemyExecutor:
    """Runs compiled statements on one SQLAlchemy :class:`Connection`.

    Args:
        bind: An :class:`~sqlalchemy.engine.Engine` (a connection is
            checked out and owned by the executor) or an existing
            :class:`~sqlalchemy.engine.Connection`.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """

    def __init__(self, bind: Engine | Connection) -> None:
        try:
            from sqlalchemy.engine import Engine as _Engine
            from sqlalchemy.exc import SQLAlchemyError
        except ImportError as exc:
            raise ImportError(
                "SQLAlchemy is required for SQLAlchemyExecutor. "
                'Install it with: pip install "chainql[sqlalchemy]"'
            ) from exc

        self._error = SQLAlchemyError
        self._owns_connection = isinstance(bind, _Engine)
        self._conn: Connection = bind.connect() if self._owns_connection else bind
        self._txn: Any = None
        self._last: StatementHandle | None = None

    @property
    def connection(self) -> Connection:
        return self._conn

    def close(self) -> None:
        """Close the connection if this executor opened it."""
        if self._owns_connection:
            self._conn.close()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_prepared(self, sql: str, params: DriverParams) -> StatementHandle:
        driver_params = params if isinstance(params, dict) else tuple(params)
        try:
            result = self._conn.exec_driver_sql(sql, driver_params)
            rows = None
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings().all()]
            handle = StatementHandle(
                sql=sql,
                rows=rows,
                rowcount=result.rowcount,
                lastrowid=None if rows is not None else result.lastrowid,
            )
            if self._txn is None:
                self._conn.commit()
        except self._error as exc:
            if self._txn is None:
                self._conn.rollback()
            message = str(getattr(exc, "orig", None) or exc)
            raise ExecutionError(
                message, sql=sql, binding_names=binding_names_of(params)
            ) from exc
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
        try:
            self._txn = self._conn.begin()
        except self._error as exc:
            raise ExecutionError(f"Could not begin transaction: {exc}") from exc

    def commit(self) -> None:
        if self._txn is None:
            return
        # a failed commit leaves the transaction open for rollback()
        try:
            self._txn.commit()
        except self._error as exc:
            raise ExecutionError(f"Commit failed: {exc}") from exc
        self._txn = None

    def rollback(self) -> None:
        txn, self._txn = self._txn, None
        if txn is None:
            return
        try:
            txn.rollback()
        except self._error as exc:
            raise ExecutionError(f"Rollback failed: {exc}") from exc
