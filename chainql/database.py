"""Entry point: one ``Database`` per borrowed connection.

A ``Database`` binds together the pieces every builder needs (settings,
the dialect compiler, the statement runner and the transaction wrapper)
and hands out fresh :class:`~chainql.query.builder.QueryBuilder`
instances::

    import sqlite3
    from chainql import Database, DBAPIExecutor

    db = Database(DBAPIExecutor(sqlite3.connect(":memory:")))

    with db.transaction():
        user_id = db.table("users").insert({"name": "Ada"})
        db.table("posts").insert({"user_id": user_id, "title": "Hello"})

Pass no executor to use chainql as a pure SQL compiler; every terminal
operation that needs the database then raises
:class:`~chainql.errors.ExecutionError`.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from chainql.compile.builder import StatementBuilder
from chainql.compile.registry import CompilerFactory
from chainql.execute.base import Executor, RawResult
from chainql.execute.runner import StatementRunner
from chainql.execute.transaction import Transaction, TransactionState
from chainql.query.builder import QueryBuilder
from chainql.settings import ChainQLSettings

logger = logging.getLogger(__name__)


class Database:
    """Factory for query builders sharing one executor and one dialect.

    Args:
        executor: Anything implementing :class:`~chainql.execute.base.Executor`,
            or ``None`` for compile-only use.
        settings: Explicit settings; read from the environment when omitted.
        dialect: Shortcut overriding ``settings.dialect``.

    Raises:
        CompilationError: If the dialect has no registered compiler.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        *,
        settings: ChainQLSettings | None = None,
        dialect: str | None = None,
    ) -> None:
        settings = settings or ChainQLSettings()
        if dialect is not None:
            settings = settings.model_copy(update={"dialect": dialect.strip().lower()})
        self._settings = settings
        self._executor = executor
        self._statements = StatementBuilder(CompilerFactory.create(settings.dialect))
        self._runner = StatementRunner(executor, settings)
        self._transaction = Transaction(executor)
        logger.debug("Database ready (dialect=%s)", settings.dialect)

    @property
    def settings(self) -> ChainQLSettings:
        return self._settings

    @property
    def dialect(self) -> str:
        return self._statements.compiler.dialect_name

    @property
    def executor(self) -> Executor | None:
        return self._executor

    @property
    def statements(self) -> StatementBuilder:
        return self._statements

    @property
    def runner(self) -> StatementRunner:
        return self._runner

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def table(self, name: str) -> QueryBuilder:
        """Start a query on ``name``."""
        return QueryBuilder(self).table(name)

    def query(self) -> QueryBuilder:
        """An empty builder; call :meth:`QueryBuilder.table` before running it."""
        return QueryBuilder(self)

    def raw(
        self,
        sql: str,
        bindings: Mapping[str, Any] | Sequence[Any] | None = None,
    ) -> RawResult:
        """Run caller-written SQL, in the driver's own paramstyle, unchanged."""
        return self._runner.raw(sql, bindings)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def transaction_state(self) -> TransactionState:
        return self._transaction.state

    def begin_transaction(self) -> None:
        self._transaction.begin()

    def commit(self) -> None:
        self._transaction.commit()

    def rollback(self) -> None:
        self._transaction.rollback()

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Run the block in a transaction.

        Commits when the block finishes. Rolls back and re-raises when the
        block or the commit raises.
        """
        self.begin_transaction()
        try:
            yield self
            if self._transaction.active:
                self.commit()
        except BaseException:
            if self._transaction.active:
                self.rollback()
            raise

    def __repr__(self) -> str:
        return f"<Database dialect={self.dialect!r} transaction={self.transaction_state.value!r}>"
