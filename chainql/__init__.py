"""chainql: fluent, parameterized SQL for DB-API connections.

Chain it. Bind it. Run it.

Public API
----------
``Database``
    Wraps one borrowed connection (through an executor) and hands out
    query builders::

        db = Database(DBAPIExecutor(sqlite3.connect("app.db")))
        db.table("users").where("status", "active").order_by("name").get()

``QueryBuilder``
    The chainable builder returned by ``Database.table``.  Every literal
    value becomes a named binding; the SQL text only ever contains
    identifiers, whitelisted keywords and placeholders.

Re-exported types
-----------------
``CompiledSQL``, ``ChainQLSettings``, the executors, the transaction state
enum and all error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from chainql.compile.registry import CompilerFactory

    @CompilerFactory.register("oracle")
    class OracleCompiler(SQLCompiler):
        ...

After registration, ``Database(executor, dialect="oracle")`` picks it up.
"""

from __future__ import annotations

from chainql.compile.base import CompiledSQL, SQLCompiler
from chainql.compile.mysql import MySQLCompiler
from chainql.compile.postgres import PostgresCompiler
from chainql.compile.registry import CompilerFactory
from chainql.compile.sqlite import SQLiteCompiler
from chainql.compile.sqlserver import SQLServerCompiler
from chainql.database import Database
from chainql.errors import (
    BindingCountError,
    ChainQLError,
    CompilationError,
    EmptySetClauseWarning,
    ExecutionError,
    InvalidOperatorError,
    MissingTableError,
    TransactionStateError,
    UnconditionalMutationError,
)
from chainql.execute.base import Executor, RawResult
from chainql.execute.dbapi import DBAPIExecutor
from chainql.execute.transaction import TransactionState
from chainql.query.builder import QueryBuilder
from chainql.settings import ChainQLSettings

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("sqlite", SQLiteCompiler, "sqlite3")
CompilerFactory.register_class("postgres", PostgresCompiler, "postgresql")
CompilerFactory.register_class("mysql", MySQLCompiler, "mariadb")
CompilerFactory.register_class("sqlserver", SQLServerCompiler, "mssql")

__all__ = [
    # Entry points
    "Database",
    "QueryBuilder",
    "ChainQLSettings",
    # Execution
    "Executor",
    "DBAPIExecutor",
    "RawResult",
    "TransactionState",
    # Compilation
    "CompiledSQL",
    "SQLCompiler",
    "CompilerFactory",
    "SQLiteCompiler",
    "PostgresCompiler",
    "MySQLCompiler",
    "SQLServerCompiler",
    # Errors
    "ChainQLError",
    "InvalidOperatorError",
    "MissingTableError",
    "TransactionStateError",
    "CompilationError",
    "BindingCountError",
    "UnconditionalMutationError",
    "ExecutionError",
    "EmptySetClauseWarning",
]
