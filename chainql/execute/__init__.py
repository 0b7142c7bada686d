"""chainql execution layer: executors, statement runner and transactions.

``SQLAlchemyExecutor`` lives in :mod:`chainql.execute.sqla` and is not
imported here, so SQLAlchemy stays optional.
"""
from chainql.execute.base import Executor, RawResult, StatementHandle
from chainql.execute.dbapi import DBAPIExecutor
from chainql.execute.runner import StatementRunner
from chainql.execute.transaction import Transaction, TransactionState

__all__ = [
    "DBAPIExecutor",
    "Executor",
    "RawResult",
    "StatementHandle",
    "StatementRunner",
    "Transaction",
    "TransactionState",
]
