"""Transaction wrapper: a small state machine over the executor.

``IDLE → ACTIVE → {COMMITTED | ROLLED_BACK}``.  Once a transaction has
ended, ``begin()`` may start the next one.  Nested transactions are not
supported, and nothing is rolled back automatically: the caller's
failure path has to call :meth:`Transaction.rollback` (or use
:meth:`chainql.database.Database.transaction`, which does it for them).
"""
from __future__ import annotations

import logging
from enum import Enum

from chainql.errors import ExecutionError, TransactionStateError
from chainql.execute.base import Executor

logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """Tracks the one transaction allowed on a borrowed connection.

    Args:
        executor: The executor whose connection the transaction runs on.
    """

    def __init__(self, executor: Executor | None) -> None:
        self._executor = executor
        self._state = TransactionState.IDLE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    def begin(self) -> None:
        """Start a transaction.

        Raises:
            TransactionStateError: If a transaction is already active.
            ExecutionError: If there is no executor or the driver refuses.
        """
        if self.active:
            raise TransactionStateError("begin", self._state.value)
        self._require_executor().begin_transaction()
        self._state = TransactionState.ACTIVE
        logger.info("Transaction started")

    def commit(self) -> None:
        """Commit the active transaction.

        If the executor fails to commit, the transaction stays ACTIVE and
        the executor keeps it open, so :meth:`rollback` still undoes it.

        Raises:
            TransactionStateError: If no transaction is active.
            ExecutionError: If the driver rejects the commit.
        """
        if not self.active:
            raise TransactionStateError("commit", self._state.value)
        self._require_executor().commit()
        self._state = TransactionState.COMMITTED
        logger.info("Transaction committed")

    def rollback(self) -> None:
        """Roll back the active transaction.

        Raises:
            TransactionStateError: If no transaction is active.
        """
        if not self.active:
            raise TransactionStateError("rollback", self._state.value)
        try:
            self._require_executor().rollback()
        finally:
            self._state = TransactionState.ROLLED_BACK
        logger.info("Transaction rolled back")

    def _require_executor(self) -> Executor:
        if self._executor is None:
            raise ExecutionError("No executor configured; cannot control transactions.")
        return self._executor
