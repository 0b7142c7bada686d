"""Unit tests for the transaction state machine."""

from __future__ import annotations

import pytest

from chainql import ChainQLSettings, Database, TransactionState
from chainql.errors import ExecutionError, TransactionStateError
from chainql.execute.transaction import Transaction
from tests.fixtures import RecordingExecutor


def _db(executor: RecordingExecutor) -> Database:
    return Database(executor, settings=ChainQLSettings(_env_file=None))


def test_begin_commit():
    ex = RecordingExecutor()
    txn = Transaction(ex)
    assert txn.state is TransactionState.IDLE
    txn.begin()
    assert txn.active
    txn.commit()
    assert txn.state is TransactionState.COMMITTED
    assert ex.calls == ["begin", "commit"]


def test_begin_rollback_then_begin_again():
    ex = RecordingExecutor()
    txn = Transaction(ex)
    txn.begin()
    txn.rollback()
    assert txn.state is TransactionState.ROLLED_BACK
    txn.begin()
    assert txn.state is TransactionState.ACTIVE
    assert ex.calls == ["begin", "rollback", "begin"]


def test_nested_begin_is_rejected():
    txn = Transaction(RecordingExecutor())
    txn.begin()
    with pytest.raises(TransactionStateError) as info:
        txn.begin()
    assert info.value.action == "begin"
    assert info.value.state == "active"


@pytest.mark.parametrize("action", ["commit", "rollback"])
def test_end_without_begin(action):
    ex = RecordingExecutor()
    txn = Transaction(ex)
    with pytest.raises(TransactionStateError):
        getattr(txn, action)()
    assert ex.calls == []


def test_commit_after_commit():
    txn = Transaction(RecordingExecutor())
    txn.begin()
    txn.commit()
    with pytest.raises(TransactionStateError):
        txn.commit()


def test_no_executor():
    with pytest.raises(ExecutionError):
        Transaction(None).begin()


def test_rollback_failure_still_ends_transaction():
    class FailingRollback(RecordingExecutor):
        def rollback(self) -> None:
            raise ExecutionError("connection lost")

    txn = Transaction(FailingRollback())
    txn.begin()
    with pytest.raises(ExecutionError):
        txn.rollback()
    assert txn.state is TransactionState.ROLLED_BACK


class FailingCommit(RecordingExecutor):
    def commit(self) -> None:
        self.calls.append("commit-failed")
        raise ExecutionError("Commit failed: disk I/O error")


def test_commit_failure_keeps_transaction_active():
    ex = FailingCommit()
    txn = Transaction(ex)
    txn.begin()
    with pytest.raises(ExecutionError):
        txn.commit()
    assert txn.state is TransactionState.ACTIVE
    txn.rollback()
    assert txn.state is TransactionState.ROLLED_BACK
    assert ex.calls == ["begin", "commit-failed", "rollback"]


def test_context_manager_rolls_back_when_commit_fails():
    ex = FailingCommit()
    db = _db(ex)
    with pytest.raises(ExecutionError):
        with db.transaction():
            db.table("users").where("id", 1).update({"name": "Ada"})
    assert ex.calls == ["begin", "commit-failed", "rollback"]
    assert db.transaction_state is TransactionState.ROLLED_BACK


def test_builder_delegates_to_database():
    ex = RecordingExecutor()
    db = _db(ex)
    q = db.table("users").begin_transaction()
    assert db.transaction_state is TransactionState.ACTIVE
    q.where("id", 1).update({"name": "Ada"})
    q.commit()
    assert db.transaction_state is TransactionState.COMMITTED
    assert ex.calls == ["begin", "commit"]


def test_context_manager_commits():
    ex = RecordingExecutor()
    db = _db(ex)
    with db.transaction() as tx_db:
        assert tx_db is db
        db.table("users").insert({"name": "Ada"})
    assert ex.calls == ["begin", "commit"]
    assert db.transaction_state is TransactionState.COMMITTED


def test_context_manager_rolls_back_and_reraises():
    ex = RecordingExecutor()
    db = _db(ex)
    with pytest.raises(RuntimeError):
        with db.transaction():
            raise RuntimeError("boom")
    assert ex.calls == ["begin", "rollback"]
    assert db.transaction_state is TransactionState.ROLLED_BACK


def test_context_manager_respects_manual_commit():
    ex = RecordingExecutor()
    db = _db(ex)
    with db.transaction():
        db.commit()
    assert ex.calls == ["begin", "commit"]


def test_transitions_are_logged(caplog):
    with caplog.at_level("INFO", logger="chainql.execute.transaction"):
        txn = Transaction(RecordingExecutor())
        txn.begin()
        txn.rollback()
    assert "Transaction started" in caplog.text
    assert "Transaction rolled back" in caplog.text
