"""Execution layer: submit compiled statements and shape their results.

``StatementRunner`` is the only place where a
:class:`~chainql.compile.base.CompiledSQL` meets the executor.  It logs
every statement at DEBUG level (SQL text, and binding names when enabled;
never values) and converts executor handles into the shapes terminal
operations return.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from chainql.compile.base import CompiledSQL
from chainql.errors import ExecutionError
from chainql.execute.base import Executor, RawResult, binding_names_of
from chainql.schema.expressions import AGGREGATE_ALIAS
from chainql.settings import ChainQLSettings

logger = logging.getLogger(__name__)


class StatementRunner:
    """Runs compiled statements through an executor.

    Args:
        executor: The executor capability; ``None`` for compile-only use.
        settings: Shared settings (controls binding-name logging).
    """

    def __init__(self, executor: Executor | None, settings: ChainQLSettings) -> None:
        self._executor = executor
        self._settings = settings

    @property
    def executor(self) -> Executor | None:
        return self._executor

    # ------------------------------------------------------------------
    # Result shapes
    # ------------------------------------------------------------------

    def rows(self, compiled: CompiledSQL) -> list[dict[str, Any]]:
        """Every row; an empty list when there are none."""
        executor = self._require()
        return list(executor.fetch_all(self._execute(executor, compiled)))

    def row(self, compiled: CompiledSQL) -> dict[str, Any] | None:
        """The first row, or ``None``."""
        executor = self._require()
        return executor.fetch_one(self._execute(executor, compiled))

    def scalar(self, compiled: CompiledSQL, key: str = AGGREGATE_ALIAS) -> Any:
        """Column ``key`` of the first row (``None`` when there is no row)."""
        row = self.row(compiled)
        if row is None:
            return None
        if key in row:
            return row[key]
        # some drivers fold alias case
        for name, value in row.items():
            if name.lower() == key.lower():
                return value
        return next(iter(row.values()), None)

    def affected(self, compiled: CompiledSQL) -> int:
        """Number of rows changed by the statement."""
        executor = self._require()
        return int(executor.affected_row_count(self._execute(executor, compiled)))

    def insert(self, compiled: CompiledSQL) -> Any:
        """Run an INSERT and return the generated key.

        Dialects that return the key as a row (``RETURNING`` /
        ``OUTPUT INSERTED``) are read from that row; the rest ask the
        executor for the driver's last insert id.
        """
        executor = self._require()
        handle = self._execute(executor, compiled)
        if compiled.returns_rows:
            row = executor.fetch_one(handle)
            return next(iter(row.values()), None) if row else None
        return executor.last_insert_id()

    def raw(self, sql: str, bindings: Mapping[str, Any] | Sequence[Any] | None = None) -> RawResult:
        """Run caller-written SQL as-is."""
        executor = self._require()
        if bindings is None:
            params: Mapping[str, Any] | Sequence[Any] = ()
        elif isinstance(bindings, Mapping):
            params = dict(bindings)
        else:
            params = tuple(bindings)
        self._log(sql, binding_names_of(params))
        handle = executor.execute_prepared(sql, params)
        return RawResult(
            rows=list(executor.fetch_all(handle)),
            rowcount=int(executor.affected_row_count(handle)),
            lastrowid=executor.last_insert_id(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(self, executor: Executor, compiled: CompiledSQL) -> Any:
        self._log(compiled.sql, compiled.binding_names)
        return executor.execute_prepared(compiled.sql, compiled.driver_params())

    def _log(self, sql: str, names: list[str]) -> None:
        if self._settings.log_bindings:
            logger.debug("Executing %s with bindings %s", sql, names)
        else:
            logger.debug("Executing %s", sql)

    def _require(self) -> Executor:
        if self._executor is None:
            raise ExecutionError("No executor configured; only compilation is available.")
        return self._executor
