"""Shared pytest fixtures for chainql unit and integration tests."""
from __future__ import annotations

import os
import sqlite3
from collections.abc import Iterator

import pytest

from chainql import ChainQLSettings, Database, DBAPIExecutor
from tests.fixtures import seed


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CHAINQL_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("CHAINQL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def settings() -> ChainQLSettings:
    return ChainQLSettings(_env_file=None)


@pytest.fixture()
def conn() -> Iterator[sqlite3.Connection]:
    connection = sqlite3.connect(":memory:")
    seed(connection)
    yield connection
    connection.close()


@pytest.fixture()
def db(conn: sqlite3.Connection, settings: ChainQLSettings) -> Database:
    """Database over a seeded in-memory SQLite connection."""
    return Database(DBAPIExecutor(conn), settings=settings)
