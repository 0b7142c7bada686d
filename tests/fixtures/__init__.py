"""Test fixtures: sample blog schema DDL and seed rows."""

from __future__ import annotations

import sqlite3
from typing import Any

DDL_SQLITE = """
CREATE TABLE users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL UNIQUE,
    name        TEXT,
    status      TEXT NOT NULL DEFAULT 'active',
    role        TEXT NOT NULL DEFAULT 'user',
    age         INTEGER,
    login_count INTEGER NOT NULL DEFAULT 0,
    deleted_at  TEXT
);

CREATE TABLE posts (
    id      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id),
    title   TEXT NOT NULL,
    slug    TEXT NOT NULL UNIQUE,
    status  TEXT NOT NULL DEFAULT 'draft',
    views   INTEGER NOT NULL DEFAULT 0
);
"""

USERS: list[tuple[Any, ...]] = [
    (1, "ada@example.com", "Ada", "active", "admin", 36, 5, None),
    (2, "grace@example.com", "Grace", "active", "user", 45, 3, None),
    (3, "linus@example.com", "Linus", "inactive", "user", 28, 0, None),
    (4, "alan@example.com", "Alan", "banned", "user", 41, 1, "2025-01-01"),
]

POSTS: list[tuple[Any, ...]] = [
    (1, 1, "Hello", "hello", "published", 10),
    (2, 1, "Draft notes", "draft-notes", "draft", 0),
    (3, 2, "Compilers", "compilers", "published", 25),
    (4, 3, "Kernels", "kernels", "archived", 7),
]


def load_ddl() -> str:
    """Return the sample DDL for SQLite."""
    return DDL_SQLITE


def seed(conn: sqlite3.Connection) -> None:
    """Create the sample tables on ``conn`` and insert the seed rows."""
    conn.executescript(load_ddl())
    conn.executemany("INSERT INTO users VALUES (?,?,?,?,?,?,?,?)", USERS)
    conn.executemany("INSERT INTO posts VALUES (?,?,?,?,?,?)", POSTS)
    conn.commit()


class RecordingExecutor:
    """In-memory executor that records statements instead of running them.

    ``rows`` is returned for every statement, ``rowcount`` as the affected
    count and ``lastrowid`` as the insert id.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        rowcount: int = 1,
        lastrowid: Any = 42,
    ) -> None:
        self.rows = rows if rows is not None else []
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.statements: list[tuple[str, Any]] = []
        self.calls: list[str] = []

    @property
    def last_sql(self) -> str:
        return self.statements[-1][0]

    @property
    def last_params(self) -> Any:
        return self.statements[-1][1]

    def execute_prepared(self, sql: str, params: Any) -> int:
        self.statements.append((sql, params))
        return len(self.statements) - 1

    def fetch_all(self, handle: int) -> list[dict[str, Any]]:
        return list(self.rows)

    def fetch_one(self, handle: int) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def affected_row_count(self, handle: int) -> int:
        return self.rowcount

    def last_insert_id(self) -> Any:
        return self.lastrowid

    def begin_transaction(self) -> None:
        self.calls.append("begin")

    def commit(self) -> None:
        self.calls.append("commit")

    def rollback(self) -> None:
        self.calls.append("rollback")
