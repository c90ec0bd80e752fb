"""
SQLite bootstrap and connection helpers
=======================================

- Default path comes from ``storyline.config.paging.DB_PATH``.
- WAL + pragmatic PRAGMAs for decent concurrent read perf.
- :func:`transaction` gives an explicit all-or-nothing block; the connection
  itself runs in autocommit mode.
"""

from __future__ import annotations

import contextlib
import pathlib
import sqlite3
from typing import Iterator, Optional

from storyline.config import paging


def db_path() -> str:
    return paging.DB_PATH


def connect(path: Optional[str] = None) -> sqlite3.Connection:
    target = path or db_path()
    if target != ":memory:":
        pathlib.Path(target).parent.mkdir(parents=True, exist_ok=True)

    # Autocommit; writers open explicit transactions via `transaction()`.
    conn = sqlite3.connect(
        target,
        isolation_level=None,
        check_same_thread=False,
    )

    # Pragmas: order matters a bit; set WAL first, then tuning.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    # Reduce SQLITE_BUSY errors under contention
    conn.execute("PRAGMA busy_timeout=3000;")    # 3s

    # dict-like rows
    conn.row_factory = sqlite3.Row

    return conn


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block as one transaction; roll back on any exception."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


def migrate(conn: sqlite3.Connection) -> None:
    """
    Execute schema.sql (idempotent). Every statement in schema.sql uses
    IF NOT EXISTS, so this is safe on every startup.
    """
    schema_file = pathlib.Path(__file__).with_name("schema.sql")
    sql = schema_file.read_text(encoding="utf-8")
    conn.executescript(sql)

    # Caches created before the prepend cursor existed.
    columns = {row["name"] for row in conn.execute("PRAGMA table_info(remote_keys)")}
    if "top_page" not in columns:
        conn.execute("ALTER TABLE remote_keys ADD COLUMN top_page INTEGER")


def wal_checkpoint_truncate(conn: sqlite3.Connection) -> None:
    """Run a WAL checkpoint + truncate to keep WAL from growing unbounded."""
    conn.execute("PRAGMA wal_checkpoint(TRUNCATE);")
