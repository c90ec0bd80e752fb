"""
Repositories (SQL-only)
=======================
- No network logic here; pure selects and transactional page merges.
- Every call runs in a worker thread while holding the shared asyncio lock,
  so readers observe either the pre-merge or the post-merge state. A
  cancelled caller keeps the lock until its worker thread has returned.
- ``sqlite3.Error`` is re-raised as :class:`~storyline.errors.StorageError`.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Callable, Optional, Sequence, TypeVar

from storyline.errors import StorageError
from storyline.models import RemoteKey, Story

from . import db

logger = logging.getLogger(__name__)

R = TypeVar("R")

_STORY_COLUMNS = "id, name, description, photo_url, created_at, lat, lon"


async def _locked(lock: asyncio.Lock, fn: Callable[[], R], what: str) -> R:
    async with lock:
        work = asyncio.ensure_future(asyncio.to_thread(fn))
        try:
            return await asyncio.shield(work)
        except asyncio.CancelledError:
            # The worker thread still holds the connection; keep the lock until it returns.
            await asyncio.wait([work])
            if not work.cancelled():
                work.exception()
            raise
        except sqlite3.Error as exc:
            logger.error("Store %s failed: %s", what, exc)
            raise StorageError(f"{what} failed: {exc}") from exc


class StoriesRepo:
    def __init__(self, conn: sqlite3.Connection, lock: asyncio.Lock):
        self.conn = conn
        self._lock = lock

    async def count(self) -> int:
        def _query() -> int:
            return int(self.conn.execute("SELECT COUNT(*) FROM stories").fetchone()[0])

        return await _locked(self._lock, _query, "count stories")

    async def window(self, offset: int, limit: int) -> list[Story]:
        """Return up to ``limit`` stories starting at display index ``offset``."""
        if limit <= 0:
            return []
        sql = f"""
            SELECT {_STORY_COLUMNS} FROM stories
            ORDER BY position ASC LIMIT ? OFFSET ?
        """

        def _query() -> list[Story]:
            rows = self.conn.execute(sql, (limit, max(offset, 0))).fetchall()
            return [Story.from_row(r) for r in rows]

        return await _locked(self._lock, _query, "read story window")

    async def all(self) -> list[Story]:
        sql = f"SELECT {_STORY_COLUMNS} FROM stories ORDER BY position ASC"

        def _query() -> list[Story]:
            return [Story.from_row(r) for r in self.conn.execute(sql).fetchall()]

        return await _locked(self._lock, _query, "read stories")

    async def get(self, story_id: str) -> Optional[Story]:
        sql = f"SELECT {_STORY_COLUMNS} FROM stories WHERE id=?"

        def _query() -> Optional[Story]:
            row = self.conn.execute(sql, (story_id,)).fetchone()
            return Story.from_row(row) if row else None

        return await _locked(self._lock, _query, "read story")


class RemoteKeysRepo:
    def __init__(self, conn: sqlite3.Connection, lock: asyncio.Lock):
        self.conn = conn
        self._lock = lock

    async def get(self, list_id: str) -> Optional[RemoteKey]:
        def _query() -> Optional[RemoteKey]:
            row = self.conn.execute(
                "SELECT previous_page, next_page, top_page FROM remote_keys WHERE list_id=?",
                (list_id,),
            ).fetchone()
            if row is None:
                return None
            return RemoteKey(
                previous_page=row["previous_page"],
                next_page=row["next_page"],
                top_page=row["top_page"],
            )

        return await _locked(self._lock, _query, "read remote key")


class PagesRepo:
    """Atomic page merges touching both ``stories`` and ``remote_keys``."""

    _UPSERT_STORY = f"""
        INSERT INTO stories ({_STORY_COLUMNS}, position)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
          name=excluded.name,
          description=excluded.description,
          photo_url=excluded.photo_url,
          created_at=excluded.created_at,
          lat=excluded.lat,
          lon=excluded.lon
    """
    _UPSERT_KEY = """
        INSERT INTO remote_keys (list_id, previous_page, next_page, top_page)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(list_id) DO UPDATE SET
          previous_page=excluded.previous_page,
          next_page=excluded.next_page,
          top_page=excluded.top_page
    """

    def __init__(self, conn: sqlite3.Connection, lock: asyncio.Lock):
        self.conn = conn
        self._lock = lock

    def _write_stories(self, stories: Sequence[Story], start: int) -> None:
        # Existing ids keep their position; only their content is overwritten.
        self.conn.executemany(
            self._UPSERT_STORY,
            [story.to_row() + (start + i,) for i, story in enumerate(stories)],
        )

    def _write_key(self, list_id: str, key: RemoteKey) -> None:
        self.conn.execute(
            self._UPSERT_KEY, (list_id, key.previous_page, key.next_page, key.top_page)
        )

    async def replace_all(self, list_id: str, stories: Sequence[Story], key: RemoteKey) -> None:
        """Clear stories and remote key, then insert ``stories`` and ``key``."""

        def _run() -> None:
            with db.transaction(self.conn):
                self.conn.execute("DELETE FROM stories")
                self.conn.execute("DELETE FROM remote_keys WHERE list_id=?", (list_id,))
                self._write_stories(stories, 0)
                self._write_key(list_id, key)

        await _locked(self._lock, _run, "replace cached pages")

    async def insert_page(
        self,
        list_id: str,
        stories: Sequence[Story],
        key: RemoteKey,
        *,
        prepend: bool = False,
    ) -> None:
        """Add ``stories`` after (or before) the cached rows and upsert ``key``."""

        def _run() -> None:
            with db.transaction(self.conn):
                if prepend:
                    low = self.conn.execute("SELECT MIN(position) FROM stories").fetchone()[0]
                    start = (low if low is not None else 0) - len(stories)
                else:
                    high = self.conn.execute("SELECT MAX(position) FROM stories").fetchone()[0]
                    start = high + 1 if high is not None else 0
                self._write_stories(stories, start)
                self._write_key(list_id, key)

        await _locked(self._lock, _run, "insert page")
