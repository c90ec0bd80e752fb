"""
Local story cache
=================

``StoryDatabase`` owns one SQLite connection, the asyncio lock guarding it and
the repositories built on top. Construct it once and pass it down::

    database = StoryDatabase.open("data/story.db")
    ...
    await database.close()

Modules
-------
``db``
    Connection bootstrap, schema migration and the explicit transaction helper.
``repositories``
    Async, lock-guarded readers (:class:`StoriesRepo`, :class:`RemoteKeysRepo`)
    and the atomic page merges (:class:`PagesRepo`).
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Optional, Sequence

from storyline.errors import StorageError
from storyline.models import RemoteKey, Story

from . import db
from .repositories import PagesRepo, RemoteKeysRepo, StoriesRepo

logger = logging.getLogger(__name__)


class StoryDatabase:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.lock = asyncio.Lock()
        self.stories = StoriesRepo(conn, self.lock)
        self.remote_keys = RemoteKeysRepo(conn, self.lock)
        self.pages = PagesRepo(conn, self.lock)

    @classmethod
    def open(cls, path: Optional[str] = None) -> "StoryDatabase":
        try:
            conn = db.connect(path)
            db.migrate(conn)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open story database: {exc}") from exc
        logger.info("Opened story database at %s", path or db.db_path())
        return cls(conn)

    async def replace_all(self, list_id: str, stories: Sequence[Story], key: RemoteKey) -> None:
        await self.pages.replace_all(list_id, stories, key)

    async def insert_page(
        self, list_id: str, stories: Sequence[Story], key: RemoteKey, *, prepend: bool = False
    ) -> None:
        await self.pages.insert_page(list_id, stories, key, prepend=prepend)

    async def close(self) -> None:
        async with self.lock:
            try:
                db.wal_checkpoint_truncate(self.conn)
            except sqlite3.Error as exc:
                logger.warning("WAL checkpoint on close failed: %s", exc)
            self.conn.close()


__all__ = ["StoryDatabase", "StoriesRepo", "RemoteKeysRepo", "PagesRepo"]
