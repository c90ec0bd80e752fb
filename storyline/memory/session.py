"""
Durable single-record session storage.

The logged-in user is persisted as one JSON document::

    {"user_id": str, "name": str, "token": str, "is_login": bool}

Writes go to a ``.tmp`` sibling and are moved into place with
:func:`os.replace`, so a reader never sees a half-written record. The store
also keeps a :class:`~storyline.flow.StateFlow` so observers can follow the
session through :meth:`SessionStore.get_session` without polling the file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from storyline.config import session as session_cfg
from storyline.flow import StateFlow
from storyline.models import UserSession

logger = logging.getLogger(__name__)


def _read(path: Path) -> UserSession:
    if not path.exists():
        return UserSession.empty()
    try:
        with path.open("r", encoding="utf-8") as f:
            return UserSession.from_dict(json.load(f))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable session file %s: %s", path, exc)
        return UserSession.empty()


def _write(path: Path, user: UserSession) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(user.to_dict(), f)
    os.replace(tmp, path)


class SessionStore:
    """Singleton session record keyed by its file path."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or session_cfg.SESSION_FILE)
        self._lock = asyncio.Lock()
        self._flow: StateFlow[UserSession] = StateFlow(_read(self.path))

    async def save_session(self, user: UserSession) -> None:
        async with self._lock:
            await asyncio.to_thread(_write, self.path, user)
            self._flow.set(user)
        logger.info("Saved session for user %s", user.user_id or "<anonymous>")

    def get_session(self) -> AsyncIterator[UserSession]:
        """Yield the current session, then every change until the caller stops."""
        return self._flow.subscribe()

    def current(self) -> UserSession:
        return self._flow.value

    async def logout(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self.path.unlink, True)
            self._flow.set(UserSession.empty())
        logger.info("Session cleared")


__all__ = ["SessionStore"]
