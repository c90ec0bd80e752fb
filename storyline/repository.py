"""
Repository facade
=================

``StoryRepository`` is the one object an application needs: it wires the
story API, the session store and the local story cache together. Build it
once at startup and pass it to whatever needs it::

    async with StoryApi() as api:
        repo = StoryRepository(api, SessionStore(), StoryDatabase.open())
        result = await resolve(repo.login("a@b.com", "secret"))

One-shot operations (``register``, ``login``, ``post_story``,
``get_locations``) are async generators of :class:`~storyline.result.Result`:
``loading`` first, then exactly one ``success`` or ``error``. They never
raise; dropping the generator (or cancelling the consuming task) abandons the
request with nothing written locally.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from storyline.clients.story_api import StoryApi
from storyline.errors import FALLBACK_MESSAGE, StorylineError, extract_error_message
from storyline.memory.session import SessionStore
from storyline.memory.store import StoryDatabase
from storyline.models import LoginResult, MessageResponse, Story, UserSession
from storyline.paging import PagingConfig, StoryPager, StoryRemoteMediator
from storyline.result import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoryRepository:
    def __init__(
        self,
        api: StoryApi,
        sessions: SessionStore,
        database: StoryDatabase,
        *,
        paging_config: PagingConfig | None = None,
    ) -> None:
        self.api = api
        self.sessions = sessions
        self.database = database
        self.paging_config = paging_config or PagingConfig()

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    async def save_session(self, user: UserSession) -> None:
        await self.sessions.save_session(user)

    def get_session(self) -> AsyncIterator[UserSession]:
        return self.sessions.get_session()

    async def logout(self) -> None:
        await self.sessions.logout()

    # ------------------------------------------------------------------ #
    # One-shot operations
    # ------------------------------------------------------------------ #

    async def _one_shot(self, op: str, call: Callable[[], Awaitable[T]]) -> AsyncIterator[Result[T]]:
        yield Result.loading()
        try:
            value = await call()
        except StorylineError as exc:
            logger.info("%s failed: %s", op, exc)
            yield Result.error(extract_error_message(exc))
            return
        except Exception:
            # Unexpected payload shapes still end as an error result.
            logger.exception("%s failed unexpectedly", op)
            yield Result.error(FALLBACK_MESSAGE)
            return
        yield Result.success(value)

    def register(self, name: str, email: str, password: str) -> AsyncIterator[Result[MessageResponse]]:
        return self._one_shot("register", lambda: self.api.register(name, email, password))

    def login(self, email: str, password: str) -> AsyncIterator[Result[LoginResult]]:
        return self._one_shot("login", lambda: self.api.login(email, password))

    def post_story(
        self,
        photo: bytes,
        filename: str,
        description: str,
        token: str,
        *,
        lat: float | None = None,
        lon: float | None = None,
    ) -> AsyncIterator[Result[MessageResponse]]:
        client = self.api.with_token(token)
        return self._one_shot(
            "postStory",
            lambda: client.upload_story(photo, filename, description, lat=lat, lon=lon),
        )

    def get_locations(self, token: str) -> AsyncIterator[Result[list[Story]]]:
        client = self.api.with_token(token)
        return self._one_shot("getLocations", client.fetch_all_with_location)

    # ------------------------------------------------------------------ #
    # Paged list
    # ------------------------------------------------------------------ #

    def get_stories(self, token: str) -> StoryPager:
        """Return a pager over the cached story list, fetching as ``token``."""
        mediator = StoryRemoteMediator(
            self.database,
            self.api.with_token(token),
            page_size=self.paging_config.page_size,
            first_page=self.paging_config.first_page,
        )
        return StoryPager(self.database, mediator, self.paging_config)


__all__ = ["StoryRepository"]
