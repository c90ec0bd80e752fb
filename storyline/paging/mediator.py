"""
StoryRemoteMediator
===================
1. Input : a :class:`LoadType` from the pager (refresh / append / prepend).
2. Read the stored :class:`RemoteKey` and pick the target page
   a. refresh : ``key.next_page`` or the first page
   b. append  : ``key.next_page``; absent -> end reached, no request
   c. prepend : ``key.top_page``; absent -> end reached, no request
3. Fetch that page (exactly one request per load).
4. Merge in one transaction
   a. refresh : wipe stories + key, insert the page and a fresh key
   b. append / prepend : insert the page, upsert the key
      (append keeps ``top_page``, prepend keeps ``next_page``)
5. Return :class:`MediatorResult` telling the pager whether that edge is done.

NOTE: Failures never raise. Remote and storage errors come back as
``MediatorResult.failure`` and leave the cache exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from storyline.clients.story_api import StoryApi
from storyline.config import paging as paging_cfg
from storyline.errors import RemoteError, StorageError
from storyline.memory.store import StoryDatabase
from storyline.models import RemoteKey

from .types import LoadType, MediatorResult, PagingState

logger = logging.getLogger(__name__)

DEFAULT_LIST_ID = "stories"


class StoryRemoteMediator:
    def __init__(
        self,
        database: StoryDatabase,
        api: StoryApi,
        *,
        page_size: int | None = None,
        first_page: int | None = None,
        list_id: str = DEFAULT_LIST_ID,
    ) -> None:
        self.database = database
        self.api = api
        self.page_size = page_size or paging_cfg.PAGE_SIZE
        self.first_page = paging_cfg.FIRST_PAGE if first_page is None else first_page
        self.list_id = list_id
        # One load at a time; a refresh queues behind an in-flight append/prepend.
        self._lock = asyncio.Lock()

    async def initialize(self) -> bool:
        """Return ``True`` when the pager should launch an initial refresh."""
        return await self.database.stories.count() == 0

    def _target_page(self, load_type: LoadType, key: Optional[RemoteKey]) -> Optional[int]:
        if load_type is LoadType.REFRESH:
            if key is not None and key.next_page is not None:
                return key.next_page
            return self.first_page
        if key is None:
            return None
        if load_type is LoadType.APPEND:
            return key.next_page
        return key.top_page

    def _next_key(
        self, load_type: LoadType, page: int, short_page: bool, key: Optional[RemoteKey]
    ) -> RemoteKey:
        fresh = RemoteKey.for_page(page, first_page=self.first_page, end_reached=short_page)
        if key is None or load_type is LoadType.REFRESH:
            return fresh
        if load_type is LoadType.APPEND:
            return RemoteKey(fresh.previous_page, fresh.next_page, top_page=key.top_page)
        # Walking backwards never moves the forward cursor.
        return RemoteKey(fresh.previous_page, key.next_page, top_page=fresh.top_page)

    async def load(
        self, load_type: LoadType, state: PagingState | None = None
    ) -> MediatorResult:
        async with self._lock:
            return await self._load(load_type, state or PagingState())

    async def _load(self, load_type: LoadType, state: PagingState) -> MediatorResult:
        try:
            key = await self.database.remote_keys.get(self.list_id)
        except StorageError as exc:
            return MediatorResult.failure(exc)

        page = self._target_page(load_type, key)
        if page is None:
            logger.info(
                "%s skipped: end of pagination reached (%d cached)",
                load_type.value,
                state.loaded,
            )
            return MediatorResult.success(end_of_pagination_reached=True)

        logger.info("%s: fetching page %d (size %d)", load_type.value, page, self.page_size)
        try:
            stories = await self.api.fetch_page(page, self.page_size)
        except RemoteError as exc:
            logger.warning("%s of page %d failed: %s", load_type.value, page, exc)
            return MediatorResult.failure(exc)

        short_page = len(stories) < self.page_size
        new_key = self._next_key(load_type, page, short_page, key)
        try:
            if load_type is LoadType.REFRESH:
                await self.database.replace_all(self.list_id, stories, new_key)
            else:
                await self.database.insert_page(
                    self.list_id, stories, new_key, prepend=load_type is LoadType.PREPEND
                )
        except StorageError as exc:
            return MediatorResult.failure(exc)

        logger.info(
            "%s: stored %d stories from page %d, key=%s",
            load_type.value,
            len(stories),
            page,
            new_key,
        )
        if load_type is LoadType.PREPEND:
            return MediatorResult.success(new_key.top_page is None)
        return MediatorResult.success(new_key.next_page is None)


__all__ = ["StoryRemoteMediator", "DEFAULT_LIST_ID"]
