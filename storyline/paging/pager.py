"""
Windowed reader over the cached story table.

:class:`StoryPager` never talks to the network. It reads windows from the
local store and, when a window reaches an edge of the table, asks the
:class:`~storyline.paging.mediator.StoryRemoteMediator` for one more page
before re-reading. All pagination state that matters lives in the store, so a
new :meth:`StoryPager.pages` iteration can start from scratch at any time.

Per direction there is at most one mediator call in flight; a concurrent
request for the same direction awaits that call instead of issuing another.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from storyline.errors import StorageError
from storyline.flow import StateFlow
from storyline.memory.store import StoryDatabase

from .mediator import StoryRemoteMediator
from .types import (
    CombinedLoadStates,
    LoadParams,
    LoadResult,
    LoadState,
    LoadType,
    MediatorResult,
    PagingConfig,
    PagingState,
)

logger = logging.getLogger(__name__)


class StoryPager:
    def __init__(
        self,
        database: StoryDatabase,
        mediator: StoryRemoteMediator,
        config: PagingConfig | None = None,
    ) -> None:
        self.database = database
        self.mediator = mediator
        self.config = config or PagingConfig()
        self.generation = 0
        self.load_states: StateFlow[CombinedLoadStates] = StateFlow(CombinedLoadStates())
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._exhausted = {LoadType.APPEND: False, LoadType.PREPEND: False}
        self._inflight: dict[LoadType, asyncio.Task[MediatorResult]] = {}
        self._failed: set[LoadType] = set()
        self._loaded = 0

    # ------------------------------------------------------------------ #
    # Mediator plumbing
    # ------------------------------------------------------------------ #

    def _set_state(self, load_type: LoadType, state: LoadState) -> None:
        current = self.load_states.value
        self.load_states.set(
            CombinedLoadStates(
                refresh=state if load_type is LoadType.REFRESH else current.refresh,
                append=state if load_type is LoadType.APPEND else current.append,
                prepend=state if load_type is LoadType.PREPEND else current.prepend,
            )
        )

    async def _sync_exhaustion(self) -> None:
        """Derive per-direction end flags from the stored remote key."""
        key = await self.database.remote_keys.get(self.mediator.list_id)
        self._exhausted[LoadType.APPEND] = key is None or key.next_page is None
        self._exhausted[LoadType.PREPEND] = key is None or key.top_page is None
        self._set_state(LoadType.APPEND, LoadState.not_loading(self._exhausted[LoadType.APPEND]))
        self._set_state(LoadType.PREPEND, LoadState.not_loading(self._exhausted[LoadType.PREPEND]))

    async def _run_mediator(self, load_type: LoadType) -> MediatorResult:
        self._set_state(load_type, LoadState.in_progress())
        result = await self.mediator.load(
            load_type, PagingState(loaded=self._loaded, config=self.config)
        )
        if not result.ok:
            self._failed.add(load_type)
            self._set_state(load_type, LoadState.failed(result.error))
            return result

        self._failed.discard(load_type)
        if load_type is LoadType.REFRESH:
            self.generation += 1
            self._loaded = 0
            self._set_state(load_type, LoadState.not_loading())
            try:
                await self._sync_exhaustion()
            except StorageError as exc:
                self._failed.add(load_type)
                self._set_state(load_type, LoadState.failed(exc))
                return MediatorResult.failure(exc)
        else:
            self._exhausted[load_type] = result.end_of_pagination_reached
            self._set_state(load_type, LoadState.not_loading(result.end_of_pagination_reached))
        return result

    async def _mediate(self, load_type: LoadType) -> MediatorResult:
        task = self._inflight.get(load_type)
        if task is None or task.done():
            task = asyncio.ensure_future(self._run_mediator(load_type))
            self._inflight[load_type] = task

            def _clear(done: asyncio.Task, lt: LoadType = load_type) -> None:
                if self._inflight.get(lt) is done:
                    del self._inflight[lt]

            task.add_done_callback(_clear)
        else:
            logger.debug("%s already in flight; joining it", load_type.value)
        # A cancelled reader must not cancel the load other readers share.
        return await asyncio.shield(task)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def refresh(self) -> MediatorResult:
        """Drop the cache and reload it from the network."""
        result = await self._mediate(LoadType.REFRESH)
        if result.ok:
            self._initialized = True
        return result

    async def retry(self) -> list[MediatorResult]:
        """Re-run every direction whose last load failed."""
        results = []
        for load_type in (LoadType.REFRESH, LoadType.PREPEND, LoadType.APPEND):
            if load_type in self._failed:
                results.append(await self._mediate(load_type))
        return results

    def is_exhausted(self, load_type: LoadType) -> bool:
        return self._exhausted.get(load_type, False)

    async def _ensure_initialized(self) -> MediatorResult | None:
        """
        Bring the pager in line with the store before its first read.

        The pager only counts as initialized once that step succeeded, so a
        failed startup read or refresh is attempted again by the next load.
        """
        if self._initialized:
            return None
        async with self._init_lock:
            if self._initialized:
                return None
            if await self.mediator.initialize():
                logger.info("Story cache empty; launching initial refresh")
                result = await self.refresh()
                return None if result.ok else result
            await self._sync_exhaustion()
            self._initialized = True
            return None

    async def load(self, params: LoadParams) -> LoadResult:
        offset = max(params.offset, 0)
        size = max(params.size, 0)
        try:
            failed = await self._ensure_initialized()
            if failed is not None:
                return LoadResult.failure(failed.error, offset, self.generation)

            total = await self.database.stories.count()
            if offset + size + self.config.prefetch >= total and not self._exhausted[LoadType.APPEND]:
                logger.debug("Window %d+%d reaches end of %d cached; appending", offset, size, total)
                result = await self._mediate(LoadType.APPEND)
                if not result.ok:
                    return LoadResult.failure(result.error, offset, self.generation)

            if offset == 0 and not self._exhausted[LoadType.PREPEND]:
                logger.debug("Window at start of cache; prepending")
                result = await self._mediate(LoadType.PREPEND)
                if not result.ok:
                    return LoadResult.failure(result.error, offset, self.generation)

            items = await self.database.stories.window(offset, size)
            total = await self.database.stories.count()
        except StorageError as exc:
            return LoadResult.failure(exc, offset, self.generation)

        end = offset + len(items)
        self._loaded = max(self._loaded, end)
        more = end < total or (not self._exhausted[LoadType.APPEND] and end > offset)
        return LoadResult(
            items=items,
            offset=offset,
            prev_key=None if offset == 0 else max(offset - size, 0),
            next_key=end if more else None,
            generation=self.generation,
        )

    async def pages(self, start: int = 0, page_size: int | None = None) -> AsyncIterator[LoadResult]:
        """
        Yield consecutive windows from ``start`` until the list is exhausted.

        Iteration stops after yielding a failed window; call :meth:`retry`
        and start a new iteration at that window's ``offset`` to resume.
        """
        size = page_size or self.config.page_size
        offset = start
        first = start == 0
        while True:
            result = await self.load(
                LoadParams(offset, self.config.initial_size if first else size)
            )
            first = False
            yield result
            if not result.ok or result.next_key is None:
                return
            offset = result.next_key


__all__ = ["StoryPager"]
