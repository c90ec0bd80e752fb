"""
Paginated story list.

``mediator``
    :class:`StoryRemoteMediator` decides which page to fetch and merges it
    into the local store atomically.
``pager``
    :class:`StoryPager` serves windows of the local store to a scrolling
    consumer and triggers the mediator at the edges.
``types``
    Load directions, results and observable load states.
"""

from .mediator import StoryRemoteMediator
from .pager import StoryPager
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

__all__ = [
    "StoryRemoteMediator",
    "StoryPager",
    "CombinedLoadStates",
    "LoadParams",
    "LoadResult",
    "LoadState",
    "LoadType",
    "MediatorResult",
    "PagingConfig",
    "PagingState",
]
