"""Value types shared by the remote mediator and the pager."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from storyline.config import paging as paging_cfg
from storyline.errors import StorylineError, extract_error_message
from storyline.models import Story


class LoadType(enum.Enum):
    REFRESH = "refresh"
    APPEND = "append"
    PREPEND = "prepend"


@dataclass(frozen=True)
class PagingConfig:
    page_size: int = field(default_factory=lambda: paging_cfg.PAGE_SIZE)
    prefetch_distance: Optional[int] = field(default_factory=lambda: paging_cfg.PREFETCH_DISTANCE)
    initial_load_size: Optional[int] = None
    first_page: int = field(default_factory=lambda: paging_cfg.FIRST_PAGE)

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")

    @property
    def prefetch(self) -> int:
        return self.page_size if self.prefetch_distance is None else self.prefetch_distance

    @property
    def initial_size(self) -> int:
        return self.page_size if self.initial_load_size is None else self.initial_load_size


@dataclass(frozen=True)
class PagingState:
    """Snapshot of what the pager currently holds, handed to the mediator."""

    loaded: int = 0
    config: Optional[PagingConfig] = None


@dataclass(frozen=True)
class MediatorResult:
    """Outcome of one mediator load: success (with end flag) or failure."""

    end_of_pagination_reached: bool = False
    error: Optional[StorylineError] = None

    @classmethod
    def success(cls, end_of_pagination_reached: bool) -> "MediatorResult":
        return cls(end_of_pagination_reached=end_of_pagination_reached)

    @classmethod
    def failure(cls, error: StorylineError) -> "MediatorResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class LoadParams:
    """Window request: ``size`` rows starting at display index ``offset``."""

    offset: int = 0
    size: int = field(default_factory=lambda: paging_cfg.PAGE_SIZE)


@dataclass(frozen=True)
class LoadResult:
    """A window of cached stories, or the error that stopped it from loading.

    ``prev_key``/``next_key`` are the offsets to request for the neighbouring
    windows; ``None`` means there is nothing more in that direction.
    ``generation`` changes after every refresh; windows from an older
    generation must be discarded by the consumer.
    """

    items: list[Story] = field(default_factory=list)
    offset: int = 0
    prev_key: Optional[int] = None
    next_key: Optional[int] = None
    error: Optional[StorylineError] = None
    generation: int = 0

    @classmethod
    def failure(
        cls, error: StorylineError, offset: int = 0, generation: int = 0
    ) -> "LoadResult":
        return cls(offset=offset, error=error, generation=generation)

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Load states observed by consumers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadState:
    """``not_loading`` / ``loading`` / ``error`` for one load direction."""

    loading: bool = False
    end_reached: bool = False
    message: Optional[str] = None

    @classmethod
    def not_loading(cls, end_reached: bool = False) -> "LoadState":
        return cls(end_reached=end_reached)

    @classmethod
    def in_progress(cls) -> "LoadState":
        return cls(loading=True)

    @classmethod
    def failed(cls, error: StorylineError) -> "LoadState":
        return cls(message=extract_error_message(error))

    @property
    def is_error(self) -> bool:
        return self.message is not None


@dataclass(frozen=True)
class CombinedLoadStates:
    refresh: LoadState = LoadState()
    append: LoadState = LoadState()
    prepend: LoadState = LoadState()

    def get(self, load_type: LoadType) -> LoadState:
        return getattr(self, load_type.value)


__all__ = [
    "LoadType",
    "PagingConfig",
    "PagingState",
    "MediatorResult",
    "LoadParams",
    "LoadResult",
    "LoadState",
    "CombinedLoadStates",
]
