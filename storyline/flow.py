"""
Observable state holder.

:class:`StateFlow` keeps one current value and fans changes out to any number
of independent subscribers. Each subscriber gets its own queue, sees the
current value first, and then every *distinct* update. Setting an equal value
emits nothing. Subscribers detach by leaving their ``async for`` loop (or by
being cancelled), at which point their queue is dropped.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Generic, TypeVar

T = TypeVar("T")


class StateFlow(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: set[asyncio.Queue[T]] = set()

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def set(self, value: T) -> bool:
        """Publish ``value``; return ``False`` when it equals the current one."""

        if value == self._value:
            return False
        self._value = value
        for queue in self._subscribers:
            queue.put_nowait(value)
        return True

    async def subscribe(self) -> AsyncIterator[T]:
        queue: asyncio.Queue[T] = asyncio.Queue()
        self._subscribers.add(queue)
        try:
            last = self._value
            yield last
            while True:
                value = await queue.get()
                # A burst of set() calls can leave A -> B -> A queued; skip repeats.
                if value == last:
                    continue
                last = value
                yield value
        finally:
            self._subscribers.discard(queue)


__all__ = ["StateFlow"]
