"""
Result envelope for one-shot operations.

``Result`` is a closed tagged union over three shapes, selected by
:class:`Status`::

    Result(status=Status.LOADING)
    Result(status=Status.SUCCESS, data=<payload>)
    Result(status=Status.ERROR, message="<human readable>")

Build values with :meth:`Result.loading`, :meth:`Result.success` and
:meth:`Result.error`; consume them by matching on ``status``::

    match result.status:
        case Status.LOADING: ...
        case Status.SUCCESS: use(result.data)
        case Status.ERROR: show(result.message)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import AsyncIterator, Generic, TypeVar

T = TypeVar("T")


class Status(enum.Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    status: Status
    data: T | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.status is Status.ERROR and not self.message:
            raise ValueError("error results require a non-empty message")
        if self.status is not Status.SUCCESS and self.data is not None:
            raise ValueError(f"{self.status.value} results carry no data")

    @classmethod
    def loading(cls) -> "Result[T]":
        return cls(Status.LOADING)

    @classmethod
    def success(cls, data: T) -> "Result[T]":
        return cls(Status.SUCCESS, data=data)

    @classmethod
    def error(cls, message: str) -> "Result[T]":
        return cls(Status.ERROR, message=message)

    @property
    def is_terminal(self) -> bool:
        return self.status is not Status.LOADING


async def resolve(results: AsyncIterator[Result[T]]) -> Result[T]:
    """Drain ``results`` and return its terminal value."""

    last: Result[T] | None = None
    async for item in results:
        last = item
    if last is None or not last.is_terminal:
        raise RuntimeError("operation finished without a terminal result")
    return last


__all__ = ["Result", "Status", "resolve"]
