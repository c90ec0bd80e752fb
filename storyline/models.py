"""Dataclass models for stories, pagination keys and sessions.

Story schema as returned by the API (``listStory`` entries)::

    {"id": "story-FvU4u0Vp2S3PMsFg", "name": "Dimas",
     "description": "Lorem Ipsum", "photoUrl": "https://...",
     "createdAt": "2022-01-08T06:34:18.598Z", "lat": -10.212, "lon": -16.002}

``lat``/``lon`` are optional. ``createdAt`` is kept as the exact string the API
sent so a story read back from the store compares equal to the fetched one.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from storyline.errors import MalformedResponseError


def _drop_nones(d: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of ``d`` without keys mapped to ``None``."""
    return {k: v for k, v in d.items() if v is not None}


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True, slots=True)
class Story:
    """One entry of the remote story list."""

    id: str
    name: str
    description: str
    photo_url: str
    created_at: str
    lat: Optional[float] = None
    lon: Optional[float] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Story":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            description=str(payload.get("description") or ""),
            photo_url=str(payload.get("photoUrl") or ""),
            created_at=str(payload.get("createdAt") or ""),
            lat=_opt_float(payload.get("lat")),
            lon=_opt_float(payload.get("lon")),
        )

    def to_api(self) -> Dict[str, Any]:
        return _drop_nones(
            {
                "id": self.id,
                "name": self.name,
                "description": self.description,
                "photoUrl": self.photo_url,
                "createdAt": self.created_at,
                "lat": self.lat,
                "lon": self.lon,
            }
        )

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Story":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            photo_url=row["photo_url"],
            created_at=row["created_at"],
            lat=row["lat"],
            lon=row["lon"],
        )

    def to_row(self) -> tuple[Any, ...]:
        """Column values in ``stories`` insert order (position excluded)."""
        return (
            self.id,
            self.name,
            self.description,
            self.photo_url,
            self.created_at,
            self.lat,
            self.lon,
        )

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lon is not None


@dataclass(frozen=True, slots=True)
class RemoteKey:
    """Pagination cursor for the cached list.

    ``next_page`` is ``None`` once the forward end of the list was reached;
    ``previous_page`` is the page before the last one fetched and ``None`` at
    the first page.

    ``top_page`` is the page just above the topmost cached row. Only refresh
    and prepend move it, so an append never changes where the next prepend
    resumes. It is bookkeeping for the pager and is left out of equality.
    """

    previous_page: Optional[int] = None
    next_page: Optional[int] = None
    top_page: Optional[int] = field(default=None, compare=False)

    @classmethod
    def for_page(cls, page: int, *, first_page: int, end_reached: bool) -> "RemoteKey":
        previous = None if page == first_page else page - 1
        return cls(
            previous_page=previous,
            next_page=None if end_reached else page + 1,
            top_page=previous,
        )


@dataclass(frozen=True, slots=True)
class UserSession:
    """Logged-in user record persisted by :class:`~storyline.memory.session.SessionStore`."""

    user_id: str
    name: str
    token: str
    is_login: bool = False

    @classmethod
    def empty(cls) -> "UserSession":
        return cls(user_id="", name="", token="", is_login=False)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "UserSession":
        return cls(
            user_id=str(payload.get("user_id", "")),
            name=str(payload.get("name", "")),
            token=str(payload.get("token", "")),
            is_login=bool(payload.get("is_login", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "token": self.token,
            "is_login": self.is_login,
        }


# ---------------------------------------------------------------------------
# API response bodies
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MessageResponse:
    """``{"error": false, "message": "..."}`` returned by write endpoints."""

    error: bool
    message: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "MessageResponse":
        return cls(error=bool(payload.get("error", False)), message=str(payload.get("message", "")))


@dataclass(frozen=True, slots=True)
class LoginResult:
    user_id: str
    name: str
    token: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "LoginResult":
        body = payload.get("loginResult") or {}
        return cls(
            user_id=str(body.get("userId", "")),
            name=str(body.get("name", "")),
            token=str(body.get("token", "")),
        )

    def to_session(self) -> UserSession:
        return UserSession(user_id=self.user_id, name=self.name, token=self.token, is_login=True)


def stories_from_api(payload: Mapping[str, Any]) -> list[Story]:
    """
    Parse the ``listStory`` array of a ``GET /stories`` response.

    Raises :class:`~storyline.errors.MalformedResponseError` when the body is
    not an object or an entry is missing its ``id``.
    """
    try:
        return [Story.from_api(item) for item in payload.get("listStory") or []]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise MalformedResponseError(f"Malformed story list: {exc!r}") from exc


__all__ = [
    "Story",
    "RemoteKey",
    "UserSession",
    "MessageResponse",
    "LoginResult",
    "stories_from_api",
]
