"""
Async client for the story REST API.

Endpoints
=========
``POST /register``            name, email, password -> message
``POST /login``               email, password -> loginResult
``GET  /stories``             page, size, location=0 -> listStory
``GET  /stories?location=1``  every story that carries coordinates
``POST /stories``             multipart photo + description (+ lat/lon)

Non-2xx responses raise :class:`~storyline.errors.ApiError` carrying the raw
body; connection problems and timeouts raise
:class:`~storyline.errors.TransportError`; 2xx bodies that are not the
expected JSON object raise :class:`~storyline.errors.MalformedResponseError`.
Decoding the error payload is left to
:func:`~storyline.errors.extract_error_message`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

import aiohttp

from storyline.config import api as api_cfg
from storyline.errors import ApiError, MalformedResponseError, TransportError
from storyline.models import LoginResult, MessageResponse, Story, stories_from_api

logger = logging.getLogger(__name__)


class StoryApi:
    """Thin aiohttp wrapper; one instance per (base URL, token) pair."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or api_cfg.BASE_URL).rstrip("/")
        self.token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout or api_cfg.REQUEST_TIMEOUT)
        self._session = session
        self._owns_session = session is None

    # ---------- session lifecycle ------------------------------------ #

    def _client(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    def with_token(self, token: str) -> "StoryApi":
        """Return a client that authenticates as ``token`` and shares this HTTP session."""
        return StoryApi(self.base_url, token=token, session=self._client())

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "StoryApi":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ---------- low-level helpers ------------------------------------ #

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Mapping[str, Any]:
        url = self._url(path)
        try:
            async with self._client().request(
                method, url, headers=self._headers(), **kwargs
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.debug("%s %s -> %s", method, url, resp.status)
                    raise ApiError(resp.status, body, resp.reason)
                payload = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise TransportError(str(exc) or f"Request to {url} failed") from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Request to {url} timed out") from exc
        except ValueError as exc:
            raise MalformedResponseError(f"Malformed response from {url}") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Expected a JSON object from {url}, got {type(payload).__name__}"
            )
        return payload

    # ---------- public contract -------------------------------------- #

    async def register(self, name: str, email: str, password: str) -> MessageResponse:
        payload = await self._request(
            "POST", "register", data={"name": name, "email": email, "password": password}
        )
        return MessageResponse.from_api(payload)

    async def login(self, email: str, password: str) -> LoginResult:
        payload = await self._request("POST", "login", data={"email": email, "password": password})
        return LoginResult.from_api(payload)

    async def fetch_page(self, page: int, size: int) -> list[Story]:
        """Return one page of stories (``location=0``: all stories)."""
        payload = await self._request(
            "GET", "stories", params={"page": page, "size": size, "location": 0}
        )
        return stories_from_api(payload)

    async def fetch_all_with_location(self) -> list[Story]:
        payload = await self._request("GET", "stories", params={"location": 1})
        return stories_from_api(payload)

    async def upload_story(
        self,
        photo: bytes,
        filename: str,
        description: str,
        *,
        lat: float | None = None,
        lon: float | None = None,
        content_type: str = "image/jpeg",
    ) -> MessageResponse:
        form = aiohttp.FormData()
        form.add_field("photo", photo, filename=filename, content_type=content_type)
        form.add_field("description", description)
        if lat is not None and lon is not None:
            form.add_field("lat", str(lat))
            form.add_field("lon", str(lon))
        payload = await self._request("POST", "stories", data=form)
        return MessageResponse.from_api(payload)


__all__ = ["StoryApi"]
