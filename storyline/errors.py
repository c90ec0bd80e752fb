"""
Exception taxonomy for the story client.

``RemoteError`` covers everything the story API can do wrong: ``ApiError``
for non-2xx responses (the raw body is kept so the server's message can be
surfaced) and ``TransportError`` for connectivity failures, with
``MalformedResponseError`` for 2xx bodies that cannot be decoded. ``StorageError``
is raised by the local SQLite store and is kept apart from remote failures so
callers can tell "the network said no" from "the disk said no".

:func:`extract_error_message` turns any of these into the human readable
string carried by ``Result.error``.
"""

from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Something went wrong. Please try again."


class StorylineError(Exception):
    """Base class for every error raised by this package."""


class RemoteError(StorylineError):
    """The story API could not be reached or rejected the request."""


class ApiError(RemoteError):
    """Non-2xx HTTP response."""

    def __init__(self, status: int, body: str | None = None, reason: str | None = None) -> None:
        self.status = status
        self.body = body
        self.reason = reason
        super().__init__(f"HTTP {status}" + (f" {reason}" if reason else ""))


class TransportError(RemoteError):
    """Connectivity or timeout failure reported by the HTTP transport."""


class MalformedResponseError(TransportError):
    """A 2xx response whose body is not the payload the endpoint promises."""


class StorageError(StorylineError):
    """A read or transactional write against the local store failed."""


def _message_from_body(body: str | None) -> str | None:
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


def extract_error_message(exc: BaseException) -> str:
    """
    Return a non-empty, human readable message for ``exc``.

    For :class:`ApiError` the response body is parsed as the API's error
    payload (``{"error": true, "message": "..."}``) and its ``message`` is
    used. Unparsable bodies fall back to ``str(exc)`` and finally to
    :data:`FALLBACK_MESSAGE`.
    """
    if isinstance(exc, ApiError):
        message = _message_from_body(exc.body)
        if message:
            return message
        logger.debug("Unparsable error body for HTTP %s: %r", exc.status, exc.body)

    text = str(exc).strip()
    return text or FALLBACK_MESSAGE


__all__ = [
    "StorylineError",
    "RemoteError",
    "ApiError",
    "TransportError",
    "MalformedResponseError",
    "StorageError",
    "extract_error_message",
    "FALLBACK_MESSAGE",
]
