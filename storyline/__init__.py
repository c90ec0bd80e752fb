"""
storyline: client-side data layer for the story API.

Import the pieces an application wires together from here::

    from storyline import StoryApi, SessionStore, StoryDatabase, StoryRepository
"""

from .clients.story_api import StoryApi
from .memory.session import SessionStore
from .memory.store import StoryDatabase
from .models import LoginResult, MessageResponse, RemoteKey, Story, UserSession
from .repository import StoryRepository
from .result import Result, Status, resolve

__all__ = [
    "StoryApi",
    "SessionStore",
    "StoryDatabase",
    "StoryRepository",
    "Story",
    "RemoteKey",
    "UserSession",
    "LoginResult",
    "MessageResponse",
    "Result",
    "Status",
    "resolve",
]
