import asyncio
import os, sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Never let a test reach the real API by accident
os.environ.setdefault("STORY_API_BASE_URL", "http://story-api.invalid/v1")
os.environ.setdefault("STORYLINE_CONFIG", str(Path(__file__).with_name("missing-config.toml")))

from storyline.errors import ApiError
from storyline.memory.store import StoryDatabase
from storyline.models import Story


def make_story(i: int) -> Story:
    located = i % 2 == 0
    return Story(
        id=f"story-{i:03d}",
        name=f"user {i}",
        description=f"story number {i}",
        photo_url=f"https://cdn.example/photos/{i}.jpg",
        created_at=f"2024-01-{(i % 28) + 1:02d}T06:34:18.598Z",
        lat=-6.2 + i / 1000 if located else None,
        lon=106.8 + i / 1000 if located else None,
    )


class FakeStoryApi:
    """In-memory stand-in for :class:`StoryApi` serving ``total`` stories."""

    def __init__(self, total: int = 17) -> None:
        self.stories = [make_story(i) for i in range(total)]
        self.calls: list[int] = []
        self.fail_pages: dict[int, Exception] = {}
        self.gate: asyncio.Event | None = None
        self.token: str | None = None

    def with_token(self, token: str) -> "FakeStoryApi":
        self.token = token
        return self

    async def fetch_page(self, page: int, size: int) -> list[Story]:
        self.calls.append(page)
        if self.gate is not None:
            await self.gate.wait()
        if page in self.fail_pages:
            raise self.fail_pages[page]
        start = (page - 1) * size
        return self.stories[start:start + size]


def api_error(status: int = 500, message: str = "boom") -> ApiError:
    return ApiError(status, '{"error": true, "message": "%s"}' % message)


@pytest.fixture
def fake_api():
    return FakeStoryApi()


@pytest.fixture
def database(tmp_path):
    db = StoryDatabase.open(str(tmp_path / "story.db"))
    yield db
    db.conn.close()
