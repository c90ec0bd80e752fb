import asyncio
import json

import pytest

from storyline.memory.session import SessionStore
from storyline.models import UserSession

USER = UserSession(user_id="user-1", name="Dimas", token="tok-123", is_login=True)


async def _next(agen):
    return await asyncio.wait_for(agen.__anext__(), timeout=1)


@pytest.mark.asyncio
async def test_session_stream_follows_login_and_logout(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    stream = store.get_session()

    assert await _next(stream) == UserSession.empty()

    await store.save_session(USER)
    assert await _next(stream) == USER

    await store.save_session(USER)  # unchanged, nothing emitted
    await store.logout()
    assert await _next(stream) == UserSession.empty()

    await stream.aclose()


@pytest.mark.asyncio
async def test_session_survives_restart(tmp_path):
    path = tmp_path / "nested" / "session.json"
    await SessionStore(path).save_session(USER)

    assert json.loads(path.read_text()) == USER.to_dict()
    reopened = SessionStore(path)
    assert reopened.current() == USER
    stream = reopened.get_session()
    assert await _next(stream) == USER
    await stream.aclose()


@pytest.mark.asyncio
async def test_logout_removes_record(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(path)
    await store.save_session(USER)
    await store.logout()
    await store.logout()  # idempotent

    assert not path.exists()
    assert SessionStore(path).current() == UserSession.empty()


@pytest.mark.asyncio
async def test_independent_subscribers(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    first, second = store.get_session(), store.get_session()
    assert await _next(first) == await _next(second) == UserSession.empty()

    await store.save_session(USER)

    assert await _next(first) == USER
    assert await _next(second) == USER
    await first.aclose()
    await second.aclose()


def test_corrupt_file_reads_as_logged_out(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    assert SessionStore(path).current() == UserSession.empty()
