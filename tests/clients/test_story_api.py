import contextlib

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from storyline.clients.story_api import StoryApi
from storyline.errors import (
    ApiError,
    MalformedResponseError,
    TransportError,
    extract_error_message,
)
from storyline.models import LoginResult, MessageResponse

from conftest import make_story

TOKEN = "tok-123"


def _app(received: dict) -> web.Application:
    async def login(request: web.Request) -> web.Response:
        form = await request.post()
        if form.get("password") != "secret":
            return web.json_response({"error": True, "message": "Invalid credentials"}, status=401)
        return web.json_response(
            {
                "error": False,
                "message": "success",
                "loginResult": {"userId": "user-1", "name": "Dimas", "token": TOKEN},
            }
        )

    async def register(request: web.Request) -> web.Response:
        form = await request.post()
        if form.get("email") == "taken@example.com":
            return web.json_response({"error": True, "message": "Email already taken"}, status=400)
        if form.get("email") == "html@example.com":
            return web.Response(status=502, text="<html>Bad Gateway</html>")
        return web.json_response({"error": False, "message": "User Created"}, status=201)

    async def list_stories(request: web.Request) -> web.Response:
        received["auth"] = request.headers.get("Authorization")
        received["query"] = dict(request.query)
        if received["auth"] != f"Bearer {TOKEN}":
            return web.json_response({"error": True, "message": "Missing authentication"}, status=401)
        stories = [make_story(i) for i in range(12)]
        if request.query.get("location") == "1":
            located = [s.to_api() for s in stories if s.has_location]
            return web.json_response({"error": False, "message": "ok", "listStory": located})
        if request.query.get("page") == "99":
            return web.json_response([{"id": "story-x"}])
        page, size = int(request.query["page"]), int(request.query["size"])
        chunk = stories[(page - 1) * size: page * size]
        return web.json_response(
            {"error": False, "message": "ok", "listStory": [s.to_api() for s in chunk]}
        )

    async def add_story(request: web.Request) -> web.Response:
        form = await request.post()
        photo = form["photo"]
        received["upload"] = {
            "filename": photo.filename,
            "bytes": photo.file.read(),
            "description": form["description"],
            "lat": form.get("lat"),
            "lon": form.get("lon"),
            "auth": request.headers.get("Authorization"),
        }
        return web.json_response({"error": False, "message": "Story created successfully"}, status=201)

    app = web.Application()
    app.router.add_post("/v1/login", login)
    app.router.add_post("/v1/register", register)
    app.router.add_get("/v1/stories", list_stories)
    app.router.add_post("/v1/stories", add_story)
    return app


@contextlib.asynccontextmanager
async def serve(received: dict):
    server = TestServer(_app(received))
    await server.start_server()
    try:
        yield str(server.make_url("/v1"))
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_login_success_and_failure():
    async with serve({}) as base_url, StoryApi(base_url) as api:
        result = await api.login("a@b.com", "secret")
        assert result == LoginResult(user_id="user-1", name="Dimas", token=TOKEN)
        assert result.to_session().is_login is True

        with pytest.raises(ApiError) as excinfo:
            await api.login("a@b.com", "wrong")
        assert excinfo.value.status == 401
        assert "Invalid credentials" in excinfo.value.body


@pytest.mark.asyncio
async def test_register_reports_server_message():
    async with serve({}) as base_url, StoryApi(base_url) as api:
        created = await api.register("Dimas", "new@example.com", "secret1")
        assert created == MessageResponse(error=False, message="User Created")

        with pytest.raises(ApiError) as excinfo:
            await api.register("Dimas", "taken@example.com", "secret1")
        assert excinfo.value.status == 400


@pytest.mark.asyncio
async def test_fetch_page_sends_token_and_paging_params():
    received: dict = {}
    async with serve(received) as base_url, StoryApi(base_url) as api:
        stories = await api.with_token(TOKEN).fetch_page(2, 5)

    assert stories == [make_story(i) for i in range(5, 10)]
    assert received["auth"] == f"Bearer {TOKEN}"
    assert received["query"] == {"page": "2", "size": "5", "location": "0"}


@pytest.mark.asyncio
async def test_fetch_page_without_token_is_rejected():
    async with serve({}) as base_url, StoryApi(base_url) as api:
        with pytest.raises(ApiError) as excinfo:
            await api.fetch_page(1, 5)
    assert excinfo.value.status == 401


@pytest.mark.asyncio
async def test_fetch_all_with_location():
    received: dict = {}
    async with serve(received) as base_url, StoryApi(base_url, token=TOKEN) as api:
        stories = await api.fetch_all_with_location()

    assert stories and all(s.has_location for s in stories)
    assert received["query"] == {"location": "1"}


@pytest.mark.asyncio
async def test_upload_story_sends_multipart():
    received: dict = {}
    async with serve(received) as base_url, StoryApi(base_url) as api:
        response = await api.with_token(TOKEN).upload_story(
            b"\xff\xd8jpeg-bytes", "photo.jpg", "a sunny day", lat=-6.2, lon=106.8
        )

    assert response.message == "Story created successfully"
    upload = received["upload"]
    assert upload["filename"] == "photo.jpg"
    assert upload["bytes"] == b"\xff\xd8jpeg-bytes"
    assert upload["description"] == "a sunny day"
    assert (upload["lat"], upload["lon"]) == ("-6.2", "106.8")
    assert upload["auth"] == f"Bearer {TOKEN}"


@pytest.mark.asyncio
async def test_unreachable_host_raises_transport_error():
    async with StoryApi("http://127.0.0.1:9", timeout=2) as api:
        with pytest.raises(TransportError):
            await api.login("a@b.com", "secret")


@pytest.mark.asyncio
async def test_unparsable_error_body_still_yields_message():
    async with serve({}) as base_url, StoryApi(base_url) as api:
        with pytest.raises(ApiError) as excinfo:
            await api.register("Dimas", "html@example.com", "secret1")

    assert excinfo.value.status == 502
    assert extract_error_message(excinfo.value).startswith("HTTP 502")


@pytest.mark.asyncio
async def test_non_object_body_raises_malformed_response():
    async with serve({}) as base_url, StoryApi(base_url, token=TOKEN) as api:
        with pytest.raises(MalformedResponseError):
            await api.fetch_page(99, 5)
