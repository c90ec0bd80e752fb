import pytest

from storyline.config.api import Api
from storyline.config.loader import load_raw_config
from storyline.config.paging import Paging
from storyline.config.session import SessionCfg
from storyline.paging import PagingConfig


def test_missing_config_file_is_empty(tmp_path):
    assert load_raw_config(tmp_path / "nope.toml") == {}


def test_toml_sections_override_environment(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text(
        """
[storyline.api]
base_url = "http://localhost:8080/v1/"
request_timeout = 5

[storyline.paging]
page_size = 10
db_path = "/tmp/stories.db"

[storyline.session]
session_file = "/tmp/session.json"
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("STORY_API_BASE_URL", "http://ignored/v1")
    raw = load_raw_config(path)

    api = Api(raw)
    paging = Paging(raw)
    assert api.BASE_URL == "http://localhost:8080/v1"
    assert api.REQUEST_TIMEOUT == 5.0
    assert paging.PAGE_SIZE == 10
    assert paging.PREFETCH_DISTANCE == 10
    assert paging.FIRST_PAGE == 1
    assert paging.DB_PATH == "/tmp/stories.db"
    assert SessionCfg(raw).SESSION_FILE == "/tmp/session.json"


def test_environment_fallbacks(monkeypatch):
    monkeypatch.setenv("STORY_API_BASE_URL", "http://env-host/v1")
    monkeypatch.setenv("PAGE_SIZE", "7")
    monkeypatch.setenv("PREFETCH_DISTANCE", "2")

    assert Api({}).BASE_URL == "http://env-host/v1"
    paging = Paging({})
    assert (paging.PAGE_SIZE, paging.PREFETCH_DISTANCE) == (7, 2)


def test_non_positive_page_size_rejected(monkeypatch):
    monkeypatch.setenv("PAGE_SIZE", "0")
    with pytest.raises(ValueError):
        Paging({})
    with pytest.raises(ValueError):
        PagingConfig(page_size=0)


def test_paging_config_derived_sizes():
    config = PagingConfig(page_size=5, prefetch_distance=None, initial_load_size=15)
    assert config.prefetch == 5
    assert config.initial_size == 15
