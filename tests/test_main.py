import logging

import pytest

import mediadb.main as cli
from mediadb.api_manager import ApiManager
from mediadb.clients.tmdb_client import TMDBSeasonApi
from mediadb.errors import ConfigError
from mediadb.models import MoviePayload
from mediadb.settings import MediaDbSettings
from tests.conftest import FakeResponse, StaticApi


@pytest.fixture()
def manager(monkeypatch):
    manager = ApiManager()
    api = StaticApi(MediaDbSettings(), "Static")
    api._results = [api.make("Dune", MoviePayload(), "1")]
    manager.register_api(api)
    manager.register_api(StaticApi(MediaDbSettings(), "Empty"))
    monkeypatch.setattr(cli, "build_default_manager", lambda: manager)
    return manager


def _lines(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records]


def test_search_prints_records(manager, caplog, capsys):
    caplog.set_level(logging.INFO)

    assert cli.main(["Dune"]) == 0

    assert any(line.startswith("Static") and "Dune (2000)" in line for line in _lines(caplog))
    out = capsys.readouterr().out
    assert "[MediaDB] Inicio" in out
    assert "[MediaDB] Fin" in out


def test_details_prints_json(manager, caplog):
    caplog.set_level(logging.INFO)

    assert cli.main(["Dune", "--api", "Static", "--details"]) == 0

    assert any('"title": "detail 1"' in line for line in _lines(caplog))


def test_list_apis(manager, caplog):
    caplog.set_level(logging.INFO)

    assert cli.main(["--list-apis"]) == 0

    names = [line.split()[0] for line in _lines(caplog) if "[movie, series]" in line]
    assert names == ["Static", "Empty"]


def test_empty_title_is_a_usage_error(manager):
    assert cli.main([]) == 2


def test_all_failed_returns_one(monkeypatch):
    manager = ApiManager()
    manager.register_api(StaticApi(MediaDbSettings(), "Broken", error=ConfigError("no key")))
    monkeypatch.setattr(cli, "build_default_manager", lambda: manager)

    assert cli.main(["Dune"]) == 1


def test_details_of_a_series_lists_seasons_and_details_the_latest(monkeypatch, caplog, settings, transport, fake_session):
    fake_session.add("search/tv", FakeResponse(payload={"results": [{"id": 1399, "name": "Game of Thrones", "first_air_date": "2011-04-17"}]}))
    fake_session.add("tv/1399/season/2", FakeResponse(payload={"season_number": 2, "name": "Season 2", "air_date": "2012-04-01"}))
    fake_session.add(
        "tv/1399",
        FakeResponse(
            payload={
                "id": 1399,
                "name": "Game of Thrones",
                "seasons": [
                    {"season_number": 1, "name": "Season 1", "air_date": "2011-04-17"},
                    {"season_number": 2, "name": "Season 2", "air_date": "2012-04-01"},
                ],
            }
        ),
    )
    manager = ApiManager()
    manager.register_api(TMDBSeasonApi(settings, transport))
    monkeypatch.setattr(cli, "build_default_manager", lambda: manager)
    caplog.set_level(logging.INFO)

    assert cli.main(["Thrones", "--details"]) == 0

    lines = _lines(caplog)
    assert any("1399/season/1" in line for line in lines)
    assert any('"id": "1399/season/2"' in line and '"seasonNumber": 2' in line for line in lines)
