import asyncio
import dataclasses

import pytest

from mediadb.clients.omdb_client import OMDbApi
from mediadb.errors import AuthError, ConfigError, UpstreamError
from mediadb.media_type import MediaType
from tests.conftest import FakeResponse

SEARCH_PAYLOAD = {
    "Search": [
        {"Title": "Dune", "Year": "2021", "imdbID": "tt1160419", "Type": "movie"},
        {"Title": "Dune", "Year": "2000", "imdbID": "tt0142032", "Type": "series"},
        {"Title": "Dune II", "Year": "1992", "imdbID": "tt0287896", "Type": "game"},
        {"Title": "Dune Trailer", "Year": "2020", "imdbID": "tt9999999", "Type": "episode"},
    ],
    "totalResults": "4",
    "Response": "True",
}

DETAIL_PAYLOAD = {
    "Title": "Dune",
    "Year": "2021",
    "Rated": "PG-13",
    "Released": "22 Oct 2021",
    "Runtime": "155 min",
    "Genre": "Action, Adventure, Drama",
    "Director": "Denis Villeneuve",
    "Writer": "Jon Spaihts, Denis Villeneuve, Eric Roth",
    "Actors": "Timothée Chalamet, Rebecca Ferguson",
    "Plot": "A noble family becomes embroiled in a war.",
    "Country": "United States, Canada",
    "Poster": "https://m.media-amazon.com/images/M/abc._V1_SX300.jpg",
    "imdbRating": "8.0",
    "imdbID": "tt1160419",
    "Type": "movie",
    "BoxOffice": "N/A",
    "Response": "True",
}


def test_search_maps_known_types_and_skips_others(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(payload=SEARCH_PAYLOAD))
    api = OMDbApi(settings, transport)

    records = asyncio.run(api.search_by_title("Dune"))

    assert [r.type for r in records] == [MediaType.MOVIE, MediaType.SERIES, MediaType.GAME]
    assert [r.id for r in records] == ["tt1160419", "tt0142032", "tt0287896"]
    assert all(r.data_source == "OMDbAPI" for r in records)
    assert fake_session.calls[0].params == {"s": "Dune", "apikey": "omdb-key"}


def test_search_movie_not_found_is_empty(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(payload={"Response": "False", "Error": "Movie not found!"}))
    api = OMDbApi(settings, transport)

    assert asyncio.run(api.search_by_title("zzzz")) == []


def test_search_other_envelope_error_raises(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(payload={"Response": "False", "Error": "Too many results."}))
    api = OMDbApi(settings, transport)

    with pytest.raises(UpstreamError) as info:
        asyncio.run(api.search_by_title("a"))
    assert "Too many results." in str(info.value)


def test_rejected_key_is_auth_error(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(status_code=401, body='{"Error": "Invalid API key!"}'))
    api = OMDbApi(settings, transport)

    with pytest.raises(AuthError):
        asyncio.run(api.search_by_title("Dune"))


def test_missing_key_fails_before_network(settings, transport, fake_session):
    api = OMDbApi(dataclasses.replace(settings, omdb_api_key=None), transport)

    with pytest.raises(ConfigError) as info:
        asyncio.run(api.search_by_title("Dune"))

    assert "OMDbAPI" in str(info.value)
    assert fake_session.calls == []


def test_detail_movie(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(payload=DETAIL_PAYLOAD))
    api = OMDbApi(settings, transport)

    record = asyncio.run(api.get_by_id("tt1160419"))

    assert record.type == MediaType.MOVIE
    assert record.url == "https://www.imdb.com/title/tt1160419/"
    movie = record.payload
    assert movie.genres == ("Action", "Adventure", "Drama")
    assert movie.director == ("Denis Villeneuve",)
    assert movie.online_rating == 8.0
    assert movie.image.endswith("_SX600.jpg")
    assert movie.premiere == "2021-10-22"
    assert movie.box_office == ""
    assert movie.released is True


def test_detail_unsupported_type_raises(settings, transport, fake_session):
    payload = {**DETAIL_PAYLOAD, "Type": "episode"}
    fake_session.add("omdbapi.com", FakeResponse(payload=payload))
    api = OMDbApi(settings, transport)

    with pytest.raises(UpstreamError):
        asyncio.run(api.get_by_id("tt1160419"))


def test_detail_is_idempotent(settings, transport, fake_session):
    fake_session.add("omdbapi.com", FakeResponse(payload=DETAIL_PAYLOAD))
    api = OMDbApi(settings, transport)

    first = asyncio.run(api.get_by_id("tt1160419"))
    second = asyncio.run(api.get_by_id("tt1160419"))

    assert first == second
    assert dataclasses.asdict(first) == dataclasses.asdict(second)
    assert [c.params for c in fake_session.calls] == [{"i": "tt1160419", "apikey": "omdb-key"}] * 2
