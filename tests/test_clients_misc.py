import asyncio

import pytest

from mediadb.clients.mal_client import MALApi
from mediadb.clients.musicbrainz_client import MusicBrainzApi
from mediadb.clients.mydramalist_client import MyDramaListApi, classify_drama
from mediadb.clients.steam_client import SteamApi
from mediadb.errors import RecordParseError, UpstreamError
from mediadb.media_type import MediaType
from tests.conftest import FakeResponse


# ----------------------------------------------------------------------
# MAL (Jikan)
# ----------------------------------------------------------------------


def test_mal_search_maps_subtypes(settings, transport, fake_session):
    payload = {
        "data": [
            {"mal_id": 1, "title": "Cowboy Bebop", "type": "TV", "year": 1998},
            {"mal_id": 5, "title": "Cowboy Bebop: Tengoku no Tobira", "title_english": "Cowboy Bebop: The Movie", "type": "Movie", "year": None, "aired": {"prop": {"from": {"year": 2001}}}},
        ]
    }
    fake_session.add("jikan.moe", FakeResponse(payload=payload))
    api = MALApi(settings, transport)

    records = asyncio.run(api.search_by_title("bebop"))

    assert [(r.type, r.sub_type) for r in records] == [(MediaType.SERIES, "series"), (MediaType.MOVIE, "movie")]
    assert records[1].english_title == "Cowboy Bebop: The Movie"
    assert records[1].year == "2001"
    assert fake_session.calls[0].params["sfw"] == "true"


def test_mal_detail_without_data_raises(settings, transport, fake_session):
    fake_session.add("jikan.moe", FakeResponse(payload={"status": 404}))
    api = MALApi(settings, transport)

    with pytest.raises(RecordParseError):
        asyncio.run(api.get_by_id("999999"))


# ----------------------------------------------------------------------
# Steam
# ----------------------------------------------------------------------


def test_steam_search_filters_app_list(settings, transport, fake_session):
    apps = [{"appid": i, "name": f"Portal {i}"} for i in range(30)] + [{"appid": 999, "name": "Half-Life"}]
    fake_session.add("GetAppList", FakeResponse(payload={"applist": {"apps": apps}}))
    api = SteamApi(settings, transport)

    records = asyncio.run(api.search_by_title("portal"))

    assert len(records) == 20
    assert records[0].title == "Portal 0"


def test_steam_detail(settings, transport, fake_session):
    payload = {
        "620": {
            "success": True,
            "data": {
                "steam_appid": 620,
                "name": "Portal 2",
                "header_image": "https://cdn/header.jpg",
                "genres": [{"id": "1", "description": "Action"}],
                "metacritic": {"score": 95},
                "release_date": {"coming_soon": False, "date": "18 Apr, 2011"},
            },
        }
    }
    fake_session.add("appdetails", FakeResponse(payload=payload))
    api = SteamApi(settings, transport)

    record = asyncio.run(api.get_by_id("620"))

    assert record.year == "2011"
    assert record.payload.genres == ("Action",)
    assert record.payload.released is True
    assert record.payload.release_date == "2011-04-18"


def test_steam_detail_unsuccessful(settings, transport, fake_session):
    fake_session.add("appdetails", FakeResponse(payload={"1": {"success": False}}))
    api = SteamApi(settings, transport)

    with pytest.raises(RecordParseError):
        asyncio.run(api.get_by_id("1"))


# ----------------------------------------------------------------------
# MyDramaList
# ----------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Korean Movie", MediaType.MOVIE),
        ("Korean Drama", MediaType.SERIES),
        ("Chinese TV Show", MediaType.SERIES),
        ("Korean Special", MediaType.SERIES),
        ("Novel", None),
    ],
)
def test_classify_drama(raw, expected):
    assert classify_drama(raw) == expected


def test_mdl_detail_error_payload(settings, transport, fake_session):
    fake_session.add("kuryana", FakeResponse(payload={"error": True, "title": "Not Found", "info": "no drama"}))
    api = MyDramaListApi(settings, transport)

    with pytest.raises(UpstreamError):
        asyncio.run(api.get_by_id("nope"))


def test_mdl_series_detail_dates(settings, transport, fake_session):
    payload = {
        "data": {
            "title": "Extraordinary Attorney Woo",
            "synopsis": "...",
            "rating": 9.1,
            "poster": "https://i.mydramalist.com/x.jpg",
            "casts": [{"name": "Park Eun Bin"}],
            "details": {"type": "Korean Drama", "aired": "Jun 29, 2022 - Aug 18, 2022", "episodes": 16},
            "others": {"genres": ["Law", "Romance"], "screenwriter": "Moon Ji Won"},
        }
    }
    fake_session.add("kuryana", FakeResponse(payload=payload))
    api = MyDramaListApi(settings, transport)

    record = asyncio.run(api.get_by_id("702271-weird-lawyer-woo-young-woo"))

    assert record.type == MediaType.SERIES
    assert record.year == "2022"
    assert record.payload.aired_from == "2022-06-29"
    assert record.payload.aired_to == "2022-08-18"
    assert record.payload.writer == ("Moon Ji Won",)
    assert record.data_source == "MyDramaListAPI"


# ----------------------------------------------------------------------
# MusicBrainz
# ----------------------------------------------------------------------


def test_musicbrainz_detail_scales_rating(settings, transport, fake_session):
    payload = {
        "id": "b84ee12a-09ef-421b-82de-0441a926375b",
        "title": "OK Computer",
        "primary-type": "Album",
        "first-release-date": "1997-05-21",
        "artist-credit": [{"name": "Radiohead"}],
        "genres": [{"name": "alternative rock"}],
        "rating": {"value": 4.5, "votes-count": 100},
    }
    fake_session.add("musicbrainz.org", FakeResponse(payload=payload))
    api = MusicBrainzApi(settings, transport)

    record = asyncio.run(api.get_by_id(payload["id"]))

    assert record.type == MediaType.MUSIC_RELEASE
    assert record.payload.rating == 9.0
    assert record.payload.image.endswith(f"/{payload['id']}/front")
    assert record.sub_type == "Album"
    assert record.tags() == ["mediaDB", "music", "Album"]
    assert fake_session.calls[0].headers["User-Agent"] == settings.http_user_agent
