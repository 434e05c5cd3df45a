import asyncio

import pytest

from mediadb.clients.vndb_client import VNDBApi, content_genres, release_publishers
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader
from tests.conftest import FakeResponse


def _reader(data):
    return FieldReader(data, api_name="VNDB API")


VN = {
    "id": "v17",
    "title": "Ever17 -the out of infinity-",
    "titles": [{"title": "Ever17", "lang": "ja"}, {"title": "Ever17 -the out of infinity-", "lang": "en"}],
    "devstatus": 0,
    "released": "2002-08-29",
    "image": {"url": "https://t.vndb.org/cv/1.jpg"},
    "rating": 86.2,
    "developers": [{"name": "KID"}],
    "tags": [
        {"name": "Mystery", "category": "cont", "rating": 2.5, "spoiler": 0},
        {"name": "Sci-fi", "category": "cont", "rating": 2.9, "spoiler": 0},
        {"name": "Twist", "category": "cont", "rating": 3.0, "spoiler": 2},
        {"name": "Low", "category": "cont", "rating": 1.2, "spoiler": 0},
        {"name": "ADV", "category": "tech", "rating": 3.0, "spoiler": 0},
    ],
}

RELEASES = {
    "results": [
        {
            "producers": [
                {"name": "Hirameki", "publisher": True, "developer": False},
                {"name": "KID", "publisher": True, "developer": True},
            ]
        },
        {
            "producers": [
                {"name": "Hirameki", "publisher": True, "developer": False},
                {"name": "Cyberfront", "publisher": True, "developer": False},
                {"name": "Translator", "publisher": False, "developer": False},
            ]
        },
    ]
}


def test_content_genres_filters_and_sorts():
    assert content_genres(_reader(VN)) == ("Sci-fi", "Mystery")


def test_release_publishers_developers_first_deduplicated():
    releases = _reader(RELEASES).obj_list("results")
    assert release_publishers(releases) == ("KID", "Hirameki", "Cyberfront")


def test_search_posts_kana_query(settings, transport, fake_session):
    fake_session.add("/kana/vn", FakeResponse(payload={"results": [VN]}))
    api = VNDBApi(settings, transport)

    records = asyncio.run(api.search_by_title("ever17"))

    assert records[0].id == "v17"
    assert records[0].english_title == "Ever17 -the out of infinity-"
    assert records[0].year == "2002"
    body = fake_session.calls[0].json
    assert body["filters"] == ["search", "=", "ever17"]
    assert body["sort"] == "searchrank"


def test_detail_combines_vn_and_releases(settings, transport, fake_session):
    fake_session.add("/kana/vn", FakeResponse(payload={"results": [VN]}))
    fake_session.add("/kana/release", FakeResponse(payload=RELEASES))
    api = VNDBApi(settings, transport)

    record = asyncio.run(api.get_by_id("v17"))
    game = record.payload

    assert record.url == "https://vndb.org/v17"
    assert game.developers == ("KID",)
    assert game.publishers == ("KID", "Hirameki", "Cyberfront")
    assert game.genres == ("Sci-fi", "Mystery")
    assert game.released is True
    assert game.release_date == "2002-08-29"


def test_tba_release(settings, transport, fake_session):
    vn = {**VN, "released": "TBA", "devstatus": 1}
    fake_session.add("/kana/vn", FakeResponse(payload={"results": [vn]}))
    fake_session.add("/kana/release", FakeResponse(payload={"results": []}))
    api = VNDBApi(settings, transport)

    record = asyncio.run(api.get_by_id("v17"))

    assert record.year == "TBA"
    assert record.payload.released is False
    assert record.payload.publishers == ()


def test_detail_requires_single_result(settings, transport, fake_session):
    fake_session.add("/kana/vn", FakeResponse(payload={"results": []}))
    api = VNDBApi(settings, transport)

    with pytest.raises(RecordParseError):
        asyncio.run(api.get_by_id("v0"))
