import asyncio

import pytest

from mediadb.api_manager import ApiManager
from mediadb.clients.wikipedia_client import WikipediaApi
from mediadb.errors import RecordParseError, UpstreamError
from mediadb.media_type import MediaType
from tests.conftest import FakeResponse


def _search_payload():
    return {
        "batchcomplete": "",
        "query": {
            "searchinfo": {"totalhits": 4},
            "search": [
                {"ns": 0, "title": "Dune (novel)", "pageid": 8966941},
                {"ns": 0, "title": "Dune (2021 film)", "pageid": 52208040},
                {"ns": 0, "title": "Dune (franchise)", "pageid": 37418},
                {"ns": 0, "title": "Dune (1984 film)", "pageid": 8931},
            ],
        },
    }


def test_search_returns_hits_in_upstream_order(settings, transport, fake_session):
    fake_session.add("wikipedia.org", FakeResponse(payload=_search_payload()))
    api = WikipediaApi(settings, transport)

    records = asyncio.run(api.search_by_title("Dune"))

    assert [r.title for r in records] == ["Dune (novel)", "Dune (2021 film)", "Dune (franchise)", "Dune (1984 film)"]
    assert [r.id for r in records] == ["8966941", "52208040", "37418", "8931"]
    assert all(r.type == MediaType.WIKI for r in records)
    assert all(r.data_source == "Wikipedia API" for r in records)

    params = fake_session.calls[0].params
    assert params["list"] == "search"
    assert params["srsearch"] == "Dune"
    assert params["srlimit"] == 20


def test_search_without_query_block_raises(settings, transport, fake_session):
    fake_session.add("wikipedia.org", FakeResponse(payload={"garbage": True}))
    api = WikipediaApi(settings, transport)

    with pytest.raises(RecordParseError):
        asyncio.run(api.search_by_title("Dune"))


def test_search_non_json_raises(settings, transport, fake_session):
    fake_session.add("wikipedia.org", FakeResponse(body="<!doctype html>"))
    api = WikipediaApi(settings, transport)

    with pytest.raises(UpstreamError):
        asyncio.run(api.search_by_title("Dune"))


def test_detail_reads_first_page(settings, transport, fake_session):
    payload = {
        "query": {
            "pages": {
                "8966941": {
                    "pageid": 8966941,
                    "title": "Dune (novel)",
                    "touched": "2024-03-01T10:20:30Z",
                    "length": 123456,
                    "fullurl": "https://en.wikipedia.org/wiki/Dune_(novel)",
                }
            }
        }
    }
    fake_session.add("wikipedia.org", FakeResponse(payload=payload))
    api = WikipediaApi(settings, transport)

    record = asyncio.run(api.get_by_id("8966941"))

    assert record.title == "Dune (novel)"
    assert record.url == "https://en.wikipedia.org/wiki/Dune_(novel)"
    assert record.payload.wiki_url == record.url
    assert record.payload.last_updated == "2024-03-01"
    assert record.payload.length == 123456
    assert fake_session.calls[0].params["pageids"] == "8966941"


def test_detail_missing_page_raises(settings, transport, fake_session):
    payload = {"query": {"pages": {"-1": {"ns": 0, "title": "Nope", "missing": ""}}}}
    fake_session.add("wikipedia.org", FakeResponse(payload=payload))
    api = WikipediaApi(settings, transport)

    with pytest.raises(RecordParseError):
        asyncio.run(api.get_by_id("0"))


def test_manager_query_by_compact_name(settings, transport, fake_session):
    fake_session.add("wikipedia.org", FakeResponse(payload=_search_payload()))
    manager = ApiManager()
    manager.register_api(WikipediaApi(settings, transport))

    result = asyncio.run(manager.query("Jackson", ["WikipediaAPI"]))

    assert len(result) == 4
    assert [r.data_source for r in result] == ["Wikipedia API"] * 4
    assert result.failures == []
