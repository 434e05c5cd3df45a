import pytest

from mediadb.errors import RecordParseError
from mediadb.fields import dedupe, na_to_empty, reader, split_list, year_from_date


def test_required_fields():
    r = reader({"id": 42, "title": "Dune", "slug": " x ", "blank": " "}, api_name="T")

    assert r.req_id("id") == "42"
    assert r.req_id("slug") == "x"
    assert r.req_str("title") == "Dune"
    for key in ("blank", "missing"):
        with pytest.raises(RecordParseError):
            r.req_str(key)


def test_optional_fields_default_and_coerce():
    r = reader(
        {"votes": "1,234", "score": "7.5", "na": "N/A", "flag": True, "n": None, "year": 1999},
        api_name="T",
    )

    assert r.opt_int("votes") == 1234
    assert r.opt_int("na", 5) == 5
    assert r.opt_float("score") == 7.5
    assert r.opt_float("n", 1.5) == 1.5
    assert r.opt_bool("flag") is True
    assert r.opt_str("year") == "1999"
    assert r.opt_str("missing", "-") == "-"


def test_wrong_types_raise_with_path():
    r = reader({"info": {"pages": [1]}, "flag": "yes", "n": True}, api_name="OpenLibraryAPI")

    with pytest.raises(RecordParseError) as info:
        r.obj("info").opt_int("pages")
    assert info.value.field == "info.pages"
    assert info.value.api_name == "OpenLibraryAPI"

    with pytest.raises(RecordParseError):
        r.opt_bool("flag")
    with pytest.raises(RecordParseError):
        r.opt_int("n")


def test_lists_and_nested_objects():
    r = reader({"genres": [{"name": "Drama"}, {"name": "War"}], "tags": ["a", 2], "bad": [None]}, api_name="T")

    assert r.names("genres") == ("Drama", "War")
    assert r.str_list("tags") == ("a", "2")
    assert r.str_list("missing") == ()
    assert r.obj("missing").opt_str("x") == ""
    with pytest.raises(RecordParseError) as info:
        r.str_list("bad")
    assert info.value.field == "bad"


def test_non_object_root_rejected():
    with pytest.raises(RecordParseError):
        reader(["not", "an", "object"], api_name="T")


def test_helpers():
    assert year_from_date("2017-05-04") == "2017"
    assert year_from_date("unknown", "?") == "?"
    assert year_from_date(None) == ""
    assert split_list("Drama, Crime") == ("Drama", "Crime")
    assert split_list("N/A") == ()
    assert dedupe(["a", "b", "a"]) == ("a", "b")
    assert na_to_empty("N/A") == ""
    assert na_to_empty("PG-13") == "PG-13"


@pytest.mark.parametrize("value", ["inf", "-Infinity", "nan", float("inf"), float("nan")])
def test_non_finite_numbers_are_not_integers(value):
    r = reader({"count": value}, api_name="T")

    with pytest.raises(RecordParseError):
        r.opt_int("count")
