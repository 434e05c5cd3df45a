import mediadb.config_base as cfg
from mediadb.config_apis import _parse_disabled_media_types
from mediadb.media_type import MediaType
from mediadb.settings import MediaDbSettings, parse_disabled_media_types


def test_clean_env_raw():
    assert cfg._clean_env_raw(None) is None
    assert cfg._clean_env_raw("  ") is None
    assert cfg._clean_env_raw("'value'") == "value"
    assert cfg._clean_env_raw('"value"') == "value"
    assert cfg._clean_env_raw("  value ") == "value"


def test_get_env_parsers(monkeypatch):
    monkeypatch.delenv("MEDIADB_TEST_STR", raising=False)
    assert cfg._get_env_str("MEDIADB_TEST_STR", "default") == "default"

    monkeypatch.setenv("MEDIADB_TEST_STR", "  hello ")
    assert cfg._get_env_str("MEDIADB_TEST_STR", "default") == "hello"

    monkeypatch.setenv("MEDIADB_TEST_INT", "10")
    assert cfg._get_env_int("MEDIADB_TEST_INT", 1) == 10
    monkeypatch.setenv("MEDIADB_TEST_INT", "bad")
    assert cfg._get_env_int("MEDIADB_TEST_INT", 1) == 1

    monkeypatch.setenv("MEDIADB_TEST_FLOAT", "2.5")
    assert cfg._get_env_float("MEDIADB_TEST_FLOAT", 1.0) == 2.5
    monkeypatch.setenv("MEDIADB_TEST_FLOAT", "bad")
    assert cfg._get_env_float("MEDIADB_TEST_FLOAT", 1.0) == 1.0

    monkeypatch.setenv("MEDIADB_TEST_BOOL", "yes")
    assert cfg._get_env_bool("MEDIADB_TEST_BOOL", False) is True
    monkeypatch.setenv("MEDIADB_TEST_BOOL", "off")
    assert cfg._get_env_bool("MEDIADB_TEST_BOOL", True) is False
    monkeypatch.setenv("MEDIADB_TEST_BOOL", "maybe")
    assert cfg._get_env_bool("MEDIADB_TEST_BOOL", True) is True


def test_caps():
    assert cfg._cap_int("CAP", 0, min_v=1, max_v=50) == 1
    assert cfg._cap_int("CAP", 99, min_v=1, max_v=50) == 50
    assert cfg._cap_int("CAP", 20, min_v=1, max_v=50) == 20

    assert cfg._cap_float_min("CAPF", 0.1, min_v=0.5) == 0.5
    assert cfg._cap_float_min("CAPF", 0.6, min_v=0.5) == 0.6


def test_parse_env_kv_map_json_and_fallback():
    assert cfg._parse_env_kv_map('{"OMDbAPI": "game|series", "MALAPI": 1}') == {
        "OMDbAPI": "game|series",
        "MALAPI": "1",
    }
    assert cfg._parse_env_kv_map("a:1, b: 2, :bad, c:, d:4") == {"a": "1", "b": "2", "d": "4"}
    assert cfg._parse_env_kv_map("nope") == {}


def test_parse_env_csv_tokens_dedupes():
    assert cfg._parse_env_csv_tokens("Movie| game |movie", sep="|") == ["movie", "game"]
    assert cfg._parse_env_csv_tokens("Movie|Game", sep="|", lower=False) == ["Movie", "Game"]
    assert cfg._parse_env_csv_tokens("") == []


def test_disabled_media_types_from_env_text():
    raw = _parse_disabled_media_types("OMDbAPI: game|series, MALAPI: movie")
    assert raw == {"OMDbAPI": ("game", "series"), "MALAPI": ("movie",)}

    parsed = parse_disabled_media_types({**raw, "Other": ("podcast",)})
    assert parsed == {
        "OMDbAPI": frozenset({MediaType.GAME, MediaType.SERIES}),
        "MALAPI": frozenset({MediaType.MOVIE}),
    }

    settings = MediaDbSettings(disabled_media_types=parsed)
    assert settings.disabled_types_for("OMDbAPI") == frozenset({MediaType.GAME, MediaType.SERIES})
    assert settings.disabled_types_for("TMDBMovieAPI") == frozenset()
