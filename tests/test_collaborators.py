import asyncio

import pytest

from mediadb.api_manager import ApiManager
from mediadb.clients.tmdb_client import TMDBSeasonApi
from mediadb.collaborators import ChoiceKind, ChoiceOutcome, import_by_title, query_details, series_seasons
from mediadb.errors import NotFoundError, UpstreamError
from mediadb.models import MoviePayload
from mediadb.naming import NoteNaming
from mediadb.settings import MediaDbSettings
from tests.conftest import FakeResponse, StaticApi


class RecordingSink:
    def __init__(self, fail_on: str | None = None) -> None:
        self.notes: list[tuple[str, dict, object]] = []
        self.fail_on = fail_on

    def write_note(self, path, metadata, record):
        if self.fail_on and self.fail_on in path:
            raise OSError("disk full")
        self.notes.append((path, metadata, record))


class ScriptedChooser:
    def __init__(self, pick) -> None:
        self.pick = pick
        self.presented: list = []

    def present(self, options):
        self.presented.append(list(options))
        return self.pick(options)


class BrokenDetailApi(StaticApi):
    async def get_by_id(self, record_id, *, token=None):
        raise UpstreamError("detail down", api_name=self.api_name)


def _manager(*apis):
    manager = ApiManager()
    for api in apis:
        manager.register_api(api)
    return manager


def _api(cls=StaticApi, name="Source", titles=("Dune", "Dune Messiah")):
    api = cls(MediaDbSettings(), name)
    api._results = [api.make(t, MoviePayload(), str(i)) for i, t in enumerate(titles)]
    return api


def test_selection_writes_one_note_per_detail():
    manager = _manager(_api())
    sink = RecordingSink()
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options))

    report = asyncio.run(import_by_title(manager, "dune", ["Source"], chooser=chooser, sink=sink))

    assert report.outcome == ChoiceKind.SELECTION
    assert report.ok
    assert report.written == ["Media DB/movies/detail 0 (2000).md", "Media DB/movies/detail 1 (2000).md"]
    assert [n[0] for n in sink.notes] == report.written
    assert [r.title for r in chooser.presented[0]] == ["Dune", "Dune Messiah"]

    path, metadata, record = sink.notes[0]
    assert metadata["title"] == "detail 0"
    assert metadata["type"] == "movie"
    assert metadata["plot"] == "full"
    assert record.payload.plot == "full"


def test_custom_naming_is_used():
    manager = _manager(_api(titles=("Dune",)))
    sink = RecordingSink()
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options[:1]))
    naming = NoteNaming(folders={r: "" for r in NoteNaming().folders})

    report = asyncio.run(
        import_by_title(manager, "dune", ["Source"], chooser=chooser, sink=sink, naming=naming)
    )

    assert report.written == ["detail 0 (2000).md"]


@pytest.mark.parametrize(
    "outcome, kind",
    [
        (ChoiceOutcome.skip(), ChoiceKind.SKIP),
        (ChoiceOutcome.cancel(), ChoiceKind.CANCEL),
        (ChoiceOutcome.selection([]), ChoiceKind.SELECTION),
    ],
)
def test_skip_cancel_and_empty_selection_write_nothing(outcome, kind):
    manager = _manager(_api())
    sink = RecordingSink()

    report = asyncio.run(
        import_by_title(manager, "dune", ["Source"], chooser=ScriptedChooser(lambda _: outcome), sink=sink)
    )

    assert report.outcome == kind
    assert report.written == []
    assert sink.notes == []


def test_no_results_skips_chooser():
    manager = _manager(_api(titles=()))
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options))

    report = asyncio.run(import_by_title(manager, "dune", ["Source"], chooser=chooser, sink=RecordingSink()))

    assert report.outcome == ChoiceKind.SKIP
    assert chooser.presented == []
    assert report.ok


def test_query_failures_are_carried_into_report():
    broken = StaticApi(MediaDbSettings(), "Broken", error=UpstreamError("boom", api_name="Broken"))
    manager = _manager(broken, _api())
    sink = RecordingSink()
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options[:1]))

    report = asyncio.run(import_by_title(manager, "dune", ["Broken", "Source"], chooser=chooser, sink=sink))

    assert len(report.written) == 1
    assert [f.api_name for f in report.failures] == ["Broken"]
    assert report.ok is False


def test_sink_failure_is_recorded_and_other_notes_still_written():
    manager = _manager(_api())
    sink = RecordingSink(fail_on="detail 0")
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options))

    report = asyncio.run(import_by_title(manager, "dune", ["Source"], chooser=chooser, sink=sink))

    assert report.written == ["Media DB/movies/detail 1 (2000).md"]
    assert len(report.failures) == 1
    assert isinstance(report.failures[0].error, OSError)
    assert report.failures[0].api_name == "Source"


def test_query_details_isolates_failures():
    good = _api(name="Good", titles=("a",))
    bad = _api(BrokenDetailApi, name="Bad", titles=("b",))
    manager = _manager(good, bad)
    stubs = [good._results[0], bad._results[0]]

    details, failures = asyncio.run(query_details(manager, stubs))

    assert [d.title for d in details] == ["detail 0"]
    assert [f.api_name for f in failures] == ["Bad"]
    assert failures[0].message == "detail down"


def test_query_details_unknown_source_is_a_failure():
    source = _api(titles=("a",))
    stub = source._results[0]

    details, failures = asyncio.run(query_details(ApiManager(), [stub]))

    assert details == []
    assert isinstance(failures[0].error, NotFoundError)


# ----------------------------------------------------------------------
# TMDBSeasonAPI: serie -> elegir temporadas -> detalle por temporada
# ----------------------------------------------------------------------

TV_SEARCH = {"total_results": 1, "results": [{"id": 1399, "name": "Game of Thrones", "first_air_date": "2011-04-17"}]}
TV_DETAIL = {
    "id": 1399,
    "name": "Game of Thrones",
    "status": "Ended",
    "seasons": [
        {"season_number": 1, "name": "Season 1", "air_date": "2011-04-17"},
        {"season_number": 2, "name": "Season 2", "air_date": "2012-04-01"},
    ],
}
SEASON_2 = {"season_number": 2, "name": "Season 2", "air_date": "2012-04-01", "episodes": [{"air_date": "2012-04-01"}]}


def _season_manager(settings, transport, fake_session):
    fake_session.add("search/tv", FakeResponse(payload=TV_SEARCH))
    fake_session.add("tv/1399/season/2", FakeResponse(payload=SEASON_2))
    fake_session.add("tv/1399", FakeResponse(payload=TV_DETAIL))
    return _manager(TMDBSeasonApi(settings, transport))


def test_season_import_asks_for_seasons_then_writes_each(settings, transport, fake_session):
    manager = _season_manager(settings, transport, fake_session)
    sink = RecordingSink()
    chooser = ScriptedChooser(lambda options: ChoiceOutcome.selection(options[-1:]))

    report = asyncio.run(import_by_title(manager, "Thrones", ["TMDBSeasonAPI"], chooser=chooser, sink=sink))

    assert report.ok
    assert report.outcome == ChoiceKind.SELECTION
    assert [r.id for r in chooser.presented[0]] == ["1399"]
    assert [r.id for r in chooser.presented[1]] == ["1399/season/1", "1399/season/2"]
    assert report.written == ["Media DB/series/Game of Thrones - Season 2 (2012).md"]
    assert sink.notes[0][2].payload.season_number == 2


def test_season_import_cancel_in_season_list(settings, transport, fake_session):
    manager = _season_manager(settings, transport, fake_session)
    answers = iter([ChoiceOutcome.selection, lambda _: ChoiceOutcome.cancel()])
    chooser = ScriptedChooser(lambda options: next(answers)(options))
    sink = RecordingSink()

    report = asyncio.run(import_by_title(manager, "Thrones", ["TMDBSeasonAPI"], chooser=chooser, sink=sink))

    assert report.outcome == ChoiceKind.CANCEL
    assert sink.notes == []


def test_series_seasons_only_for_season_api_series_stubs(settings, transport, fake_session):
    manager = _season_manager(settings, transport, fake_session)
    other = _api(titles=("x",))
    manager.register_api(other)

    stub = asyncio.run(manager.query("Thrones", ["TMDBSeasonAPI"])).records[0]
    seasons = asyncio.run(series_seasons(manager, stub))

    assert [s.id for s in seasons] == ["1399/season/1", "1399/season/2"]
    assert asyncio.run(series_seasons(manager, seasons[0])) is None
    assert asyncio.run(series_seasons(manager, other._results[0])) is None
