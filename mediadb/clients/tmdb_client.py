from __future__ import annotations

"""
mediadb/clients/tmdb_client.py

Clientes The Movie Database (v3). Autenticación: Bearer <TMDB_API_KEY>.

- TMDBMovieApi: /search/movie + /movie/{id}?append_to_response=credits
- TMDBSeriesApi: /search/tv + /tv/{id}?append_to_response=credits
- TMDBSeasonApi: /search/tv (+ nº de temporadas por serie) y
  /tv/{id}/season/{n}; los ids de temporada tienen forma "<tvId>/season/<n>".

`include_adult` refleja el filtro SFW. Campos ausentes upstream -> "unknown"
en año/fechas de emisión, como muestra la propia web de TMDB.
"""

import asyncio
import re
from typing import Final

from mediadb import config
from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import MediaDbError, NotFoundError, QueryCancelledError, QueryValidationError
from mediadb.fields import FieldReader, year_from_date
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, MoviePayload, SeasonPayload, SeriesPayload

TMDB_IMAGE_BASE: Final[str] = "https://image.tmdb.org/t/p/w780"
TMDB_WEB_BASE: Final[str] = "https://www.themoviedb.org"
UNKNOWN: Final[str] = "unknown"
MAX_ACTORS: Final[int] = 5

_RELEASED_STATUSES: Final[frozenset[str]] = frozenset({"Returning Series", "Cancelled", "Ended"})
_AIRING_STATUS: Final[str] = "Returning Series"
_SEASON_ID_RE: Final[re.Pattern[str]] = re.compile(r"^(\d+)/season/(\d+)$")


def season_id(tv_id: str, season_number: int) -> str:
    return f"{tv_id}/season/{season_number}"


def is_season_id(record_id: str) -> bool:
    return _SEASON_ID_RE.match(record_id.strip()) is not None


def parse_season_id(record_id: str) -> tuple[str, int]:
    m = _SEASON_ID_RE.match(record_id.strip())
    if not m:
        raise QueryValidationError(
            f'Invalid season id "{record_id}". Expected format "<series_id>/season/<season_number>".',
            api_name="TMDBSeasonAPI",
        )
    return m.group(1), int(m.group(2))


def _poster(r: FieldReader) -> str:
    path = r.opt_str("poster_path")
    return f"{TMDB_IMAGE_BASE}{path}" if path else ""


def _year(text: str) -> str:
    return year_from_date(text, UNKNOWN)


def _cast(r: FieldReader) -> tuple[str, ...]:
    return r.obj("credits").names("cast")[:MAX_ACTORS]


def _crew(r: FieldReader, job: str) -> tuple[str, ...]:
    return tuple(c.req_str("name") for c in r.obj("credits").obj_list("crew") if c.opt_str("job") == job)


def _first_runtime(r: FieldReader) -> str:
    runtimes = r.str_list("episode_run_time")
    return runtimes[0] if runtimes else ""


class _TMDBApi(MediaApi):
    API_URL = "https://www.themoviedb.org/"
    BASE_URL: str = config.TMDB_BASE_URL

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._require_key(self.settings.tmdb_api_key)}"}

    async def _fetch(self, path: str, token: CancellationToken | None, params: dict[str, object] | None = None) -> FieldReader:
        headers = self._headers()
        data = await self._get_json(f"{self.BASE_URL.rstrip('/')}/{path}", token=token, params=params, headers=headers)
        return self._reader(data)

    async def _search(self, kind: str, title: str, token: CancellationToken | None) -> list[FieldReader]:
        r = await self._fetch(
            f"search/{kind}",
            token,
            {"query": title, "include_adult": "false" if self.settings.sfw_filter else "true"},
        )
        if r.opt_int("total_results") == 0:
            return []
        return r.obj_list("results")[: self.search_limit]


class TMDBMovieApi(_TMDBApi):
    API_NAME = "TMDBMovieAPI"
    API_DESCRIPTION = "A community built Movie DB."
    TYPES = (MediaType.MOVIE,)

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        out: list[MediaRecord] = []
        for item in await self._search("movie", title, token):
            out.append(
                self._record(
                    title=item.opt_str("original_title") or item.req_str("title"),
                    english_title=item.req_str("title"),
                    year=_year(item.opt_str("release_date")),
                    record_id=item.req_id("id"),
                    payload=MoviePayload(),
                )
            )
        return self._limit(out)

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        r = await self._fetch(f"movie/{record_id}", token, {"append_to_response": "credits"})

        tmdb_id = r.req_id("id")
        release_date = r.opt_str("release_date")
        runtime = r.opt_int("runtime")
        return self._record(
            title=r.opt_str("original_title") or r.req_str("title"),
            english_title=r.req_str("title"),
            year=_year(release_date),
            record_id=tmdb_id,
            url=f"{TMDB_WEB_BASE}/movie/{tmdb_id}",
            payload=MoviePayload(
                plot=r.opt_str("overview"),
                genres=r.names("genres"),
                writer=_crew(r, "Screenplay"),
                director=_crew(r, "Director"),
                studio=r.names("production_companies"),
                duration=str(runtime) if runtime else UNKNOWN,
                online_rating=r.opt_float("vote_average"),
                actors=_cast(r),
                image=_poster(r),
                released=r.opt_str("status") == "Released",
                premiere=self._date(release_date) or UNKNOWN,
            ),
        )


class TMDBSeriesApi(_TMDBApi):
    API_NAME = "TMDBSeriesAPI"
    API_DESCRIPTION = "A community built Series DB."
    TYPES = (MediaType.SERIES,)

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        out: list[MediaRecord] = []
        for item in await self._search("tv", title, token):
            out.append(
                self._record(
                    title=item.opt_str("original_name") or item.req_str("name"),
                    english_title=item.req_str("name"),
                    year=_year(item.opt_str("first_air_date")),
                    record_id=item.req_id("id"),
                    payload=SeriesPayload(),
                )
            )
        return self._limit(out)

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        r = await self._fetch(f"tv/{record_id}", token, {"append_to_response": "credits"})

        tmdb_id = r.req_id("id")
        status = r.opt_str("status")
        airing = status == _AIRING_STATUS
        first_air = r.opt_str("first_air_date")
        return self._record(
            title=r.opt_str("original_name") or r.req_str("name"),
            english_title=r.req_str("name"),
            year=_year(first_air),
            record_id=tmdb_id,
            url=f"{TMDB_WEB_BASE}/tv/{tmdb_id}",
            payload=SeriesPayload(
                plot=r.opt_str("overview"),
                genres=r.names("genres"),
                writer=r.names("created_by"),
                studio=r.names("production_companies"),
                episodes=r.opt_int("number_of_episodes"),
                duration=_first_runtime(r) or UNKNOWN,
                online_rating=r.opt_float("vote_average"),
                actors=_cast(r),
                image=_poster(r),
                released=status in _RELEASED_STATUSES,
                airing=airing,
                aired_from=self._date(first_air) or UNKNOWN,
                aired_to=UNKNOWN if airing else (self._date(r.opt_str("last_air_date")) or UNKNOWN),
            ),
        )


class TMDBSeasonApi(_TMDBApi):
    API_NAME = "TMDBSeasonAPI"
    API_DESCRIPTION = "A community built Series DB (seasons)."
    TYPES = (MediaType.SEASON,)

    async def _season_count(self, tv_id: str, token: CancellationToken | None) -> int:
        """Nº de temporadas de una serie; best-effort (0 si la llamada falla)."""
        try:
            r = await self._fetch(f"tv/{tv_id}", token)
        except QueryCancelledError:
            raise
        except MediaDbError as exc:
            self._dbg(f"season count for {tv_id} unavailable: {exc!r}")
            return 0
        return len(r.obj_list("seasons"))

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        """Una entrada por serie; season_number = nº total de temporadas."""
        self._dbg(f"queried by title {title!r}")
        results = await self._search("tv", title, token)
        tv_ids = [item.req_id("id") for item in results]
        counts = await asyncio.gather(*(self._season_count(tv_id, token) for tv_id in tv_ids))

        out: list[MediaRecord] = []
        for item, tv_id, total_seasons in zip(results, tv_ids, counts):
            name = item.opt_str("name") or item.opt_str("original_name")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=_year(item.opt_str("first_air_date")),
                    record_id=tv_id,
                    payload=SeasonPayload(season_title=name, season_number=total_seasons),
                )
            )
        return self._limit(out)

    async def get_seasons_for_series(
        self,
        tv_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        """Stubs de todas las temporadas de una serie (ids "<tvId>/season/<n>")."""
        r = await self._fetch(f"tv/{tv_id}", token)
        series_name = r.opt_str("name")

        out: list[MediaRecord] = []
        for season in r.obj_list("seasons"):
            number = season.opt_int("season_number")
            title_text = f"{series_name} - Season {number}"
            out.append(
                self._record(
                    title=title_text,
                    english_title=title_text,
                    year=_year(season.opt_str("air_date")),
                    record_id=season_id(tv_id, number),
                    payload=SeasonPayload(season_title=season.opt_str("name") or title_text, season_number=number),
                )
            )
        return out

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        """
        Detalle de una temporada.

        Acepta "<tvId>/season/<n>" o el id de serie de un stub de búsqueda; en ese
        caso se resuelve a la última temporada (la que indica el stub).
        """
        self._dbg(f"queried by id {record_id!r}")
        if record_id.strip().isdigit():
            tv_id = record_id.strip()
            series = await self._fetch(f"tv/{tv_id}", token, {"append_to_response": "credits"})
            numbers = [s.opt_int("season_number") for s in series.obj_list("seasons")]
            if not numbers:
                raise NotFoundError(f"Series {tv_id} has no seasons", api_name=self.api_name)
            number = max(numbers)
        else:
            tv_id, number = parse_season_id(record_id)
            series = await self._fetch(f"tv/{tv_id}", token, {"append_to_response": "credits"})

        season = await self._fetch(f"tv/{tv_id}/season/{number}", token)

        season_number = season.opt_int("season_number", number)
        title_text = f"{series.opt_str('name')} - Season {season_number}"
        air_date = season.opt_str("air_date")
        episodes = season.obj_list("episodes")
        last_air = episodes[-1].opt_str("air_date") if episodes else ""
        status = series.opt_str("status")

        return self._record(
            title=title_text,
            english_title=title_text,
            year=_year(air_date),
            record_id=season_id(tv_id, season_number),
            url=f"{TMDB_WEB_BASE}/tv/{tv_id}/season/{season_number}",
            payload=SeasonPayload(
                season_title=season.opt_str("name") or title_text,
                season_number=season_number,
                episodes=len(episodes),
                aired_from=self._date(air_date) or UNKNOWN,
                aired_to=self._date(last_air) or UNKNOWN,
                plot=season.opt_str("overview"),
                image=_poster(season),
                genres=series.names("genres"),
                writer=series.names("created_by"),
                studio=series.names("production_companies"),
                duration=_first_runtime(series),
                online_rating=season.opt_float("vote_average"),
                actors=_cast(series),
                released=status in _RELEASED_STATUSES,
                airing=status == _AIRING_STATUS,
            ),
        )
