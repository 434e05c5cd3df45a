from __future__ import annotations

"""
mediadb/clients/omdb_client.py

Cliente OMDb (películas, series y juegos por IMDb id).

- search: GET /?s=<title>   -> stubs (tipos desconocidos se descartan)
- detalle: GET /?i=<imdbID> -> Movie / Series / Game

Particularidades del envelope:
- OMDb responde 200 incluso en error: {"Response": "False", "Error": "..."}.
  "Movie not found!" en búsqueda = lista vacía; cualquier otro Error -> UpstreamError.
- Campos multi-valor vienen como "A, B, C" y los vacíos como "N/A".
- El póster por defecto es _SX300; se pide _SX600.
"""

from typing import Final

from mediadb import config
from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import UpstreamError
from mediadb.fields import FieldReader, na_to_empty, split_list
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord, MoviePayload, SeriesPayload

OMDB_DATE_FORMAT: Final[str] = "DD MMM YYYY"
_NOT_FOUND_ERROR: Final[str] = "Movie not found!"

_TYPE_MAPPINGS: Final[dict[str, MediaType]] = {
    "movie": MediaType.MOVIE,
    "series": MediaType.SERIES,
    "game": MediaType.GAME,
}


class OMDbApi(MediaApi):
    API_NAME = "OMDbAPI"
    API_DESCRIPTION = "A free API for Movies, Series and Games."
    API_URL = "https://www.omdbapi.com/"
    TYPES = (MediaType.MOVIE, MediaType.SERIES, MediaType.GAME)

    BASE_URL: str = config.OMDB_BASE_URL

    async def _call(self, params: dict[str, object], token: CancellationToken | None) -> FieldReader:
        api_key = self._require_key(self.settings.omdb_api_key)
        data = await self._get_json(self.BASE_URL, token=token, params={**params, "apikey": api_key})
        return self._reader(data)

    def _envelope_error(self, r: FieldReader) -> str | None:
        if r.opt_str("Response", "True") == "False":
            return r.opt_str("Error", "unknown error")
        return None

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        r = await self._call({"s": title}, token)

        err = self._envelope_error(r)
        if err is not None:
            if err == _NOT_FOUND_ERROR:
                return []
            raise UpstreamError(f"Received error from {self.API_NAME}: {err}", api_name=self.API_NAME)

        out: list[MediaRecord] = []
        for item in r.obj_list("Search"):
            media_type = _TYPE_MAPPINGS.get(item.opt_str("Type").lower())
            if media_type is None:
                continue
            name = item.req_str("Title")
            common = {
                "title": name,
                "english_title": name,
                "year": item.opt_str("Year"),
                "record_id": item.req_id("imdbID"),
            }
            if media_type == MediaType.MOVIE:
                out.append(self._record(**common, payload=MoviePayload()))
            elif media_type == MediaType.SERIES:
                out.append(self._record(**common, payload=SeriesPayload()))
            else:
                out.append(self._record(**common, payload=GamePayload()))

        return self._limit(out)

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        r = await self._call({"i": record_id}, token)

        err = self._envelope_error(r)
        if err is not None:
            raise UpstreamError(f"Received error from {self.API_NAME}: {err}", api_name=self.API_NAME)

        raw_type = r.opt_str("Type").lower()
        media_type = _TYPE_MAPPINGS.get(raw_type)
        if media_type is None:
            raise UpstreamError(f"{raw_type} is an unsupported type.", api_name=self.API_NAME)

        imdb_id = r.req_id("imdbID")
        name = r.req_str("Title")
        common = {
            "title": name,
            "english_title": name,
            "year": r.opt_str("Year"),
            "record_id": imdb_id,
            "url": f"https://www.imdb.com/title/{imdb_id}/",
        }
        genres = split_list(r.opt_str("Genre"))
        rating = r.opt_float("imdbRating")
        image = na_to_empty(r.opt_str("Poster")).replace("_SX300", "_SX600")
        released_on = self._date(r.opt_str("Released"), OMDB_DATE_FORMAT)

        if media_type == MediaType.MOVIE:
            payload = MoviePayload(
                plot=na_to_empty(r.opt_str("Plot")),
                genres=genres,
                director=split_list(r.opt_str("Director")),
                writer=split_list(r.opt_str("Writer")),
                duration=na_to_empty(r.opt_str("Runtime")),
                online_rating=rating,
                actors=split_list(r.opt_str("Actors")),
                image=image,
                released=True,
                country=split_list(r.opt_str("Country")),
                box_office=na_to_empty(r.opt_str("BoxOffice")),
                age_rating=na_to_empty(r.opt_str("Rated")),
                premiere=released_on,
            )
            return self._record(**common, payload=payload)

        if media_type == MediaType.SERIES:
            series = SeriesPayload(
                plot=na_to_empty(r.opt_str("Plot")),
                genres=genres,
                writer=split_list(r.opt_str("Writer")),
                duration=na_to_empty(r.opt_str("Runtime")),
                online_rating=rating,
                actors=split_list(r.opt_str("Actors")),
                image=image,
                released=True,
                aired_from=released_on,
            )
            return self._record(**common, payload=series)

        game = GamePayload(
            genres=genres,
            online_rating=rating,
            image=image,
            released=True,
            release_date=released_on,
        )
        return self._record(**common, payload=game)
