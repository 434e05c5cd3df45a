from __future__ import annotations

"""
mediadb/clients/mal_client.py

Clientes Jikan (MyAnimeList no oficial). Sin credenciales.

- MALApi: anime -> Movie (movie/special/desconocido) o Series (tv/ova)
- MALMangaApi: manga -> ComicManga (la búsqueda ya trae el detalle completo)

El filtro SFW se inyecta como parámetro `sfw` de la query, nunca en cliente.
"""

from typing import Final

from mediadb import config
from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader
from mediadb.media_type import MediaType
from mediadb.models import ComicMangaPayload, MediaRecord, MoviePayload, SeriesPayload

_ANIME_SUBTYPES: Final[dict[str, str]] = {
    "movie": "movie",
    "special": "special",
    "tv": "series",
    "ova": "ova",
}
_SERIES_SUBTYPES: Final[frozenset[str]] = frozenset({"series", "ova"})

_MANGA_SUBTYPES: Final[dict[str, str]] = {
    "manga": "manga",
    "manhwa": "manhwa",
    "doujinshi": "doujin",
    "one-shot": "oneshot",
    "manhua": "manhua",
    "light novel": "light-novel",
    "novel": "novel",
}


def _titles(r: FieldReader) -> tuple[str, str]:
    title = r.req_str("title")
    return title, r.opt_str("title_english") or title


def _image(r: FieldReader) -> str:
    return r.obj("images").obj("jpg").opt_str("image_url")


def _prop_year(r: FieldReader, block: str) -> str:
    year = r.obj(block).obj("prop").obj("from").opt_int("year")
    return str(year) if year else ""


class _JikanApi(MediaApi):
    API_URL = "https://jikan.moe/"
    BASE_URL: str = config.JIKAN_BASE_URL

    async def _fetch(self, path: str, token: CancellationToken | None, params: dict[str, object] | None = None) -> object:
        return await self._get_json(f"{self.BASE_URL.rstrip('/')}/{path}", token=token, params=params)

    def _search_params(self, title: str) -> dict[str, object]:
        return {"q": title, "limit": self.search_limit, "sfw": "true" if self.settings.sfw_filter else "false"}

    def _single(self, data: object, record_id: str) -> FieldReader:
        r = self._reader(data)
        if not r.has("data"):
            raise RecordParseError(
                f"No data found for ID {record_id} in {self.API_NAME}.",
                api_name=self.API_NAME,
                field="data",
            )
        return r.obj("data")


class MALApi(_JikanApi):
    API_NAME = "MALAPI"
    API_DESCRIPTION = "A free API for Anime. Some results may take a long time to load."
    TYPES = (MediaType.MOVIE, MediaType.SERIES)

    def _year(self, r: FieldReader) -> str:
        year = r.opt_int("year")
        return str(year) if year else _prop_year(r, "aired")

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._fetch("anime", token, self._search_params(title))

        out: list[MediaRecord] = []
        for item in self._reader(data).obj_list("data"):
            sub_type = _ANIME_SUBTYPES.get(item.opt_str("type").lower(), "")
            name, english = _titles(item)
            payload = SeriesPayload() if sub_type in _SERIES_SUBTYPES else MoviePayload()
            out.append(
                self._record(
                    title=name,
                    english_title=english,
                    year=self._year(item),
                    record_id=item.req_id("mal_id"),
                    sub_type=sub_type,
                    payload=payload,
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
        r = self._single(await self._fetch(f"anime/{record_id}/full", token), record_id)

        sub_type = _ANIME_SUBTYPES.get(r.opt_str("type").lower(), "")
        name, english = _titles(r)
        aired = r.obj("aired")
        genres = r.names("genres")
        studio = r.names("studios")
        streaming = r.names("streaming")

        if sub_type in _SERIES_SUBTYPES:
            payload: MoviePayload | SeriesPayload = SeriesPayload(
                plot=r.opt_str("synopsis"),
                genres=genres,
                studio=studio,
                episodes=r.opt_int("episodes"),
                duration=r.opt_str("duration"),
                online_rating=r.opt_float("score"),
                image=_image(r),
                released=True,
                streaming_services=streaming,
                airing=r.opt_bool("airing"),
                aired_from=self._date(aired.opt_str("from")),
                aired_to=self._date(aired.opt_str("to")),
            )
        else:
            payload = MoviePayload(
                plot=r.opt_str("synopsis"),
                genres=genres,
                studio=studio,
                duration=r.opt_str("duration"),
                online_rating=r.opt_float("score"),
                image=_image(r),
                released=True,
                age_rating=r.opt_str("rating"),
                streaming_services=streaming,
                premiere=self._date(aired.opt_str("from")),
            )

        return self._record(
            title=name,
            english_title=english,
            year=self._year(r),
            record_id=r.req_id("mal_id"),
            url=r.opt_str("url"),
            sub_type=sub_type,
            payload=payload,
        )


class MALMangaApi(_JikanApi):
    API_NAME = "MALAPI Manga"
    API_DESCRIPTION = "A free API for Manga. Some results may take a long time to load."
    TYPES = (MediaType.COMIC_MANGA,)

    def _to_record(self, r: FieldReader) -> MediaRecord:
        name, english = _titles(r)
        published = r.obj("published")
        return self._record(
            title=name,
            english_title=english,
            year=_prop_year(r, "published"),
            record_id=r.req_id("mal_id"),
            url=r.opt_str("url"),
            sub_type=_MANGA_SUBTYPES.get(r.opt_str("type").lower(), ""),
            payload=ComicMangaPayload(
                plot=r.opt_str("synopsis"),
                alternate_titles=r.names("titles", "title"),
                genres=r.names("genres"),
                authors=r.names("authors"),
                chapters=r.opt_int("chapters"),
                volumes=r.opt_int("volumes"),
                online_rating=r.opt_float("score"),
                image=_image(r),
                released=True,
                status=r.opt_str("status"),
                published_from=self._date(published.opt_str("from")),
                published_to=self._date(published.opt_str("to")),
            ),
        )

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._fetch("manga", token, self._search_params(title))
        return self._limit([self._to_record(item) for item in self._reader(data).obj_list("data")])

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        r = self._single(await self._fetch(f"manga/{record_id}/full", token), record_id)
        return self._to_record(r)
