from __future__ import annotations

"""
mediadb/clients/mydramalist_client.py

Cliente MyDramaList vía el proxy kuryana (scraper JSON). Sin credenciales.

- search: /search/q/<title> -> dramas clasificados por su `type` textual:
  contiene "movie" -> Movie; "series" / "show" / "drama" / "special" -> Series;
  cualquier otro se descarta (debug).
- detalle: /id/<slug>. Un payload con `error` es un UpstreamError.

Fechas upstream: "Jun 16, 2022" o rangos "Jun 16, 2022 - Aug 4, 2022".
"""

import re
from typing import Final
from urllib.parse import quote

from mediadb import config
from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import UpstreamError
from mediadb.fields import FieldReader
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, MoviePayload, SeriesPayload

MDL_DATE_FORMAT: Final[str] = "MMM D, YYYY"
MDL_WEB: Final[str] = "https://mydramalist.com"
_SERIES_MARKERS: Final[tuple[str, ...]] = ("series", "show", "drama", "special")
_DURATION_STRIP_RE: Final[re.Pattern[str]] = re.compile(r"[. ]")


def classify_drama(raw_type: str) -> MediaType | None:
    t = raw_type.lower()
    if "movie" in t:
        return MediaType.MOVIE
    if any(marker in t for marker in _SERIES_MARKERS):
        return MediaType.SERIES
    return None


def _year_after_comma(text: str) -> str:
    """'Jun 16, 2022' -> '2022'; 'Jun 16, 2022 - Aug 4, 2022' -> '2022'."""
    parts = text.split(",")
    if len(parts) < 2:
        return ""
    return parts[1].split("-")[0].strip()


def _list_or_single(r: FieldReader, key: str) -> tuple[str, ...]:
    value = r.get(key)
    if isinstance(value, str):
        return (value,) if value else ()
    return r.str_list(key)


class MyDramaListApi(MediaApi):
    API_NAME = "MyDramaListAPI"
    API_DESCRIPTION = "A free API for Asian Movies and Dramas"
    API_URL = "https://kuryana.vercel.app/"
    TYPES = (MediaType.MOVIE, MediaType.SERIES)

    BASE_URL: str = config.KURYANA_BASE_URL

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._get_json(f"{self.BASE_URL.rstrip('/')}/search/q/{quote(title, safe='')}", token=token)

        out: list[MediaRecord] = []
        for drama in self._reader(data).obj("results").obj_list("dramas"):
            raw_type = drama.opt_str("type")
            media_type = classify_drama(raw_type)
            if media_type is None:
                self._dbg(f"unsupported type {raw_type!r}")
                continue
            name = drama.req_str("title")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=drama.opt_str("year"),
                    record_id=drama.req_id("slug"),
                    sub_type=raw_type,
                    payload=MoviePayload() if media_type == MediaType.MOVIE else SeriesPayload(),
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
        r = self._reader(
            await self._get_json(f"{self.BASE_URL.rstrip('/')}/id/{quote(record_id, safe='')}", token=token)
        )
        if r.get("error"):
            raise UpstreamError(
                f"Received error from {self.API_NAME}: {r.opt_str('title')} {r.opt_str('info')}".rstrip(),
                api_name=self.API_NAME,
            )

        result = r.obj("data")
        details = result.obj("details")
        others = result.obj("others")
        raw_type = details.opt_str("type")
        media_type = classify_drama(raw_type)
        if media_type is None:
            raise UpstreamError(f"{self.API_NAME}: unsupported type {raw_type!r}", api_name=self.API_NAME)

        name = result.req_str("title")
        genres = _list_or_single(others, "genres")
        writer = _list_or_single(others, "screenwriter")
        duration = _DURATION_STRIP_RE.sub("", details.opt_str("duration"))
        actors = result.names("casts")
        network = details.opt_str("original_network")
        common = {
            "title": name,
            "english_title": name,
            "record_id": record_id,
            "url": f"{MDL_WEB}/{record_id}",
            "sub_type": raw_type,
        }

        if media_type == MediaType.MOVIE:
            release_date = details.opt_str("release_date")
            movie = MoviePayload(
                plot=result.opt_str("synopsis"),
                genres=genres,
                director=_list_or_single(others, "director"),
                writer=writer,
                studio=(network,) if network else (),
                duration=duration,
                online_rating=result.opt_float("rating"),
                actors=actors,
                image=result.opt_str("poster"),
                released=True,
                country=_list_or_single(details, "country"),
                age_rating=details.opt_str("content_rating"),
                premiere=self._date(release_date, MDL_DATE_FORMAT),
            )
            return self._record(**common, year=_year_after_comma(release_date), payload=movie)

        aired = details.opt_str("aired")
        aired_from, _, aired_to = aired.partition(" - ")
        series = SeriesPayload(
            plot=result.opt_str("synopsis"),
            genres=genres,
            writer=writer,
            studio=(network,) if network else (),
            episodes=details.opt_int("episodes"),
            duration=duration,
            online_rating=result.opt_float("rating"),
            actors=actors,
            image=result.opt_str("poster"),
            released=True,
            airing=False,
            aired_from=self._date(aired_from.strip(), MDL_DATE_FORMAT),
            aired_to=self._date(aired_to.strip(), MDL_DATE_FORMAT),
        )
        return self._record(**common, year=_year_after_comma(aired), payload=series)
