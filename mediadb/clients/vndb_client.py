from __future__ import annotations

"""
mediadb/clients/vndb_client.py

Cliente VNDB (API "Kana", novelas visuales como Game). Sin credenciales.

Todas las consultas son POST con un cuerpo JSON {filters, fields, ...}:
- /vn: búsqueda (sort=searchrank) y detalle por id
- /release: productores de las releases oficiales (no parches) -> publishers

Reglas de aplanado:
- genres: tags de contenido ("cont"), sin spoiler, rating >= 2, ordenados por rating
- publishers: developer-publishers primero, sin duplicados
- released: devstatus == 0
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader, dedupe, year_from_date
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord

VNDB_BASE: Final[str] = "https://api.vndb.org/kana"
TBA: Final[str] = "TBA"
MIN_TAG_RATING: Final[float] = 2.0
MAX_RELEASES: Final[int] = 100

_DETAIL_FIELDS: Final[str] = (
    "title, titles{title, lang}, devstatus, released, image{url}, rating, "
    "tags{name, category, rating, spoiler}, developers{name}"
)


def _english_title(vn: FieldReader) -> str:
    for t in vn.obj_list("titles"):
        if t.opt_str("lang") == "en":
            return t.req_str("title")
    return vn.req_str("title")


def _year(vn: FieldReader) -> str:
    released = vn.opt_str("released")
    if not released or released == TBA:
        return TBA
    return year_from_date(released, TBA)


def content_genres(vn: FieldReader) -> tuple[str, ...]:
    tags = [
        t
        for t in vn.obj_list("tags")
        if t.opt_str("category") == "cont" and t.opt_int("spoiler") == 0 and t.opt_float("rating") >= MIN_TAG_RATING
    ]
    tags.sort(key=lambda t: t.opt_float("rating"), reverse=True)
    return tuple(t.req_str("name") for t in tags)


def release_publishers(releases: list[FieldReader]) -> tuple[str, ...]:
    producers = [p for r in releases for p in r.obj_list("producers") if p.opt_bool("publisher")]
    # sort estable: conserva el orden upstream dentro de cada grupo
    producers.sort(key=lambda p: not p.opt_bool("developer"))
    return dedupe(p.req_str("name") for p in producers)


class VNDBApi(MediaApi):
    API_NAME = "VNDB API"
    API_DESCRIPTION = "A free API for visual novels."
    API_URL = VNDB_BASE
    TYPES = (MediaType.GAME,)

    BASE_URL: str = VNDB_BASE

    async def _post_query(self, endpoint: str, body: dict[str, object], token: CancellationToken | None) -> list[FieldReader]:
        data = await self._post_json(f"{self.BASE_URL}/{endpoint}", token=token, json_body=body)
        return self._reader(data).obj_list("results")

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        results = await self._post_query(
            "vn",
            {
                "filters": ["search", "=", title],
                "fields": "title, titles{title, lang}, released",
                "sort": "searchrank",
                "results": self.search_limit,
            },
            token,
        )

        out: list[MediaRecord] = []
        for vn in results:
            out.append(
                self._record(
                    title=vn.req_str("title"),
                    english_title=_english_title(vn),
                    year=_year(vn),
                    record_id=vn.req_id("id"),
                    payload=GamePayload(),
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
        results = await self._post_query("vn", {"filters": ["id", "=", record_id], "fields": _DETAIL_FIELDS}, token)
        if len(results) != 1:
            raise RecordParseError(
                f"Expected 1 result from query, got {len(results)}.",
                api_name=self.API_NAME,
                field="results",
            )
        vn = results[0]

        releases = await self._post_query(
            "release",
            {
                "filters": [
                    "and",
                    ["vn", "=", ["id", "=", record_id]],
                    ["official", "=", 1],
                    ["patch", "!=", 1],
                ],
                "fields": "producers.name, producers.publisher, producers.developer",
                "results": MAX_RELEASES,
            },
            token,
        )

        vn_id = vn.req_id("id")
        return self._record(
            title=vn.req_str("title"),
            english_title=_english_title(vn),
            year=_year(vn),
            record_id=vn_id,
            url=f"https://vndb.org/{vn_id}",
            payload=GamePayload(
                developers=vn.names("developers"),
                publishers=release_publishers(releases),
                genres=content_genres(vn),
                online_rating=vn.opt_float("rating"),
                image=vn.obj("image").opt_str("url"),
                released=vn.opt_int("devstatus", -1) == 0,
                release_date=self._date(vn.opt_str("released")),
            ),
        )
