from __future__ import annotations

"""
mediadb/clients/comicvine_client.py

Cliente ComicVine (volúmenes de cómic). Requiere COMICVINE_API_KEY.

- search: /search/?resources=volume&query=<title>
- detalle: /volume/4050-<id>/
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import UpstreamError
from mediadb.fields import FieldReader
from mediadb.media_type import MediaType
from mediadb.models import ComicBookPayload, MediaRecord

COMICVINE_BASE: Final[str] = "https://comicvine.gamespot.com/api"
VOLUME_PREFIX: Final[str] = "4050"

# status_code del envelope ComicVine: 1 = OK
_CV_OK: Final[int] = 1


def _publishers(r: FieldReader) -> tuple[str, ...]:
    name = r.obj("publisher").opt_str("name")
    return (name,) if name else ()


class ComicVineApi(MediaApi):
    API_NAME = "ComicVineAPI"
    API_DESCRIPTION = "A free API for comic books."
    API_URL = COMICVINE_BASE
    TYPES = (MediaType.COMIC_BOOK,)

    BASE_URL: str = COMICVINE_BASE

    async def _fetch(self, path: str, token: CancellationToken | None, params: dict[str, object] | None = None) -> FieldReader:
        api_key = self._require_key(self.settings.comicvine_api_key)
        data = await self._get_json(
            f"{self.BASE_URL}/{path}",
            token=token,
            params={**(params or {}), "api_key": api_key, "format": "json"},
        )
        r = self._reader(data)
        status = r.opt_int("status_code", _CV_OK)
        if status != _CV_OK:
            raise UpstreamError(
                f"Received error from {self.API_NAME}: {r.opt_str('error', 'unknown error')}",
                api_name=self.API_NAME,
            )
        return r

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        r = await self._fetch("search/", token, {"resources": "volume", "query": title, "limit": self.search_limit})

        out: list[MediaRecord] = []
        for item in r.obj_list("results"):
            name = item.req_str("name")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=item.opt_str("start_year"),
                    record_id=item.req_id("id"),
                    payload=ComicBookPayload(publishers=_publishers(item)),
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
        r = (await self._fetch(f"volume/{VOLUME_PREFIX}-{record_id}/", token)).obj("results")

        name = r.req_str("name")
        start_year = r.opt_str("start_year")
        return self._record(
            title=name,
            english_title=name,
            year=start_year,
            record_id=r.req_id("id"),
            url=r.opt_str("site_detail_url"),
            payload=ComicBookPayload(
                plot=r.opt_str("deck"),
                creators=r.names("people"),
                issues=r.opt_int("count_of_issues"),
                online_rating=r.opt_float("score"),
                image=r.obj("image").opt_str("original_url"),
                released=True,
                publishers=_publishers(r),
                published_from=start_year or "unknown",
                published_to="unknown",
                status=r.opt_str("status"),
            ),
        )
