from __future__ import annotations

"""
mediadb/clients/wikipedia_client.py

Cliente MediaWiki (en.wikipedia.org). Sin credenciales.

- search: action=query&list=search (srlimit=20) -> stubs Wiki, año vacío
- detalle: action=query&prop=info&inprop=url&pageids=<id>

Una respuesta 200 sin bloque "query" no es una búsqueda vacía: es basura
upstream y se reporta como RecordParseError.
"""

from typing import Final

from mediadb import config
from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, WikiPayload

_COMMON_PARAMS: Final[dict[str, str]] = {"action": "query", "format": "json", "utf8": "", "origin": "*"}


class WikipediaApi(MediaApi):
    API_NAME = "Wikipedia API"
    API_DESCRIPTION = "The API behind Wikipedia"
    API_URL = "https://www.wikipedia.com"
    TYPES = (MediaType.WIKI,)

    BASE_URL: str = config.WIKIPEDIA_API_URL

    def _query_block(self, data: object) -> FieldReader:
        r = self._reader(data)
        if not r.has("query"):
            raise RecordParseError(
                f"{self.API_NAME}: response without 'query' block",
                api_name=self.API_NAME,
                field="query",
            )
        return r.obj("query")

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        params = {**_COMMON_PARAMS, "list": "search", "srsearch": title, "srlimit": self.search_limit}
        data = await self._get_json(self.BASE_URL, token=token, params=params)

        out: list[MediaRecord] = []
        for item in self._query_block(data).obj_list("search"):
            name = item.req_str("title")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year="",
                    record_id=item.req_id("pageid"),
                    payload=WikiPayload(),
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
        params = {**_COMMON_PARAMS, "prop": "info", "inprop": "url", "pageids": record_id}
        data = await self._get_json(self.BASE_URL, token=token, params=params)

        pages = self._query_block(data).obj("pages")
        if not pages.raw:
            raise RecordParseError(f"{self.API_NAME}: no page for id {record_id}", api_name=self.API_NAME, field="pages")
        first_key = next(iter(pages.raw))
        page = pages.obj(first_key)
        if page.has("missing") or page.has("invalid"):
            raise RecordParseError(f"{self.API_NAME}: page {record_id} does not exist", api_name=self.API_NAME)

        name = page.req_str("title")
        full_url = page.opt_str("fullurl")
        return self._record(
            title=name,
            english_title=name,
            year="",
            record_id=page.req_id("pageid"),
            url=full_url,
            payload=WikiPayload(
                wiki_url=full_url,
                last_updated=self._date(page.opt_str("touched")),
                length=page.opt_int("length"),
            ),
        )
