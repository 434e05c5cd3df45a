from __future__ import annotations

"""
mediadb/clients/openlibrary_client.py

Cliente OpenLibrary (libros, sin credenciales).

Ambas operaciones usan /search.json: la búsqueda por título y el detalle vía
`q=key:<work key>`. Los ISBN se separan en ISBN-10 / ISBN-13 y se guardan como
texto (un ISBN-10 puede terminar en "X").
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader
from mediadb.media_type import MediaType
from mediadb.models import BookPayload, MediaRecord

OPENLIBRARY_BASE: Final[str] = "https://openlibrary.org"
COVERS_BASE: Final[str] = "https://covers.openlibrary.org/b/OLID"

_DETAIL_FIELDS: Final[str] = (
    "key,title,author_name,number_of_pages_median,first_publish_year,isbn,"
    "ratings_score,first_sentence,title_suggest,rating*,cover_edition_key"
)


def _year(r: FieldReader) -> str:
    year = r.opt_int("first_publish_year")
    return str(year) if year else "unknown"


def split_isbns(values: tuple[str, ...]) -> tuple[str, str]:
    """Primer ISBN-10 y primer ISBN-13 de la lista ("" si no hay)."""
    isbn10 = next((v for v in values if len(v) == 10), "")
    isbn13 = next((v for v in values if len(v) == 13), "")
    return isbn10, isbn13


class OpenLibraryApi(MediaApi):
    API_NAME = "OpenLibraryAPI"
    API_DESCRIPTION = "A free API for books"
    API_URL = "https://openlibrary.org/"
    TYPES = (MediaType.BOOK,)

    BASE_URL: str = OPENLIBRARY_BASE

    async def _search(self, params: dict[str, object], token: CancellationToken | None) -> list[FieldReader]:
        data = await self._get_json(f"{self.BASE_URL}/search.json", token=token, params=params)
        return self._reader(data).obj_list("docs")

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        docs = await self._search({"q": title, "limit": self.search_limit}, token)

        out: list[MediaRecord] = []
        for doc in docs:
            name = doc.req_str("title")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=_year(doc),
                    record_id=doc.req_id("key"),
                    payload=BookPayload(author=", ".join(doc.str_list("author_name"))),
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
        docs = await self._search({"q": f"key:{record_id}", "fields": _DETAIL_FIELDS}, token)
        if not docs:
            raise RecordParseError(f"{self.API_NAME}: no book for key {record_id}", api_name=self.API_NAME, field="docs")

        doc = docs[0]
        key = doc.req_id("key")
        name = doc.req_str("title")
        isbn, isbn13 = split_isbns(doc.str_list("isbn"))
        cover = doc.opt_str("cover_edition_key")

        return self._record(
            title=name,
            english_title=name,
            year=_year(doc),
            record_id=key,
            url=f"{OPENLIBRARY_BASE}{key}",
            payload=BookPayload(
                author=", ".join(doc.str_list("author_name")),
                pages=doc.opt_int("number_of_pages_median"),
                online_rating=doc.opt_float("ratings_average"),
                image=f"{COVERS_BASE}/{cover}-L.jpg" if cover else "",
                isbn=isbn,
                isbn13=isbn13,
                released=True,
            ),
        )
