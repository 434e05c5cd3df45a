from __future__ import annotations

"""
mediadb/clients/musicbrainz_client.py

Cliente MusicBrainz (release-groups). Sin credenciales, pero MusicBrainz exige
un User-Agent identificable con contacto: se envía el de settings.

La portada sale del Cover Art Archive; el rating (0-5) se escala a 0-10.
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.fields import FieldReader, year_from_date
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, MusicReleasePayload

MUSICBRAINZ_BASE: Final[str] = "https://musicbrainz.org/ws/2"
MUSICBRAINZ_WEB: Final[str] = "https://musicbrainz.org/release-group"
COVER_ART_BASE: Final[str] = "https://coverartarchive.org/release-group"


class MusicBrainzApi(MediaApi):
    API_NAME = "MusicBrainz API"
    API_DESCRIPTION = "Free API for music albums."
    API_URL = "https://musicbrainz.org/"
    TYPES = (MediaType.MUSIC_RELEASE,)

    BASE_URL: str = MUSICBRAINZ_BASE

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.http_user_agent}

    def _to_record(self, r: FieldReader, *, detail: bool) -> MediaRecord:
        mbid = r.req_id("id")
        name = r.req_str("title")
        payload = MusicReleasePayload(
            artists=r.names("artist-credit"),
            image=f"{COVER_ART_BASE}/{mbid}/front",
        )
        if detail:
            payload = MusicReleasePayload(
                genres=r.names("genres"),
                artists=payload.artists,
                image=payload.image,
                rating=r.obj("rating").opt_float("value") * 2,
            )
        return self._record(
            title=name,
            english_title=name,
            year=year_from_date(r.opt_str("first-release-date")),
            record_id=mbid,
            url=f"{MUSICBRAINZ_WEB}/{mbid}",
            sub_type=r.opt_str("primary-type"),
            payload=payload,
        )

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._get_json(
            f"{self.BASE_URL}/release-group",
            token=token,
            params={"query": title, "limit": self.search_limit, "fmt": "json"},
            headers=self._headers(),
        )
        groups = self._reader(data).obj_list("release-groups")
        return self._limit([self._to_record(g, detail=False) for g in groups])

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        data = await self._get_json(
            f"{self.BASE_URL}/release-group/{record_id}",
            token=token,
            params={"inc": "releases artists tags ratings genres", "fmt": "json"},
            headers=self._headers(),
        )
        return self._to_record(self._reader(data), detail=True)
