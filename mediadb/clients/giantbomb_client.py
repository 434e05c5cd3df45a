from __future__ import annotations

"""
mediadb/clients/giantbomb_client.py

Cliente GiantBomb. Requiere GIANTBOMB_API_KEY. Los ids son los `guid`
("3030-xxxx").
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import year_from_date
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord

GIANTBOMB_BASE: Final[str] = "https://www.giantbomb.com/api"


class GiantBombApi(MediaApi):
    API_NAME = "GiantBombAPI"
    API_DESCRIPTION = "A free API for games."
    API_URL = GIANTBOMB_BASE
    TYPES = (MediaType.GAME,)

    BASE_URL: str = GIANTBOMB_BASE

    async def _fetch(self, path: str, token: CancellationToken | None, params: dict[str, object] | None = None) -> object:
        api_key = self._require_key(self.settings.giantbomb_api_key)
        return await self._get_json(
            f"{self.BASE_URL}/{path}",
            token=token,
            params={**(params or {}), "api_key": api_key, "format": "json"},
        )

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._fetch("games", token, {"filter": f"name:{title}", "limit": self.search_limit})

        out: list[MediaRecord] = []
        for item in self._reader(data).obj_list("results"):
            name = item.req_str("name")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=year_from_date(item.opt_str("original_release_date")),
                    record_id=item.req_id("guid"),
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
        r = self._reader(await self._fetch(f"game/{record_id}/", token))
        if not r.has("results"):
            raise RecordParseError(
                f"No results found for ID {record_id} in {self.API_NAME}.",
                api_name=self.API_NAME,
                field="results",
            )
        game = r.obj("results")
        name = game.req_str("name")
        release = game.opt_str("original_release_date")

        return self._record(
            title=name,
            english_title=name,
            year=year_from_date(release),
            record_id=game.req_id("guid"),
            url=game.opt_str("site_detail_url"),
            payload=GamePayload(
                developers=game.names("developers"),
                publishers=game.names("publishers"),
                genres=game.names("genres"),
                image=game.obj("image").opt_str("super_url"),
                released=True,
                release_date=self._date(release),
            ),
        )
