from __future__ import annotations

"""
mediadb/clients/rawg_client.py

Cliente RAWG (videojuegos). Requiere RAWG_API_KEY.
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.fields import year_from_date
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord

RAWG_BASE: Final[str] = "https://api.rawg.io/api"


class RAWGApi(MediaApi):
    API_NAME = "RAWGAPI"
    API_DESCRIPTION = "A large open video game database."
    API_URL = RAWG_BASE
    TYPES = (MediaType.GAME,)

    BASE_URL: str = RAWG_BASE

    async def _fetch(self, path: str, token: CancellationToken | None, params: dict[str, object] | None = None) -> object:
        api_key = self._require_key(self.settings.rawg_api_key)
        return await self._get_json(f"{self.BASE_URL}/{path}", token=token, params={**(params or {}), "key": api_key})

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._fetch("games", token, {"search": title, "page_size": self.search_limit})

        out: list[MediaRecord] = []
        for game in self._reader(data).obj_list("results"):
            name = game.req_str("name")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=year_from_date(game.opt_str("released")),
                    record_id=game.req_id("id"),
                    payload=GamePayload(image=game.opt_str("background_image")),
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
        game = self._reader(await self._fetch(f"games/{record_id}", token))

        name = game.req_str("name")
        released = game.opt_str("released")
        return self._record(
            title=game.opt_str("name_original") or name,
            english_title=name,
            year=year_from_date(released),
            record_id=game.req_id("id"),
            url=game.opt_str("website") or f"https://rawg.io/games/{game.opt_str('slug')}",
            payload=GamePayload(
                developers=game.names("developers"),
                publishers=game.names("publishers"),
                genres=game.names("genres"),
                online_rating=game.opt_float("metacritic"),
                image=game.opt_str("background_image"),
                released=bool(released),
                release_date=self._date(released),
            ),
        )
