from __future__ import annotations

"""
mediadb/clients/mobygames_client.py

Cliente MobyGames v1. Requiere MOBYGAMES_API_KEY.

El año sale de la primera plataforma (first_release_date); MobyGames no da
developers/publishers en /games, quedan vacíos.
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.fields import FieldReader, year_from_date
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord

MOBYGAMES_BASE: Final[str] = "https://api.mobygames.com/v1"


def _first_release(r: FieldReader) -> str:
    platforms = r.obj_list("platforms")
    return platforms[0].opt_str("first_release_date") if platforms else ""


class MobyGamesApi(MediaApi):
    API_NAME = "MobyGamesAPI"
    API_DESCRIPTION = "A free API for games."
    API_URL = MOBYGAMES_BASE
    TYPES = (MediaType.GAME,)

    BASE_URL: str = MOBYGAMES_BASE

    async def _games(self, params: dict[str, object], token: CancellationToken | None) -> list[FieldReader]:
        api_key = self._require_key(self.settings.mobygames_api_key)
        data = await self._get_json(f"{self.BASE_URL}/games", token=token, params={**params, "api_key": api_key})
        return self._reader(data).obj_list("games")

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        games = await self._games({"title": title, "limit": self.search_limit}, token)

        out: list[MediaRecord] = []
        for game in games:
            name = game.req_str("title")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=year_from_date(_first_release(game)),
                    record_id=game.req_id("game_id"),
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
        games = await self._games({"id": record_id}, token)
        if not games:
            raise RecordParseError(f"{self.API_NAME}: no game for id {record_id}", api_name=self.API_NAME, field="games")

        game = games[0]
        game_id = game.req_id("game_id")
        name = game.req_str("title")
        release = _first_release(game)
        return self._record(
            title=name,
            english_title=name,
            year=year_from_date(release),
            record_id=game_id,
            url=f"https://www.mobygames.com/game/{game_id}",
            payload=GamePayload(
                genres=game.names("genres", "genre_name"),
                online_rating=game.opt_float("moby_score"),
                image=game.obj("sample_cover").opt_str("image"),
                released=True,
                release_date=self._date(release) or "unknown",
            ),
        )
