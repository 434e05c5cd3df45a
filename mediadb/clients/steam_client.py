from __future__ import annotations

"""
mediadb/clients/steam_client.py

Cliente Steam (sin credenciales).

- search: descarga la lista global de apps y filtra por substring (case-insensitive),
  cortando en el límite de resultados. Steam no tiene búsqueda por título.
- detalle: store.steampowered.com/api/appdetails?appids=<id>
"""

from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord

STEAM_APP_LIST_URL: Final[str] = "https://api.steampowered.com/ISteamApps/GetAppList/v0002/"
STEAM_APP_DETAILS_URL: Final[str] = "https://store.steampowered.com/api/appdetails"


class SteamApi(MediaApi):
    API_NAME = "SteamAPI"
    API_DESCRIPTION = "A free API for all Steam games."
    API_URL = "http://www.steampowered.com/"
    TYPES = (MediaType.GAME,)

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        data = await self._get_json(STEAM_APP_LIST_URL, token=token, params={"format": "json"})

        needle = title.lower()
        out: list[MediaRecord] = []
        for app in self._reader(data).obj("applist").obj_list("apps"):
            name = app.opt_str("name")
            if needle not in name.lower():
                continue
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year="",
                    record_id=app.req_id("appid"),
                    payload=GamePayload(),
                )
            )
            if len(out) >= self.search_limit:
                break
        return out

    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        self._dbg(f"queried by id {record_id!r}")
        data = await self._get_json(STEAM_APP_DETAILS_URL, token=token, params={"appids": record_id})

        entry = self._reader(data).obj(str(record_id))
        if not entry.opt_bool("success", True) or not entry.has("data"):
            raise RecordParseError(f"{self.API_NAME}: API returned invalid data.", api_name=self.API_NAME, field=str(record_id))
        game = entry.obj("data")

        app_id = game.req_id("steam_appid")
        name = game.req_str("name")
        release = game.obj("release_date")
        release_text = release.opt_str("date")
        parsed = self.date_formatter.parse(release_text)
        return self._record(
            title=name,
            english_title=name,
            year=str(parsed.year) if parsed else "",
            record_id=app_id,
            url=f"https://store.steampowered.com/app/{app_id}",
            payload=GamePayload(
                genres=game.names("genres", "description"),
                online_rating=game.obj("metacritic").opt_float("score"),
                image=game.opt_str("header_image"),
                released=not release.opt_bool("coming_soon"),
                release_date=self._date(release_text) or "unknown",
            ),
        )
