from __future__ import annotations

"""
mediadb/clients/igdb_client.py

Cliente IGDB v4 (juegos). Credenciales Twitch: IGDB_CLIENT_ID + IGDB_CLIENT_SECRET.

Token
-----
- Client-credentials grant contra id.twitch.tv; se cachea en un único slot con
  caducidad = ahora + expires_in - 60s.
- Solo se refresca si ha caducado. Un 401 con token cacheado (revocado antes de
  tiempo) invalida el slot, refresca y reintenta exactamente una vez.

Consultas
---------
POST /games con cuerpo Apicalypse (texto plano). involved_companies se reparte en
developers / publishers según sus flags booleanos.
"""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.date_formatter import DateFormatter
from mediadb.errors import AuthError, RecordParseError
from mediadb.fields import FieldReader
from mediadb.http_transport import HttpTransport
from mediadb.media_type import MediaType
from mediadb.models import GamePayload, MediaRecord
from mediadb.settings import MediaDbSettings

IGDB_BASE: Final[str] = "https://api.igdb.com/v4"
TWITCH_TOKEN_URL: Final[str] = "https://id.twitch.tv/oauth2/token"
TOKEN_EXPIRY_MARGIN_SECONDS: Final[float] = 60.0

_SEARCH_FIELDS: Final[str] = "name, cover.url, first_release_date, summary, total_rating"
_DETAIL_FIELDS: Final[str] = (
    "name, cover.url, first_release_date, summary, total_rating, url, genres.name, "
    "involved_companies.company.name, involved_companies.developer, involved_companies.publisher"
)


def apicalypse_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def cover_url(r: FieldReader) -> str:
    url = r.obj("cover").opt_str("url")
    if not url:
        return ""
    url = url.replace("t_thumb", "t_cover_big")
    return f"https:{url}" if url.startswith("//") else url


def release_date(r: FieldReader) -> str:
    """Timestamp unix (segundos, UTC) -> 'YYYY-MM-DD'; ausente -> ''."""
    ts = r.opt_int("first_release_date")
    if not ts:
        return ""
    return datetime.fromtimestamp(ts, tz=timezone.utc).date().isoformat()


class IGDBApi(MediaApi):
    API_NAME = "IGDBAPI"
    API_DESCRIPTION = "A free API for games (Requires Twitch Client ID & Secret)."
    API_URL = IGDB_BASE
    TYPES = (MediaType.GAME,)

    BASE_URL: str = IGDB_BASE
    TOKEN_URL: str = TWITCH_TOKEN_URL

    def __init__(
        self,
        settings: MediaDbSettings,
        transport: HttpTransport,
        *,
        date_formatter: DateFormatter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, transport, date_formatter=date_formatter)
        self._clock = clock
        self._access_token = ""
        self._token_expiry = 0.0

    # ------------------------------------------------------------------
    # Token cache
    # ------------------------------------------------------------------

    def _credentials(self) -> tuple[str, str]:
        client_id = self._require_key(self.settings.igdb_client_id, "Client ID")
        client_secret = self._require_key(self.settings.igdb_client_secret, "Client Secret")
        return client_id, client_secret

    def invalidate_token(self) -> None:
        self._access_token = ""
        self._token_expiry = 0.0

    async def get_auth_token(self, *, token: CancellationToken | None = None) -> str:
        now = self._clock()
        if self._access_token and now < self._token_expiry:
            return self._access_token

        client_id, client_secret = self._credentials()
        self._dbg("refreshing Twitch auth token")
        data = await self._post_json(
            self.TOKEN_URL,
            token=token,
            params={
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "client_credentials",
            },
        )
        r = self._reader(data)
        self._access_token = r.req_str("access_token")
        self._token_expiry = now + r.opt_float("expires_in") - TOKEN_EXPIRY_MARGIN_SECONDS
        return self._access_token

    async def _post_games(self, body: str, token: CancellationToken | None) -> list[FieldReader]:
        client_id, _ = self._credentials()
        access_token = await self.get_auth_token(token=token)
        headers = {
            "Client-ID": client_id,
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "Content-Type": "text/plain",
        }
        data = await self._post_json(f"{self.BASE_URL}/games", token=token, headers=headers, data=body)
        if not isinstance(data, list):
            raise RecordParseError(f"{self.API_NAME}: expected a list of games", api_name=self.API_NAME)
        return [self._reader(item, f"[{i}]") for i, item in enumerate(data)]

    def _has_cached_token(self) -> bool:
        return bool(self._access_token) and self._clock() < self._token_expiry

    async def _query_games(self, body: str, token: CancellationToken | None) -> list[FieldReader]:
        # Solo se reintenta si el token venía de caché; uno recién emitido y rechazado no se repite.
        cached = self._has_cached_token()
        try:
            return await self._post_games(body, token)
        except AuthError:
            if not cached:
                raise
            self._dbg("cached token rejected; refreshing and retrying once")
            self.invalidate_token()
        return await self._post_games(body, token)

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        body = f"search {apicalypse_string(title)}; fields {_SEARCH_FIELDS}; limit {self.search_limit};"
        games = await self._query_games(body, token)

        out: list[MediaRecord] = []
        for game in games:
            name = game.req_str("name")
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=release_date(game)[:4],
                    record_id=game.req_id("id"),
                    payload=GamePayload(image=cover_url(game)),
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
        if not record_id.strip().isdigit():
            raise RecordParseError(f"{self.API_NAME}: invalid id {record_id!r}", api_name=self.API_NAME, field="id")
        games = await self._query_games(f"fields {_DETAIL_FIELDS}; where id = {record_id.strip()};", token)
        if not games:
            raise RecordParseError(f"No result found for ID {record_id}", api_name=self.API_NAME)

        game = games[0]
        developers: list[str] = []
        publishers: list[str] = []
        for company in game.obj_list("involved_companies"):
            name = company.obj("company").req_str("name")
            if company.opt_bool("developer"):
                developers.append(name)
            if company.opt_bool("publisher"):
                publishers.append(name)

        date_str = release_date(game)
        name = game.req_str("name")
        return self._record(
            title=name,
            english_title=name,
            year=date_str[:4],
            record_id=game.req_id("id"),
            url=game.opt_str("url"),
            payload=GamePayload(
                developers=tuple(developers),
                publishers=tuple(publishers),
                genres=game.names("genres"),
                online_rating=game.opt_float("total_rating"),
                image=cover_url(game),
                released=True,
                release_date=self._date(date_str) if date_str else "",
            ),
        )
