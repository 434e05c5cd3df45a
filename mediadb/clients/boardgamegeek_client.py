from __future__ import annotations

"""
mediadb/clients/boardgamegeek_client.py

Cliente BoardGameGeek (XML API v1, sin credenciales).

- search: /search?search=<title>
- detalle: /boardgame/<id>?stats=1

La respuesta es XML: se parsea con xml.etree.ElementTree y cualquier documento
malformado se reporta como RecordParseError.
"""

import xml.etree.ElementTree as ET
from typing import Final

from mediadb.cancellation import CancellationToken
from mediadb.clients.base import MediaApi
from mediadb.errors import RecordParseError
from mediadb.media_type import MediaType
from mediadb.models import BoardGamePayload, MediaRecord

BGG_XML_API: Final[str] = "https://api.geekdo.com/xmlapi"


def _text(node: ET.Element | None, default: str = "") -> str:
    if node is None or node.text is None:
        return default
    return node.text.strip()


def _float(node: ET.Element | None) -> float:
    try:
        return float(_text(node, "0") or "0")
    except ValueError:
        return 0.0


def _int(node: ET.Element | None) -> int:
    try:
        return int(float(_text(node, "0") or "0"))
    except ValueError:
        return 0


def _primary_name(game: ET.Element) -> str:
    for name in game.findall("name"):
        if name.get("primary") == "true":
            return _text(name)
    return ""


class BoardGameGeekApi(MediaApi):
    API_NAME = "BoardGameGeekAPI"
    API_DESCRIPTION = "A free API for BoardGameGeek things."
    API_URL = BGG_XML_API
    TYPES = (MediaType.BOARDGAME,)

    BASE_URL: str = BGG_XML_API

    async def _fetch_xml(self, path: str, token: CancellationToken | None, params: dict[str, object]) -> ET.Element:
        text = await self.transport.get_text(
            f"{self.BASE_URL}/{path}",
            api_name=self.API_NAME,
            token=token,
            params=params,
        )
        try:
            return ET.fromstring(text)
        except ET.ParseError as exc:
            raise RecordParseError(f"{self.API_NAME}: invalid XML ({exc})", api_name=self.API_NAME) from exc

    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        self._dbg(f"queried by title {title!r}")
        root = await self._fetch_xml("search", token, {"search": title})

        out: list[MediaRecord] = []
        for game in root.iter("boardgame"):
            game_id = game.get("objectid")
            if not game_id:
                raise RecordParseError(f"{self.API_NAME}: boardgame without objectid", api_name=self.API_NAME, field="objectid")
            name = _primary_name(game) or _text(game.find("name"))
            out.append(
                self._record(
                    title=name,
                    english_title=name,
                    year=_text(game.find("yearpublished")),
                    record_id=game_id,
                    payload=BoardGamePayload(),
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
        root = await self._fetch_xml(f"boardgame/{record_id}", token, {"stats": 1})

        game = root if root.tag == "boardgame" else root.find("boardgame")
        if game is None:
            raise RecordParseError(f"{self.API_NAME}: no boardgame for id {record_id}", api_name=self.API_NAME)
        # BGG responde 200 con <error> para ids inexistentes
        error = game.find("error")
        if error is not None:
            raise RecordParseError(f"{self.API_NAME}: {error.get('message', 'unknown id')}", api_name=self.API_NAME)

        name = _primary_name(game)
        if not name:
            raise RecordParseError(f"{self.API_NAME}: boardgame {record_id} without primary name", api_name=self.API_NAME, field="name")
        year = _text(game.find("yearpublished"))
        ratings = game.find("statistics/ratings")

        return self._record(
            title=name,
            english_title=name,
            year="" if year == "0" else year,
            record_id=record_id,
            url=f"https://boardgamegeek.com/boardgame/{record_id}",
            payload=BoardGamePayload(
                genres=tuple(_text(n) for n in game.findall("boardgamecategory")),
                online_rating=_float(ratings.find("average") if ratings is not None else None),
                complexity_rating=_float(ratings.find("averageweight") if ratings is not None else None),
                min_players=_int(game.find("minplayers")),
                max_players=_int(game.find("maxplayers")),
                playtime=f"{_text(game.find('playingtime'), 'unknown')} minutes",
                publishers=tuple(_text(n) for n in game.findall("boardgamepublisher")),
                image=_text(game.find("image")),
                released=True,
            ),
        )
