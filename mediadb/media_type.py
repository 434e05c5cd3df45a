from __future__ import annotations

from enum import Enum
from typing import Final


class MediaType(str, Enum):
    """Tag de clasificación de un registro (clave de dispatch en todo el core)."""

    MOVIE = "movie"
    SERIES = "series"
    SEASON = "season"
    COMIC_MANGA = "comicManga"
    COMIC_BOOK = "comicBook"
    GAME = "game"
    MUSIC_RELEASE = "musicRelease"
    WIKI = "wiki"
    BOARDGAME = "boardgame"
    BOOK = "book"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: object) -> "MediaType":
        """
        Convierte texto a MediaType.

        Acepta el valor legacy "manga" (notas antiguas) como comicManga.
        Lanza ValueError si no es un tipo conocido.
        """
        if isinstance(raw, MediaType):
            return raw
        text = str(raw).strip()
        if text == "manga":
            return cls.COMIC_MANGA
        return cls(text)


MEDIA_TYPES: Final[tuple[MediaType, ...]] = tuple(MediaType)
