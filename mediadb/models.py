from __future__ import annotations

"""
mediadb/models.py

Modelo de entidades: unión etiquetada de registros de media.

Diseño
------
- MediaRecord es el "sobre" común: title / englishTitle / year / dataSource / url / id /
  subType + `payload` (variante concreta).
- Cada variante es un dataclass inmutable (MoviePayload, SeriesPayload, ...) con su
  conjunto cerrado de campos y su bloque `user_data` (valores por defecto locales).
- `record.type` NO se guarda: se deriva de la clase del payload (classify), de modo que
  nunca puede divergir de la variante ni venir del usuario.

Serialización
-------------
- to_dict(): mapa plano camelCase (forma del frontmatter de la nota) con `userData`
  anidado. Es la entrada de la capa de remapeo (property_mapping.py).
- record_from_dict(): operación inversa (re-import de notas ya exportadas).
"""

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import ClassVar, Final, Union

from typing_extensions import TypeAlias

from mediadb.errors import RecordParseError
from mediadb.media_type import MediaType

MEDIA_DB_TAG: Final[str] = "mediaDB"

# ============================================================================
# Bloques userData (solo los escribe el usuario local)
# ============================================================================


@dataclass(frozen=True)
class WatchUserData:
    watched: bool = False
    last_watched: str = ""
    personal_rating: float = 0.0


@dataclass(frozen=True)
class ReadUserData:
    read: bool = False
    last_read: str = ""
    personal_rating: float = 0.0


@dataclass(frozen=True)
class PlayUserData:
    played: bool = False
    personal_rating: float = 0.0


@dataclass(frozen=True)
class RatingUserData:
    personal_rating: float = 0.0


@dataclass(frozen=True)
class NoUserData:
    pass


UserData: TypeAlias = Union[WatchUserData, ReadUserData, PlayUserData, RatingUserData, NoUserData]

# ============================================================================
# Variantes (payloads)
# ============================================================================


@dataclass(frozen=True)
class MoviePayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.MOVIE

    plot: str = ""
    genres: tuple[str, ...] = ()
    director: tuple[str, ...] = ()
    writer: tuple[str, ...] = ()
    studio: tuple[str, ...] = ()
    duration: str = ""
    online_rating: float = 0.0
    actors: tuple[str, ...] = ()
    image: str = ""
    released: bool = False
    country: tuple[str, ...] = ()
    box_office: str = ""
    age_rating: str = ""
    streaming_services: tuple[str, ...] = ()
    premiere: str = ""
    user_data: WatchUserData = field(default_factory=WatchUserData)


@dataclass(frozen=True)
class SeriesPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.SERIES

    plot: str = ""
    genres: tuple[str, ...] = ()
    writer: tuple[str, ...] = ()
    studio: tuple[str, ...] = ()
    episodes: int = 0
    duration: str = ""
    online_rating: float = 0.0
    actors: tuple[str, ...] = ()
    image: str = ""
    released: bool = False
    streaming_services: tuple[str, ...] = ()
    airing: bool = False
    aired_from: str = ""
    aired_to: str = ""
    user_data: WatchUserData = field(default_factory=WatchUserData)


@dataclass(frozen=True)
class SeasonPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.SEASON

    season_number: int = 0
    season_title: str = ""
    plot: str = ""
    genres: tuple[str, ...] = ()
    writer: tuple[str, ...] = ()
    studio: tuple[str, ...] = ()
    episodes: int = 0
    duration: str = ""
    online_rating: float = 0.0
    actors: tuple[str, ...] = ()
    image: str = ""
    released: bool = False
    streaming_services: tuple[str, ...] = ()
    airing: bool = False
    aired_from: str = ""
    aired_to: str = ""
    user_data: WatchUserData = field(default_factory=WatchUserData)


@dataclass(frozen=True)
class GamePayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.GAME

    developers: tuple[str, ...] = ()
    publishers: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    online_rating: float = 0.0
    image: str = ""
    released: bool = False
    release_date: str = ""
    user_data: PlayUserData = field(default_factory=PlayUserData)


@dataclass(frozen=True)
class BookPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.BOOK

    author: str = ""
    plot: str = ""
    pages: int = 0
    image: str = ""
    online_rating: float = 0.0
    # ISBN-10 puede acabar en "X": se guardan como texto.
    isbn: str = ""
    isbn13: str = ""
    released: bool = False
    user_data: ReadUserData = field(default_factory=ReadUserData)


@dataclass(frozen=True)
class ComicMangaPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.COMIC_MANGA

    plot: str = ""
    alternate_titles: tuple[str, ...] = ()
    genres: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    chapters: int = 0
    volumes: int = 0
    online_rating: float = 0.0
    image: str = ""
    released: bool = False
    status: str = ""
    publishers: tuple[str, ...] = ()
    published_from: str = ""
    published_to: str = ""
    user_data: ReadUserData = field(default_factory=ReadUserData)


@dataclass(frozen=True)
class ComicBookPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.COMIC_BOOK

    creators: tuple[str, ...] = ()
    publishers: tuple[str, ...] = ()
    plot: str = ""
    issues: int = 0
    image: str = ""
    online_rating: float = 0.0
    status: str = ""
    released: bool = False
    published_from: str = ""
    published_to: str = ""
    user_data: ReadUserData = field(default_factory=ReadUserData)


@dataclass(frozen=True)
class BoardGamePayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.BOARDGAME

    genres: tuple[str, ...] = ()
    online_rating: float = 0.0
    complexity_rating: float = 0.0
    min_players: int = 0
    max_players: int = 0
    playtime: str = ""
    publishers: tuple[str, ...] = ()
    image: str = ""
    released: bool = False
    user_data: PlayUserData = field(default_factory=PlayUserData)


@dataclass(frozen=True)
class MusicReleasePayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.MUSIC_RELEASE

    genres: tuple[str, ...] = ()
    artists: tuple[str, ...] = ()
    image: str = ""
    rating: float = 0.0
    user_data: RatingUserData = field(default_factory=RatingUserData)


@dataclass(frozen=True)
class WikiPayload:
    MEDIA_TYPE: ClassVar[MediaType] = MediaType.WIKI

    wiki_url: str = ""
    last_updated: str = ""
    length: int = 0
    article: str = ""
    user_data: NoUserData = field(default_factory=NoUserData)


MediaPayload: TypeAlias = Union[
    MoviePayload,
    SeriesPayload,
    SeasonPayload,
    GamePayload,
    BookPayload,
    ComicMangaPayload,
    ComicBookPayload,
    BoardGamePayload,
    MusicReleasePayload,
    WikiPayload,
]

PAYLOAD_CLASSES: Final[dict[MediaType, type]] = {
    MediaType.MOVIE: MoviePayload,
    MediaType.SERIES: SeriesPayload,
    MediaType.SEASON: SeasonPayload,
    MediaType.GAME: GamePayload,
    MediaType.BOOK: BookPayload,
    MediaType.COMIC_MANGA: ComicMangaPayload,
    MediaType.COMIC_BOOK: ComicBookPayload,
    MediaType.BOARDGAME: BoardGamePayload,
    MediaType.MUSIC_RELEASE: MusicReleasePayload,
    MediaType.WIKI: WikiPayload,
}

_TYPE_BY_PAYLOAD: Final[dict[type, MediaType]] = {cls: t for t, cls in PAYLOAD_CLASSES.items()}


def classify(payload: MediaPayload) -> MediaType:
    """Tipo de la variante. Es la única fuente de `MediaRecord.type`."""
    try:
        return _TYPE_BY_PAYLOAD[type(payload)]
    except KeyError:
        raise TypeError(f"Unknown media payload: {type(payload).__name__}") from None


# ============================================================================
# Sobre común
# ============================================================================


@dataclass(frozen=True)
class MediaRecord:
    """
    Registro normalizado. (data_source, id) es la clave natural.

    Un stub (search) y un detalle (get_by_id) comparten forma: el stub simplemente
    lleva el payload con sus valores por defecto.
    """

    title: str
    english_title: str
    year: str
    data_source: str
    id: str
    payload: MediaPayload
    url: str = ""
    sub_type: str = ""

    def __post_init__(self) -> None:
        classify(self.payload)

    @property
    def type(self) -> MediaType:
        return classify(self.payload)

    @property
    def user_data(self) -> UserData:
        return self.payload.user_data

    @property
    def natural_key(self) -> tuple[str, str]:
        return self.data_source, self.id

    def with_user_data(self, user_data: UserData) -> "MediaRecord":
        """Copia con otro bloque userData (uso exclusivo de la capa de persistencia)."""
        expected = type(self.payload.user_data)
        if not isinstance(user_data, expected):
            raise TypeError(f"{self.type.value} expects {expected.__name__}, got {type(user_data).__name__}")
        return dataclasses.replace(self, payload=dataclasses.replace(self.payload, user_data=user_data))

    def tags(self) -> list[str]:
        return get_tags(self)

    def summary(self) -> str:
        return get_summary(self)

    def to_dict(self) -> dict[str, object]:
        return record_to_dict(self)


# ============================================================================
# Tags / summary (por variante)
# ============================================================================


def get_tags(record: MediaRecord) -> list[str]:
    t = record.type
    if t in (MediaType.MOVIE, MediaType.SERIES, MediaType.SEASON):
        return [MEDIA_DB_TAG, "tv", t.value]
    if t == MediaType.COMIC_MANGA:
        return [MEDIA_DB_TAG, record.sub_type or t.value]
    if t == MediaType.COMIC_BOOK:
        return [MEDIA_DB_TAG, "comicbook"]
    if t == MediaType.MUSIC_RELEASE:
        tags = [MEDIA_DB_TAG, "music"]
        if record.sub_type:
            tags.append(record.sub_type)
        return tags
    return [MEDIA_DB_TAG, t.value]


def get_summary(record: MediaRecord) -> str:
    p = record.payload
    base = f"{record.english_title} ({record.year})"
    if isinstance(p, BookPayload) and p.author:
        return f"{base} - {p.author}"
    if isinstance(p, ComicBookPayload) and p.publishers:
        return f"{base} - {', '.join(p.publishers)}"
    if isinstance(p, MusicReleasePayload):
        summary = f"{record.title} ({record.year})"
        return f"{summary} - {', '.join(p.artists)}" if p.artists else summary
    if isinstance(p, WikiPayload):
        return record.title
    return base


# ============================================================================
# Serialización (mapa plano camelCase)
# ============================================================================

_CAMEL_RE: Final[re.Pattern[str]] = re.compile(r"_([a-z0-9])")

_ENVELOPE_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("sub_type", "subType"),
    ("title", "title"),
    ("english_title", "englishTitle"),
    ("year", "year"),
    ("data_source", "dataSource"),
    ("url", "url"),
    ("id", "id"),
)


def to_camel(name: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def _plain(value: object) -> object:
    if isinstance(value, tuple):
        return list(value)
    return value


def _dataclass_to_camel(obj: object, *, skip: tuple[str, ...] = ()) -> dict[str, object]:
    out: dict[str, object] = {}
    for f in dataclasses.fields(obj):  # type: ignore[arg-type]
        if f.name in skip:
            continue
        out[to_camel(f.name)] = _plain(getattr(obj, f.name))
    return out


def record_to_dict(record: MediaRecord) -> dict[str, object]:
    """Mapa plano: type, envelope, campos de la variante y `userData` anidado."""
    out: dict[str, object] = {"type": record.type.value}
    for attr, key in _ENVELOPE_FIELDS:
        out[key] = getattr(record, attr)
    out.update(_dataclass_to_camel(record.payload, skip=("user_data",)))
    out["userData"] = _dataclass_to_camel(record.payload.user_data)
    return out


def _field_default(f: dataclasses.Field[object]) -> object:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return None


def _coerce(value: object, default: object, *, key: str) -> object:
    """Convierte `value` al tipo del valor por defecto del campo."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
    elif isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
    elif isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                pass
    elif isinstance(default, str):
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    elif isinstance(default, tuple):
        if isinstance(value, (list, tuple)):
            return tuple(str(v) for v in value)
        if isinstance(value, str):
            return (value,) if value else ()
    raise RecordParseError(f"Invalid value for {key!r}: {value!r}", field=key)


def _build_dataclass(cls: type, data: Mapping[str, object], *, skip: tuple[str, ...] = ()) -> dict[str, object]:
    kwargs: dict[str, object] = {}
    for f in dataclasses.fields(cls):
        if f.name in skip:
            continue
        key = to_camel(f.name)
        if key not in data or data[key] is None:
            continue
        kwargs[f.name] = _coerce(data[key], _field_default(f), key=key)
    return kwargs


def record_from_dict(data: Mapping[str, object]) -> MediaRecord:
    """
    Reconstruye un MediaRecord desde un mapa plano (nota re-importada).

    - `type` obligatorio ("manga" legacy -> comicManga).
    - Claves desconocidas se ignoran; las ausentes toman el valor por defecto.
    - userData: bloque anidado o, en notas antiguas, claves planas.
    """
    raw_type = data.get("type")
    try:
        media_type = MediaType.parse(raw_type)
    except ValueError:
        raise RecordParseError(f"Unknown media type: {raw_type!r}", field="type") from None

    payload_cls = PAYLOAD_CLASSES[media_type]
    payload_fields = {f.name: f for f in dataclasses.fields(payload_cls)}
    user_data_cls = type(_field_default(payload_fields["user_data"]))

    ud_raw = data.get("userData")
    ud_source: Mapping[str, object] = ud_raw if isinstance(ud_raw, Mapping) else data
    user_data = user_data_cls(**_build_dataclass(user_data_cls, ud_source))

    payload = payload_cls(**_build_dataclass(payload_cls, data, skip=("user_data",)), user_data=user_data)

    envelope: dict[str, str] = {}
    for attr, key in _ENVELOPE_FIELDS:
        value = data.get(key)
        envelope[attr] = "" if value is None else str(value)

    for required in ("title", "data_source", "id"):
        if not envelope[required]:
            raise RecordParseError(f"Missing required field {to_camel(required)!r}", field=to_camel(required))

    return MediaRecord(
        title=envelope["title"],
        english_title=envelope["english_title"] or envelope["title"],
        year=envelope["year"],
        data_source=envelope["data_source"],
        id=envelope["id"],
        url=envelope["url"],
        sub_type=envelope["sub_type"],
        payload=payload,
    )
