from __future__ import annotations

"""
mediadb/api_manager.py

Registro de adaptadores + coordinador de consultas.

Registro
--------
- ApiManager es un objeto explícito que se construye al arrancar (build_default_manager)
  y se pasa por referencia; no hay instancia global.
- El orden de registro es el orden de los resultados combinados.
- get_api_by_name: coincidencia exacta y, si no hay, normalizada (sin espacios,
  case-insensitive): "WikipediaAPI" encuentra "Wikipedia API".

Consulta (fan-out)
------------------
- query(title, api_names) lanza search_by_title en paralelo (una task por adaptador,
  sin límite de concurrencia) y espera a todas.
- Los fallos se aíslan por adaptador: QueryResult.records (orden de registro) +
  QueryResult.failures (uno por adaptador fallido). Un adaptador roto no tumba la query.
- Cancelación: todas las tasks se adjuntan al CancellationToken; si se cancela, la
  query completa lanza QueryCancelledError (no es un fallo por adaptador).

Sesión
------
QuerySession.query() reemplaza a la query anterior de la misma sesión: cancela su
token ("superseded") y la respuesta tardía nunca llega al caller.
"""

import asyncio
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Final

from mediadb import logger
from mediadb.cancellation import CancellationToken, ensure_token
from mediadb.clients.base import MediaApi
from mediadb.clients.boardgamegeek_client import BoardGameGeekApi
from mediadb.clients.comicvine_client import ComicVineApi
from mediadb.clients.giantbomb_client import GiantBombApi
from mediadb.clients.igdb_client import IGDBApi
from mediadb.clients.mal_client import MALApi, MALMangaApi
from mediadb.clients.mobygames_client import MobyGamesApi
from mediadb.clients.musicbrainz_client import MusicBrainzApi
from mediadb.clients.mydramalist_client import MyDramaListApi
from mediadb.clients.omdb_client import OMDbApi
from mediadb.clients.openlibrary_client import OpenLibraryApi
from mediadb.clients.rawg_client import RAWGApi
from mediadb.clients.steam_client import SteamApi
from mediadb.clients.tmdb_client import TMDBMovieApi, TMDBSeasonApi, TMDBSeriesApi
from mediadb.clients.vndb_client import VNDBApi
from mediadb.clients.wikipedia_client import WikipediaApi
from mediadb.date_formatter import DateFormatter
from mediadb.errors import NotFoundError, QueryCancelledError, QueryValidationError
from mediadb.http_transport import HttpTransport
from mediadb.media_type import MediaType
from mediadb.models import MediaRecord
from mediadb.settings import MediaDbSettings

# Orden de registro por defecto (= orden de merge)
DEFAULT_API_CLASSES: Final[tuple[type[MediaApi], ...]] = (
    OMDbApi,
    MALApi,
    MALMangaApi,
    WikipediaApi,
    MusicBrainzApi,
    SteamApi,
    TMDBSeriesApi,
    TMDBSeasonApi,
    TMDBMovieApi,
    BoardGameGeekApi,
    OpenLibraryApi,
    ComicVineApi,
    MobyGamesApi,
    GiantBombApi,
    IGDBApi,
    RAWGApi,
    VNDBApi,
    MyDramaListApi,
)

_WS_RE: Final[re.Pattern[str]] = re.compile(r"\s+")


def normalize_api_name(name: str) -> str:
    return _WS_RE.sub("", name).lower()


def validate_title(title: str, min_length: int = 1) -> str:
    """Título recortado; vacío o por debajo del mínimo -> QueryValidationError."""
    text = (title or "").strip()
    if len(text) < max(1, min_length):
        raise QueryValidationError(f"Query title must have at least {max(1, min_length)} character(s): {title!r}")
    return text


@dataclass(frozen=True)
class ApiFailure:
    api_name: str
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass(frozen=True)
class QueryResult:
    records: list[MediaRecord] = field(default_factory=list)
    failures: list[ApiFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __iter__(self) -> Iterator[MediaRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


class ApiManager:
    def __init__(self, *, min_title_length: int = 1) -> None:
        self._apis: list[MediaApi] = []
        self.min_title_length = max(1, int(min_title_length))

    # ------------------------------------------------------------------
    # Registro
    # ------------------------------------------------------------------

    @property
    def apis(self) -> tuple[MediaApi, ...]:
        return tuple(self._apis)

    @property
    def api_names(self) -> list[str]:
        return [api.api_name for api in self._apis]

    def register_api(self, api: MediaApi) -> None:
        if any(existing.api_name == api.api_name for existing in self._apis):
            raise ValueError(f"API already registered: {api.api_name!r}")
        self._apis.append(api)
        logger.debug_ctx("APIS", f"registered {api.api_name!r}")

    def get_api_by_name(self, name: str) -> MediaApi | None:
        for api in self._apis:
            if api.api_name == name:
                return api
        wanted = normalize_api_name(name)
        for api in self._apis:
            if normalize_api_name(api.api_name) == wanted:
                return api
        return None

    def get_apis_for_types(self, media_types: Iterable[MediaType]) -> list[MediaApi]:
        wanted = tuple(media_types)
        return [api for api in self._apis if api.has_type_overlap(wanted)]

    def _select(self, api_names: Iterable[str], media_types: Sequence[MediaType] | None) -> list[MediaApi]:
        wanted: set[int] = set()
        for name in api_names:
            api = self.get_api_by_name(name)
            if api is None:
                logger.warning(f"Unknown API {name!r} ignored")
                continue
            wanted.add(id(api))

        selected = [api for api in self._apis if id(api) in wanted]
        if media_types:
            selected = [api for api in selected if api.has_type_overlap(media_types)]
        return selected

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    async def query(
        self,
        title: str,
        api_names: Iterable[str],
        *,
        types: Sequence[MediaType] | None = None,
        token: CancellationToken | None = None,
    ) -> QueryResult:
        text = validate_title(title, self.min_title_length)
        tok = ensure_token(token)
        tok.raise_if_cancelled()

        selected = self._select(api_names, types)
        logger.info(f"Querying {len(selected)} API(s) for {text!r}")
        if not selected:
            return QueryResult()

        tasks = [asyncio.create_task(api.search_by_title(text, token=tok)) for api in selected]
        for task in tasks:
            tok.attach(task)  # type: ignore[arg-type]

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        tok.raise_if_cancelled()

        records: list[MediaRecord] = []
        failures: list[ApiFailure] = []
        for api, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, (KeyboardInterrupt, SystemExit)):
                    raise outcome
                failures.append(ApiFailure(api.api_name, outcome))
                logger.warning(f"{api.api_name} failed for {text!r}: {outcome!r}")
                continue
            for record in outcome:
                if not api.has_type(record.type):
                    continue
                if types and record.type not in types:
                    continue
                records.append(record)

        logger.info(f"Query {text!r}: {len(records)} record(s), {len(failures)} failed API(s)")
        return QueryResult(records=records, failures=failures)

    async def query_detailed_info_by_id(
        self,
        record_id: str,
        api_name: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        api = self.get_api_by_name(api_name)
        if api is None:
            raise NotFoundError(f"No API registered with name {api_name!r}", api_name=api_name)
        return await api.get_by_id(record_id, token=token)

    async def query_detailed_info(
        self,
        record: MediaRecord,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        return await self.query_detailed_info_by_id(record.id, record.data_source, token=token)


class QuerySession:
    """Sesión interactiva: solo la query más reciente puede entregar resultados."""

    def __init__(self, manager: ApiManager) -> None:
        self.manager = manager
        self._current: CancellationToken | None = None

    @property
    def current_token(self) -> CancellationToken | None:
        return self._current

    def cancel(self, reason: str = "cancelled") -> None:
        if self._current is not None:
            self._current.cancel(reason)

    async def query(
        self,
        title: str,
        api_names: Iterable[str],
        *,
        types: Sequence[MediaType] | None = None,
    ) -> QueryResult:
        if self._current is not None:
            self._current.cancel("superseded")

        tok = CancellationToken()
        self._current = tok
        try:
            result = await self.manager.query(title, api_names, types=types, token=tok)
        except asyncio.CancelledError:
            if tok.cancelled:
                raise QueryCancelledError(f"Query {tok.reason}") from None
            raise
        finally:
            if self._current is tok:
                self._current = None

        tok.raise_if_cancelled()
        return result


def build_default_manager(
    settings: MediaDbSettings | None = None,
    transport: HttpTransport | None = None,
    *,
    date_formatter: DateFormatter | None = None,
) -> ApiManager:
    """ApiManager con todos los adaptadores en el orden de registro por defecto."""
    cfg = settings or MediaDbSettings.from_env()
    http = transport or HttpTransport.from_settings(cfg)
    formatter = date_formatter or DateFormatter(cfg.date_format, cfg.date_locale)

    manager = ApiManager(min_title_length=cfg.query_min_title_length)
    for api_cls in DEFAULT_API_CLASSES:
        manager.register_api(api_cls(cfg, http, date_formatter=formatter))
    return manager
