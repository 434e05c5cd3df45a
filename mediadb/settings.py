from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from mediadb import config, logger
from mediadb.media_type import MediaType


@dataclass(frozen=True)
class MediaDbSettings:
    """
    Settings inmutables que leen los clientes. El core nunca los escribe.

    - Credenciales: None => el cliente lanza ConfigError antes de tocar la red.
    - disabled_media_types: por apiName, tipos que ese cliente no debe producir.
    - from_env() congela los valores de mediadb.config; en tests se
      construye directamente.
    """

    omdb_api_key: str | None = None
    tmdb_api_key: str | None = None
    mobygames_api_key: str | None = None
    giantbomb_api_key: str | None = None
    comicvine_api_key: str | None = None
    igdb_client_id: str | None = None
    igdb_client_secret: str | None = None
    rawg_api_key: str | None = None

    sfw_filter: bool = True
    disabled_media_types: Mapping[str, frozenset[MediaType]] = field(default_factory=dict)

    search_limit: int = 20
    query_min_title_length: int = 1

    http_timeout_seconds: float = 10.0
    http_retry_total: int = 2
    http_retry_backoff_factor: float = 0.5
    http_pool_maxsize: int = 16
    http_user_agent: str = "mediadb/0.5.0"

    date_format: str = "YYYY-MM-DD"
    date_locale: str = "en"

    def disabled_types_for(self, api_name: str) -> frozenset[MediaType]:
        return self.disabled_media_types.get(api_name, frozenset())

    @staticmethod
    def from_env() -> "MediaDbSettings":
        return MediaDbSettings(
            omdb_api_key=config.OMDB_API_KEY,
            tmdb_api_key=config.TMDB_API_KEY,
            mobygames_api_key=config.MOBYGAMES_API_KEY,
            giantbomb_api_key=config.GIANTBOMB_API_KEY,
            comicvine_api_key=config.COMICVINE_API_KEY,
            igdb_client_id=config.IGDB_CLIENT_ID,
            igdb_client_secret=config.IGDB_CLIENT_SECRET,
            rawg_api_key=config.RAWG_API_KEY,
            sfw_filter=config.MEDIADB_SFW_FILTER,
            disabled_media_types=parse_disabled_media_types(config.MEDIADB_DISABLED_MEDIA_TYPES),
            search_limit=config.MEDIADB_SEARCH_LIMIT,
            query_min_title_length=config.MEDIADB_QUERY_MIN_TITLE_LENGTH,
            http_timeout_seconds=config.MEDIADB_HTTP_TIMEOUT_SECONDS,
            http_retry_total=config.MEDIADB_HTTP_RETRY_TOTAL,
            http_retry_backoff_factor=config.MEDIADB_HTTP_RETRY_BACKOFF_FACTOR,
            http_pool_maxsize=config.MEDIADB_HTTP_POOL_MAXSIZE,
            http_user_agent=config.MEDIADB_HTTP_USER_AGENT,
            date_format=config.MEDIADB_DATE_FORMAT,
            date_locale=config.MEDIADB_DATE_LOCALE,
        )


def parse_disabled_media_types(raw: Mapping[str, tuple[str, ...]]) -> dict[str, frozenset[MediaType]]:
    """Tipos desconocidos se descartan (la config nunca rompe el arranque)."""
    out: dict[str, frozenset[MediaType]] = {}
    for api_name, tokens in raw.items():
        parsed: set[MediaType] = set()
        for token in tokens:
            try:
                parsed.add(MediaType.parse(token))
            except ValueError:
                logger.warning(f"Unknown media type {token!r} for {api_name!r} ignored", always=True)
        if parsed:
            out[api_name] = frozenset(parsed)
    return out
