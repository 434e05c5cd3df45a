from __future__ import annotations

from typing import Final

from mediadb.config_base import (
    _get_env_bool,
    _get_env_str,
    _parse_env_csv_tokens,
    _parse_env_kv_map,
)

# ============================================================
# Credenciales (solo lectura; None => adapter no configurado)
# ============================================================

OMDB_API_KEY: str | None = _get_env_str("OMDB_API_KEY", None)
TMDB_API_KEY: str | None = _get_env_str("TMDB_API_KEY", None)
MOBYGAMES_API_KEY: str | None = _get_env_str("MOBYGAMES_API_KEY", None)
GIANTBOMB_API_KEY: str | None = _get_env_str("GIANTBOMB_API_KEY", None)
COMICVINE_API_KEY: str | None = _get_env_str("COMICVINE_API_KEY", None)
IGDB_CLIENT_ID: str | None = _get_env_str("IGDB_CLIENT_ID", None)
IGDB_CLIENT_SECRET: str | None = _get_env_str("IGDB_CLIENT_SECRET", None)
RAWG_API_KEY: str | None = _get_env_str("RAWG_API_KEY", None)

# ============================================================
# Filtros de contenido / tipos deshabilitados por API
# ============================================================

# Se inyecta en la query upstream (include_adult / sfw), nunca se filtra en cliente.
MEDIADB_SFW_FILTER: bool = _get_env_bool("MEDIADB_SFW_FILTER", True)

# "OMDbAPI: game|series, MALAPI: movie" (o JSON object)
_DISABLED_MEDIA_TYPES_RAW: Final[str] = _get_env_str("MEDIADB_DISABLED_MEDIA_TYPES", "") or ""


def _parse_disabled_media_types(raw: str) -> dict[str, tuple[str, ...]]:
    out: dict[str, tuple[str, ...]] = {}
    for api_name, types_raw in _parse_env_kv_map(raw).items():
        tokens = _parse_env_csv_tokens(types_raw, sep="|", lower=False)
        if tokens:
            out[api_name] = tuple(tokens)
    return out


MEDIADB_DISABLED_MEDIA_TYPES: dict[str, tuple[str, ...]] = _parse_disabled_media_types(
    _DISABLED_MEDIA_TYPES_RAW
)

# ============================================================
# Endpoints base (overridable para mirrors / tests manuales)
# ============================================================

OMDB_BASE_URL: str = _get_env_str("OMDB_BASE_URL", "https://www.omdbapi.com/") or "https://www.omdbapi.com/"
WIKIPEDIA_API_URL: str = (
    _get_env_str("WIKIPEDIA_API_URL", "https://en.wikipedia.org/w/api.php")
    or "https://en.wikipedia.org/w/api.php"
)
JIKAN_BASE_URL: str = _get_env_str("JIKAN_BASE_URL", "https://api.jikan.moe/v4") or "https://api.jikan.moe/v4"
TMDB_BASE_URL: str = _get_env_str("TMDB_BASE_URL", "https://api.themoviedb.org/3") or "https://api.themoviedb.org/3"
KURYANA_BASE_URL: str = (
    _get_env_str("KURYANA_BASE_URL", "https://kuryana.vercel.app") or "https://kuryana.vercel.app"
)
