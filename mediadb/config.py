from __future__ import annotations

"""
mediadb/config.py

Namespace de configuración agregado.

- Re-exporta las constantes de config_base / config_apis / config_http.
- mediadb/logger.py lo lee desde sys.modules (sin importarlo) para resolver
  SILENT_MODE / DEBUG_MODE / LOG_LEVEL / LOGGER_FILE_*.

El resto del paquete debe importar desde el config_<área>.py concreto.
"""

from mediadb.config_apis import (  # noqa: F401
    COMICVINE_API_KEY,
    GIANTBOMB_API_KEY,
    IGDB_CLIENT_ID,
    IGDB_CLIENT_SECRET,
    JIKAN_BASE_URL,
    KURYANA_BASE_URL,
    MEDIADB_DISABLED_MEDIA_TYPES,
    MEDIADB_SFW_FILTER,
    MOBYGAMES_API_KEY,
    OMDB_API_KEY,
    OMDB_BASE_URL,
    RAWG_API_KEY,
    TMDB_API_KEY,
    TMDB_BASE_URL,
    WIKIPEDIA_API_URL,
)
from mediadb.config_base import (  # noqa: F401
    BASE_DIR,
    DEBUG_MODE,
    HTTP_DEBUG,
    LOG_LEVEL,
    LOGGER_FILE_DIR,
    LOGGER_FILE_ENABLED,
    LOGGER_FILE_PATH,
    PROJECT_DIR,
    SILENT_MODE,
)
from mediadb.config_http import (  # noqa: F401
    MEDIADB_CONTACT_EMAIL,
    MEDIADB_DATE_FORMAT,
    MEDIADB_DATE_LOCALE,
    MEDIADB_HTTP_POOL_MAXSIZE,
    MEDIADB_HTTP_RETRY_BACKOFF_FACTOR,
    MEDIADB_HTTP_RETRY_TOTAL,
    MEDIADB_HTTP_TIMEOUT_SECONDS,
    MEDIADB_HTTP_USER_AGENT,
    MEDIADB_QUERY_MIN_TITLE_LENGTH,
    MEDIADB_SEARCH_LIMIT,
    MEDIADB_VERSION,
)
