from __future__ import annotations

from mediadb.config_base import (
    _cap_float_min,
    _cap_int,
    _get_env_float,
    _get_env_int,
    _get_env_str,
)

# ============================================================
# HTTP (requests.Session + urllib3 Retry)
# ============================================================

MEDIADB_HTTP_TIMEOUT_SECONDS: float = _cap_float_min(
    "MEDIADB_HTTP_TIMEOUT_SECONDS",
    _get_env_float("MEDIADB_HTTP_TIMEOUT_SECONDS", 10.0),
    min_v=0.5,
)

MEDIADB_HTTP_RETRY_TOTAL: int = _cap_int(
    "MEDIADB_HTTP_RETRY_TOTAL",
    _get_env_int("MEDIADB_HTTP_RETRY_TOTAL", 2),
    min_v=0,
    max_v=10,
)

MEDIADB_HTTP_RETRY_BACKOFF_FACTOR: float = _cap_float_min(
    "MEDIADB_HTTP_RETRY_BACKOFF_FACTOR",
    _get_env_float("MEDIADB_HTTP_RETRY_BACKOFF_FACTOR", 0.5),
    min_v=0.0,
)

MEDIADB_HTTP_POOL_MAXSIZE: int = _cap_int(
    "MEDIADB_HTTP_POOL_MAXSIZE",
    _get_env_int("MEDIADB_HTTP_POOL_MAXSIZE", 16),
    min_v=1,
    max_v=64,
)

MEDIADB_VERSION: str = "0.5.0"

MEDIADB_CONTACT_EMAIL: str = (
    _get_env_str("MEDIADB_CONTACT_EMAIL", "mediadb@example.org") or "mediadb@example.org"
)

# MusicBrainz exige un UA identificable con contacto.
MEDIADB_HTTP_USER_AGENT: str = (
    _get_env_str("MEDIADB_HTTP_USER_AGENT", None)
    or f"mediadb/{MEDIADB_VERSION} ({MEDIADB_CONTACT_EMAIL})"
)

# ============================================================
# Query (coordinador)
# ============================================================

MEDIADB_QUERY_MIN_TITLE_LENGTH: int = _cap_int(
    "MEDIADB_QUERY_MIN_TITLE_LENGTH",
    _get_env_int("MEDIADB_QUERY_MIN_TITLE_LENGTH", 1),
    min_v=1,
    max_v=50,
)

MEDIADB_SEARCH_LIMIT: int = _cap_int(
    "MEDIADB_SEARCH_LIMIT",
    _get_env_int("MEDIADB_SEARCH_LIMIT", 20),
    min_v=1,
    max_v=20,
)

# ============================================================
# Fechas
# ============================================================

MEDIADB_DATE_FORMAT: str = _get_env_str("MEDIADB_DATE_FORMAT", "YYYY-MM-DD") or "YYYY-MM-DD"
MEDIADB_DATE_LOCALE: str = _get_env_str("MEDIADB_DATE_LOCALE", "en") or "en"
