"""
mediadb/config_base.py

- Carga .env UNA vez
- Define PATHS base (BASE_DIR/PROJECT_DIR) temprano
- Helpers defensivos (_get_env_*, _cap_*, parsers)
- Flags globales (DEBUG_MODE/SILENT_MODE/LOG_LEVEL/HTTP_DEBUG)
- LOGGER_FILE_* + congelado de LOGGER_FILE_PATH

Este módulo NO debe importar config_*.py para evitar ciclos.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

# No sobre-escribimos env vars ya definidas en el proceso.
load_dotenv(override=False)

from mediadb import logger as _logger  # noqa: E402


# ============================================================
# Paths base
# ============================================================

# Directorio del paquete mediadb/
BASE_DIR: Final[Path] = Path(__file__).resolve().parent

# Raíz del proyecto (un nivel por encima de mediadb/)
PROJECT_DIR: Final[Path] = BASE_DIR.parent


# ============================================================
# Helpers: parseo defensivo de env vars
# ============================================================

_TRUE_SET: Final[set[str]] = {"1", "true", "t", "yes", "y", "on"}
_FALSE_SET: Final[set[str]] = {"0", "false", "f", "no", "n", "off"}


def _clean_env_raw(v: object | None) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    if not s:
        return None
    if len(s) >= 2 and (s[0] == s[-1]) and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s or None


def _get_env_str(name: str, default: str | None = None) -> str | None:
    v = _clean_env_raw(os.getenv(name))
    return default if v is None else v


def _get_env_int(name: str, default: int) -> int:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        _logger.warning(f"Invalid int for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_float(name: str, default: float) -> float:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        _logger.warning(f"Invalid float for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    s = v.lower()
    if s in _TRUE_SET:
        return True
    if s in _FALSE_SET:
        return False
    _logger.warning(f"Invalid bool for {name!r}: {v!r}, using default {default}", always=True)
    return default


def _cap_int(name: str, value: int, *, min_v: int, max_v: int) -> int:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    if value > max_v:
        _logger.warning(f"{name} too high; capping to {max_v}", always=True)
        return max_v
    return value


def _cap_float_min(name: str, value: float, *, min_v: float) -> float:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    return value


def _parse_env_kv_map(raw: str) -> dict[str, str]:
    """
    Parsea un mapa clave->valor desde una env var.

    Formatos aceptados:
    - JSON object: '{"OMDbAPI": "game|series"}'
    - "k:v, k2:v2"

    Entradas inválidas se ignoran con warning (nunca lanza).
    """
    out: dict[str, str] = {}
    cleaned = (raw or "").strip().strip('"').strip("'").strip()
    if not cleaned:
        return out

    if cleaned.startswith("{") and cleaned.endswith("}"):
        try:
            obj = json.loads(cleaned)
        except ValueError as exc:
            _logger.warning(
                f"Invalid JSON for env map; falling back to 'k:v' parsing. err={exc!r}",
                always=True,
            )
        else:
            if isinstance(obj, dict):
                for k, v in obj.items():
                    ks = str(k).strip()
                    vs = str(v).strip()
                    if ks and vs:
                        out[ks] = vs
            else:
                _logger.warning(
                    f"Invalid dict for env map: expected JSON object, got {type(obj).__name__}",
                    always=True,
                )
            return out

    for part in cleaned.split(","):
        chunk = part.strip()
        if not chunk:
            continue
        if ":" not in chunk:
            _logger.warning(f"Invalid map chunk (missing ':') ignored: {chunk!r}", always=True)
            continue
        k, v = chunk.split(":", 1)
        ks = k.strip()
        vs = v.strip()
        if not ks or not vs:
            _logger.warning(f"Invalid map chunk (empty key/value) ignored: {chunk!r}", always=True)
            continue
        out[ks] = vs

    return out


def _parse_env_csv_tokens(raw: str, *, sep: str = ",", lower: bool = True) -> list[str]:
    cleaned = (raw or "").strip().strip('"').strip("'").strip()
    if not cleaned:
        return []

    parts = [p.strip() for p in cleaned.split(sep) if p.strip()]
    if lower:
        parts = [p.lower() for p in parts]

    seen: set[str] = set()
    out: list[str] = []
    for p in parts:
        if p in seen:
            continue
        seen.add(p)
        out.append(p)
    return out


# ============================================================
# MODO DE EJECUCIÓN
# ============================================================

DEBUG_MODE: bool = _get_env_bool("DEBUG_MODE", False)
SILENT_MODE: bool = _get_env_bool("SILENT_MODE", False)

HTTP_DEBUG: bool = _get_env_bool("HTTP_DEBUG", False)
LOG_LEVEL: str | None = _get_env_str("LOG_LEVEL", None)


# ============================================================
# LOGGER (persistencia opcional a fichero por ejecución)
# ============================================================

LOGGER_FILE_ENABLED: bool = _get_env_bool("LOGGER_FILE_ENABLED", False)

_LOGGER_FILE_DIR_RAW: Final[str] = _get_env_str("LOGGER_FILE_DIR", "logs") or "logs"
_LOGGER_FILE_DIR_CANDIDATE = Path(_LOGGER_FILE_DIR_RAW)
LOGGER_FILE_DIR: Final[Path] = (
    _LOGGER_FILE_DIR_CANDIDATE
    if _LOGGER_FILE_DIR_CANDIDATE.is_absolute()
    else (PROJECT_DIR / _LOGGER_FILE_DIR_CANDIDATE)
)

LOGGER_FILE_PREFIX: Final[str] = _get_env_str("LOGGER_FILE_PREFIX", "mediadb") or "mediadb"
LOGGER_FILE_INCLUDE_PID: bool = _get_env_bool("LOGGER_FILE_INCLUDE_PID", True)


def _sanitize_filename_component(s: str) -> str:
    out_chars: list[str] = []
    for ch in s or "":
        if ch.isalnum() or ch in ("-", "_", ".", "@"):
            out_chars.append(ch)
        else:
            out_chars.append("_")
    cleaned = "".join(out_chars).strip("._-")
    return cleaned or "run"


def _build_logger_file_path() -> Path | None:
    """
    Resuelve el fichero de log de esta ejecución.

    Si no viene explícito en LOGGER_FILE_PATH se genera uno (prefijo + timestamp + PID)
    y se congela en os.environ para que subprocesos reutilicen el mismo path.
    """
    if not LOGGER_FILE_ENABLED:
        return None

    env_path = _clean_env_raw(os.getenv("LOGGER_FILE_PATH"))
    if env_path:
        p = Path(env_path)
        return (p if p.is_absolute() else (PROJECT_DIR / p)).resolve()

    ts = _sanitize_filename_component(datetime.now().strftime("%Y-%m-%d_%H-%M-%S"))
    prefix = _sanitize_filename_component(LOGGER_FILE_PREFIX)
    pid_part = f"_{os.getpid()}" if LOGGER_FILE_INCLUDE_PID else ""

    resolved = (LOGGER_FILE_DIR / f"{prefix}_{ts}{pid_part}.log").resolve()
    os.environ["LOGGER_FILE_PATH"] = str(resolved)
    return resolved


LOGGER_FILE_PATH: Path | None = _build_logger_file_path()
