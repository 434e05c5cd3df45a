from __future__ import annotations

"""
mediadb/logger.py

Logger central del paquete (fachada sobre `logging`).

API estable
-----------
- debug / info / warning / error
- progress / progressf (siempre visible, sin timestamps)
- debug_ctx(tag, msg) (debug contextual por cliente: "OMDB", "IGDB", "QUERY"...)
- truncate_line(text) (recorta payloads upstream antes de loguear o meterlos en errores)

Política
--------
- SILENT_MODE=True: suprime debug/info/warning (salvo always=True). `error()` siempre emite.
- DEBUG_MODE=True: habilita debug_ctx; en SILENT+DEBUG se emite por `progress`.
- El logging nunca debe romper una query.

Config
------
No importamos mediadb.config (evita ciclos con config_base, que usa este módulo
para avisar de env vars inválidas). Se lee desde sys.modules si ya está cargado:

- SILENT_MODE / DEBUG_MODE / LOG_LEVEL / HTTP_DEBUG
- LOGGER_FILE_ENABLED / LOGGER_FILE_PATH (ENV LOGGER_FILE_PATH tiene prioridad)
"""

import logging
import os
import sys
from collections.abc import Mapping
from types import ModuleType, TracebackType
from typing import Final, TypedDict

from typing_extensions import TypeAlias, Unpack

# ============================================================================
# TIPOS: kwargs seguros para logging
# ============================================================================

_ExcInfoTuple: TypeAlias = tuple[type[BaseException], BaseException, TracebackType | None]
ExcInfo: TypeAlias = bool | _ExcInfoTuple | BaseException | None


class LogKwargs(TypedDict, total=False):
    """Subconjunto de kwargs de logging.Logger.* que reenviamos."""

    exc_info: ExcInfo
    stack_info: bool
    stacklevel: int
    extra: Mapping[str, object] | None


def _filter_log_kwargs(kwargs: Mapping[str, object]) -> LogKwargs:
    """Filtra kwargs no tipados a un conjunto seguro para logging (best-effort)."""
    out: LogKwargs = {}

    if "exc_info" in kwargs:
        v = kwargs.get("exc_info")
        if v is None or isinstance(v, (bool, BaseException, tuple)):
            out["exc_info"] = v  # type: ignore[typeddict-item]

    if "stack_info" in kwargs:
        v = kwargs.get("stack_info")
        if isinstance(v, bool):
            out["stack_info"] = v

    if "stacklevel" in kwargs:
        v = kwargs.get("stacklevel")
        if isinstance(v, int) and not isinstance(v, bool):
            out["stacklevel"] = v

    if "extra" in kwargs:
        v = kwargs.get("extra")
        if v is None or isinstance(v, Mapping):
            out["extra"] = v

    return out


# ============================================================================
# CONFIGURACIÓN GLOBAL
# ============================================================================

LOGGER_NAME: Final[str] = "mediadb"
_CONFIG_MODULE: Final[str] = "mediadb.config"
_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LOGGER: logging.Logger | None = None
_FILE_HANDLER_TAG: Final[str] = "_mediadb_file_handler"

_NOISY_LOGGERS: Final[tuple[str, ...]] = (
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "asyncio",
)

_LEVELS: Final[dict[str, int]] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _safe_get_cfg() -> ModuleType | None:
    mod = sys.modules.get(_CONFIG_MODULE)
    return mod if isinstance(mod, ModuleType) else None


def _cfg_value(name: str, default: object = None) -> object:
    cfg = _safe_get_cfg()
    if cfg is None:
        return default
    return getattr(cfg, name, default)


def is_silent_mode() -> bool:
    return bool(_cfg_value("SILENT_MODE", False))


def is_debug_mode() -> bool:
    return bool(_cfg_value("DEBUG_MODE", False))


def _resolve_level() -> int:
    """LOG_LEVEL explícito > DEBUG_MODE > INFO."""
    raw = _cfg_value("LOG_LEVEL", None)
    if isinstance(raw, str) and raw.strip():
        mapped = _LEVELS.get(raw.strip().upper())
        if mapped is not None:
            return mapped
    if is_debug_mode():
        return logging.DEBUG
    return logging.INFO


def _configure_external_loggers() -> None:
    """urllib3/requests a WARNING salvo HTTP_DEBUG=True."""
    if bool(_cfg_value("HTTP_DEBUG", False)):
        return
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _file_logging_path() -> str | None:
    if not bool(_cfg_value("LOGGER_FILE_ENABLED", False)):
        return None
    env_p = (os.getenv("LOGGER_FILE_PATH") or "").strip()
    if env_p:
        return env_p
    p = _cfg_value("LOGGER_FILE_PATH", None)
    if p is None:
        return None
    return str(p).strip() or None


def _ensure_file_handler(root: logging.Logger, *, level: int) -> None:
    path = _file_logging_path()
    if not path:
        return

    for h in root.handlers:
        if getattr(h, _FILE_HANDLER_TAG, False):
            h.setLevel(level)
            return

    try:
        dir_name = os.path.dirname(path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)
        fh = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    except OSError:
        # Sin fichero: seguimos solo con consola.
        return

    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(_FORMAT))
    setattr(fh, _FILE_HANDLER_TAG, True)
    root.addHandler(fh)


def _ensure_configured() -> logging.Logger:
    """Inicializa logging de forma idempotente y devuelve el logger del paquete."""
    global _LOGGER

    level = _resolve_level()
    root = logging.getLogger()

    if not root.handlers:
        logging.basicConfig(level=level, format=_FORMAT)
    else:
        root.setLevel(level)

    _configure_external_loggers()
    _ensure_file_handler(root, level=level)

    if _LOGGER is None:
        _LOGGER = logging.getLogger(LOGGER_NAME)
    return _LOGGER


def get_logger() -> logging.Logger:
    return _ensure_configured()


def _should_log(*, always: bool = False) -> bool:
    return always or not is_silent_mode()


# ============================================================================
# PROGRESO (NO logging)
# ============================================================================


def progress(message: str) -> None:
    """Línea siempre visible (ignora SILENT_MODE)."""
    try:
        sys.stdout.write(f"{message}\n")
        sys.stdout.flush()
    except (OSError, ValueError):
        pass


def progressf(fmt: str, *args: object) -> None:
    try:
        msg = fmt % args if args else fmt
    except (TypeError, ValueError):
        msg = fmt
    progress(msg)


# ============================================================================
# API PÚBLICA DE LOGGING
# ============================================================================


def debug(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    _ensure_configured().debug(msg, *args, **kwargs)


def info(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    _ensure_configured().info(msg, *args, **kwargs)


def warning(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    _ensure_configured().warning(msg, *args, **kwargs)


def error(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    """ERROR siempre se emite (ignora SILENT_MODE)."""
    _ensure_configured().error(msg, *args, **kwargs)


# ============================================================================
# DEBUG CONTEXTUAL + TRUNCADO
# ============================================================================

_DEFAULT_LOG_LINE_MAX_CHARS: Final[int] = 500
_TRUNCATED_SUFFIX: Final[str] = " …(truncated)"


def truncate_line(text: str, max_chars: int | None = None) -> str:
    """Recorta una línea para no volcar JSON/HTML completos."""
    limit = max_chars if isinstance(max_chars, int) and max_chars > 0 else _DEFAULT_LOG_LINE_MAX_CHARS
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(_TRUNCATED_SUFFIX))] + _TRUNCATED_SUFFIX


def debug_ctx(tag: str, msg: object) -> None:
    """
    Debug contextual con tag.

    - DEBUG_MODE=False -> no-op
    - SILENT_MODE=True  -> progress("[TAG][DEBUG] ...")
    - SILENT_MODE=False -> info("[TAG][DEBUG] ...")
    """
    if not is_debug_mode():
        return

    t = (tag or "DEBUG").strip().upper()
    text = f"[{t}][DEBUG] {msg}"
    if is_silent_mode():
        progress(text)
    else:
        info(text)
