from __future__ import annotations

"""
mediadb/errors.py

Taxonomía de errores del core.

- Los clientes (adapters) NUNCA se tragan fallos upstream: clasifican y relanzan
  con el nombre de la API como contexto.
- classify_status() centraliza el mapeo HTTP -> excepción para que todos los
  clientes distingan igual 401 (credencial) y 429 (cuota).
"""

from typing import Final

from mediadb.logger import truncate_line


class MediaDbError(Exception):
    """Base de todos los errores del paquete."""

    def __init__(
        self,
        message: str,
        *,
        api_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.api_name = api_name
        self.status_code = status_code


class ConfigError(MediaDbError):
    """Falta una credencial/ajuste obligatorio. Se lanza antes de tocar la red."""


class AuthError(MediaDbError):
    """Credencial presente pero rechazada (HTTP 401)."""


class RateLimitError(MediaDbError):
    """Cuota agotada (HTTP 429). El core no reintenta."""


class UpstreamError(MediaDbError):
    """Status no-2xx o payload de error dentro de un 2xx."""


class RecordParseError(UpstreamError):
    """Un campo obligatorio upstream falta o tiene un tipo inesperado."""

    def __init__(self, message: str, *, api_name: str | None = None, field: str = "") -> None:
        super().__init__(message, api_name=api_name)
        self.field = field


class TransportError(MediaDbError):
    """Fallo de red / timeout."""


class NotFoundError(MediaDbError):
    """API desconocida o par (id, dataSource) sin dueño en el registro."""


class QueryValidationError(MediaDbError, ValueError):
    """Título vacío o por debajo de la longitud mínima."""


class QueryCancelledError(MediaDbError):
    """Query cancelada por su token o reemplazada por una más reciente."""


class PropertyMappingValidationError(MediaDbError, ValueError):
    """Regla de remapeo con nombres de propiedad inválidos."""


class PropertyMappingNameConflictError(MediaDbError, ValueError):
    """Dos reglas remapean al mismo nombre, o el nombre nuevo pisa uno existente."""


# ============================================================
# HTTP status -> excepción
# ============================================================

_BODY_MAX_CHARS: Final[int] = 200


def classify_status(api_name: str, status_code: int, body: str = "") -> MediaDbError | None:
    """
    Devuelve la excepción correspondiente a `status_code` o None si es 2xx.

    401/403 -> AuthError, 429 -> RateLimitError, resto no-2xx -> UpstreamError.
    """
    if 200 <= status_code < 300:
        return None

    snippet = truncate_line(body.strip(), _BODY_MAX_CHARS) if body else ""
    suffix = f": {snippet}" if snippet else ""

    if status_code in (401, 403):
        return AuthError(
            f"Authentication for {api_name} failed (status {status_code}). Check the API key.",
            api_name=api_name,
            status_code=status_code,
        )
    if status_code == 429:
        return RateLimitError(
            f"Too many requests for {api_name}, quota exhausted (status 429).",
            api_name=api_name,
            status_code=status_code,
        )
    return UpstreamError(
        f"Received status code {status_code} from {api_name}{suffix}",
        api_name=api_name,
        status_code=status_code,
    )
