"""
mediadb/fields.py

Lectura validada de payloads upstream (JSON ya decodificado).

Cada cliente mapea campo a campo con FieldReader:
- req_* : el campo debe existir con el tipo esperado; si no -> RecordParseError
- opt_* : ausente / null -> valor por defecto; tipo inesperado -> RecordParseError

Así ningún `None` / tipo raro upstream acaba silenciosamente en un MediaRecord.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Final

from mediadb.errors import RecordParseError

_YEAR_RE: Final[re.Pattern[str]] = re.compile(r"^\s*(\d{4})")
_NA_VALUES: Final[frozenset[str]] = frozenset({"", "N/A", "n/a"})


class FieldReader:
    """Vista validada sobre un objeto JSON de una API concreta."""

    __slots__ = ("_data", "_api_name", "_path")

    def __init__(self, data: object, *, api_name: str, path: str = "") -> None:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise RecordParseError(
                f"{api_name}: expected an object at {path or '<root>'}, got {type(data).__name__}",
                api_name=api_name,
                field=path,
            )
        self._data: Mapping[str, object] = data
        self._api_name = api_name
        self._path = path

    # ------------------------------------------------------------------
    # helpers internos
    # ------------------------------------------------------------------

    def _key_path(self, key: str) -> str:
        return f"{self._path}.{key}" if self._path else key

    def _fail(self, key: str, expected: str, value: object) -> RecordParseError:
        path = self._key_path(key)
        return RecordParseError(
            f"{self._api_name}: field {path!r} expected {expected}, got {type(value).__name__}",
            api_name=self._api_name,
            field=path,
        )

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------

    @property
    def raw(self) -> Mapping[str, object]:
        return self._data

    def has(self, key: str) -> bool:
        return self._data.get(key) is not None

    def get(self, key: str) -> object:
        return self._data.get(key)

    def req_str(self, key: str) -> str:
        value = self._data.get(key)
        if isinstance(value, str) and value.strip():
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise self._fail(key, "non-empty string", value)

    def req_id(self, key: str) -> str:
        """Ids upstream: int o str, siempre devueltos como str."""
        value = self._data.get(key)
        if isinstance(value, bool):
            raise self._fail(key, "id", value)
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
        raise self._fail(key, "id", value)

    def opt_str(self, key: str, default: str = "") -> str:
        value = self._data.get(key)
        if value is None:
            return default
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise self._fail(key, "string", value)

    def opt_int(self, key: str, default: int = 0) -> int:
        value = self._data.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            raise self._fail(key, "integer", value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            try:
                return int(value)
            except (ValueError, OverflowError):
                raise self._fail(key, "integer", value) from None
        if isinstance(value, str):
            cleaned = value.replace(",", "").strip()
            if cleaned in _NA_VALUES:
                return default
            try:
                return int(float(cleaned))
            except (ValueError, OverflowError):
                pass
        raise self._fail(key, "integer", value)

    def opt_float(self, key: str, default: float = 0.0) -> float:
        value = self._data.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            raise self._fail(key, "number", value)
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned in _NA_VALUES:
                return default
            try:
                return float(cleaned)
            except ValueError:
                pass
        raise self._fail(key, "number", value)

    def opt_bool(self, key: str, default: bool = False) -> bool:
        value = self._data.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        raise self._fail(key, "boolean", value)

    def str_list(self, key: str) -> tuple[str, ...]:
        value = self._data.get(key)
        if value is None:
            return ()
        if not isinstance(value, list):
            raise self._fail(key, "list", value)
        out: list[str] = []
        for item in value:
            if isinstance(item, str):
                out.append(item)
            elif isinstance(item, (int, float)) and not isinstance(item, bool):
                out.append(str(item))
            else:
                raise self._fail(key, "list of strings", item)
        return tuple(out)

    def obj(self, key: str) -> "FieldReader":
        """Objeto anidado; ausente/null -> lector vacío."""
        return FieldReader(self._data.get(key), api_name=self._api_name, path=self._key_path(key))

    def obj_list(self, key: str) -> list["FieldReader"]:
        value = self._data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise self._fail(key, "list", value)
        path = self._key_path(key)
        return [
            FieldReader(item, api_name=self._api_name, path=f"{path}[{i}]")
            for i, item in enumerate(value)
        ]

    def names(self, key: str, name_key: str = "name") -> tuple[str, ...]:
        """Lista de objetos -> tupla de sus `name_key` (genres, studios, ...)."""
        return tuple(item.req_str(name_key) for item in self.obj_list(key))


def reader(data: object, *, api_name: str) -> FieldReader:
    return FieldReader(data, api_name=api_name)


# ============================================================================
# Helpers de normalización comunes a varios clientes
# ============================================================================


def year_from_date(text: str | None, default: str = "") -> str:
    """'2017-05-04' -> '2017'. Sin año reconocible -> default."""
    if not text:
        return default
    m = _YEAR_RE.match(text)
    return m.group(1) if m else default


def split_list(text: str | None, sep: str = ", ") -> tuple[str, ...]:
    """'Drama, Crime' -> ('Drama', 'Crime'). 'N/A' y vacíos -> ()."""
    if text is None or text.strip() in _NA_VALUES:
        return ()
    return tuple(p.strip() for p in text.split(sep) if p.strip())


def dedupe(values: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return tuple(out)


def na_to_empty(text: str) -> str:
    return "" if text.strip() in _NA_VALUES else text
