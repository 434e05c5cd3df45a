from __future__ import annotations

"""
mediadb/date_formatter.py

Normalización best-effort de fechas upstream a un único formato de salida.

Formatos de salida/entrada con tokens estilo moment.js ("YYYY-MM-DD", "DD MMM YYYY"),
que es lo que el usuario configura en sus notas.

format(text, source_format=None, locale=None):
- sin source_format: parse estricto (ISO 8601 / RFC 2822) y, si falla, parse laxo
  (dateutil) con día/mes por defecto = 1.
- con source_format: strptime con el formato traducido; si no encaja se intenta el
  camino sin formato.
- nunca lanza: None = "deja el campo en blanco".

Los nombres de mes/día se emiten en inglés; `locale` se conserva para el caller.
"""

import re
from datetime import date, datetime
from email.utils import parsedate_to_datetime
from typing import Callable, Final

from dateutil import parser as date_parser

from mediadb import logger

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|DDDD|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|A|a"
)

_MONTHS: Final[tuple[str, ...]] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_WEEKDAYS: Final[tuple[str, ...]] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

_FORMATTERS: Final[dict[str, Callable[[datetime], str]]] = {
    "YYYY": lambda d: f"{d.year:04d}",
    "YY": lambda d: f"{d.year % 100:02d}",
    "MMMM": lambda d: _MONTHS[d.month - 1],
    "MMM": lambda d: _MONTHS[d.month - 1][:3],
    "MM": lambda d: f"{d.month:02d}",
    "M": lambda d: str(d.month),
    "DDDD": lambda d: f"{d.timetuple().tm_yday:03d}",
    "DD": lambda d: f"{d.day:02d}",
    "D": lambda d: str(d.day),
    "dddd": lambda d: _WEEKDAYS[d.weekday()],
    "ddd": lambda d: _WEEKDAYS[d.weekday()][:3],
    "HH": lambda d: f"{d.hour:02d}",
    "H": lambda d: str(d.hour),
    "hh": lambda d: f"{(d.hour % 12) or 12:02d}",
    "h": lambda d: str((d.hour % 12) or 12),
    "mm": lambda d: f"{d.minute:02d}",
    "m": lambda d: str(d.minute),
    "ss": lambda d: f"{d.second:02d}",
    "s": lambda d: str(d.second),
    "A": lambda d: "PM" if d.hour >= 12 else "AM",
    "a": lambda d: "pm" if d.hour >= 12 else "am",
}

_STRPTIME: Final[dict[str, str]] = {
    "YYYY": "%Y",
    "YY": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "M": "%m",
    "DDDD": "%j",
    "DD": "%d",
    "D": "%d",
    "dddd": "%A",
    "ddd": "%a",
    "HH": "%H",
    "H": "%H",
    "hh": "%I",
    "h": "%I",
    "mm": "%M",
    "m": "%M",
    "ss": "%S",
    "s": "%S",
    "A": "%p",
    "a": "%p",
}

# dateutil rellena lo que falte desde aquí ("2017" -> 2017-01-01). El año nunca se
# rellena: se parsea con dos años distintos y si el resultado cambia, no había año.
_LENIENT_DEFAULT: Final[datetime] = datetime(2000, 1, 1)
_LENIENT_ALT_DEFAULT: Final[datetime] = datetime(2001, 1, 1)


def _dbg(msg: object) -> None:
    logger.debug_ctx("DATE", msg)


def render(value: datetime, fmt: str) -> str:
    """Aplica un formato estilo moment a un datetime."""

    def _sub(m: re.Match[str]) -> str:
        tok = m.group(0)
        if tok.startswith("["):
            return tok[1:-1]
        return _FORMATTERS[tok](value)

    return _TOKEN_RE.sub(_sub, fmt)


def to_strptime(fmt: str) -> str:
    """Traduce un formato estilo moment a uno de strptime."""

    def _sub(m: re.Match[str]) -> str:
        tok = m.group(0)
        if tok.startswith("["):
            return tok[1:-1].replace("%", "%%")
        return _STRPTIME[tok]

    escaped = fmt.replace("%", "%%")
    return _TOKEN_RE.sub(_sub, escaped)


def _parse_strict(text: str) -> datetime | None:
    try:
        return date_parser.isoparse(text)
    except (ValueError, OverflowError):
        pass
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_lenient(text: str) -> datetime | None:
    try:
        parsed = date_parser.parse(text, default=_LENIENT_DEFAULT)
        other = date_parser.parse(text, default=_LENIENT_ALT_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.year != other.year:
        _dbg(f"{text!r} has no year; ignored")
        return None
    return parsed


class DateFormatter:
    def __init__(self, to_format: str = "YYYY-MM-DD", locale: str = "en") -> None:
        self.to_format = to_format
        self.locale = locale

    def set_format(self, fmt: str) -> None:
        self.to_format = fmt

    def get_preview(self, fmt: str | None = None, *, today: date | None = None) -> str:
        d = today or date.today()
        return render(datetime(d.year, d.month, d.day), fmt or self.to_format)

    def parse(self, date_string: str | None, source_format: str | None = None) -> datetime | None:
        if not date_string or not date_string.strip():
            return None
        text = date_string.strip()

        if source_format:
            try:
                return datetime.strptime(text, to_strptime(source_format))
            except ValueError:
                _dbg(f"{text!r} does not match {source_format!r}; trying automatic parse")

        return _parse_strict(text) or _parse_lenient(text)

    def format(
        self,
        date_string: str | None,
        source_format: str | None = None,
        locale: str | None = None,
    ) -> str | None:
        """
        Fecha formateada con `to_format`, o None si no se puede interpretar.

        Los nombres de mes y día (MMMM, MMM, dddd, ddd) se emiten siempre en inglés:
        `locale` distinto de "en" se acepta pero no cambia la salida.
        """
        if locale and not locale.lower().startswith("en"):
            _dbg(f"locale {locale!r} not supported; rendering in English")
        parsed = self.parse(date_string, source_format)
        if parsed is None:
            return None
        return render(parsed, self.to_format)
