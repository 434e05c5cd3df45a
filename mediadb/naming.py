from __future__ import annotations

"""
mediadb/naming.py

Nombres de fichero y carpetas de nota por tipo de media.

Plantillas
----------
`{{ path }}` se sustituye por el valor del mapa plano del registro (record_to_dict);
`path` admite puntos para bajar a bloques anidados (`userData.watched`).

Operadores:
- `{{ LIST:x }}` -> una línea "- v" por elemento
- `{{ ENUM:x }}` -> "a, b, c"

Tags inválidos se sustituyen por un marcador "{{ INVALID TEMPLATE TAG ... }}", salvo
en nombres de fichero, donde un valor ausente se deja vacío (los stubs de búsqueda no
traen todos los campos).
"""

import re
from collections.abc import Mapping
from typing import Final

from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, record_to_dict

DEFAULT_FILE_NAME_TEMPLATE: Final[str] = "{{ title }} ({{ year }})"

DEFAULT_FILE_NAME_TEMPLATES: Final[dict[MediaType, str]] = {
    MediaType.MOVIE: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.SERIES: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.SEASON: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.COMIC_MANGA: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.COMIC_BOOK: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.GAME: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.WIKI: "{{ title }}",
    MediaType.MUSIC_RELEASE: "{{ title }} (by {{ ENUM:artists }} - {{ year }})",
    MediaType.BOARDGAME: DEFAULT_FILE_NAME_TEMPLATE,
    MediaType.BOOK: DEFAULT_FILE_NAME_TEMPLATE,
}

DEFAULT_FOLDERS: Final[dict[MediaType, str]] = {
    MediaType.MOVIE: "Media DB/movies",
    MediaType.SERIES: "Media DB/series",
    MediaType.SEASON: "Media DB/series",
    MediaType.COMIC_MANGA: "Media DB/comics",
    MediaType.COMIC_BOOK: "Media DB/comics",
    MediaType.GAME: "Media DB/games",
    MediaType.WIKI: "Media DB/wiki",
    MediaType.MUSIC_RELEASE: "Media DB/music",
    MediaType.BOARDGAME: "Media DB/boardgames",
    MediaType.BOOK: "Media DB/books",
}

# (carácter ilegal, reemplazo)
ILLEGAL_FILENAME_CHARACTERS: Final[tuple[tuple[str, str], ...]] = (
    ("/", "-"),
    ("\\", "-"),
    ("<", ""),
    (">", ""),
    (":", " - "),
    ('"', "'"),
    ("|", " - "),
    ("?", ""),
    ("*", ""),
    ("[", "("),
    ("]", ")"),
    ("^", ""),
    ("#", ""),
)

_TAG_RE: Final[re.Pattern[str]] = re.compile(r"{{.*?}}")
_MULTI_SPACE_RE: Final[re.Pattern[str]] = re.compile(r" {2,}")
_MISSING: Final[object] = object()


def replace_illegal_file_name_characters(text: str) -> str:
    out = text
    for char, replacement in ILLEGAL_FILENAME_CHARACTERS:
        out = out.replace(char, replacement)
    return _MULTI_SPACE_RE.sub(" ", out).strip()


def _traverse(data: Mapping[str, object], path: list[str]) -> object:
    obj: object = data
    for part in path:
        if not isinstance(obj, Mapping) or part not in obj:
            return _MISSING
        obj = obj[part]
    return obj


def _as_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_as_text(v) for v in value)
    return str(value)


def _replace_tag(match: str, data: Mapping[str, object], ignore_undefined: bool) -> str:
    tag = match[2:-2].strip()
    parts = tag.split(":")
    if len(parts) > 2:
        return "{{ INVALID TEMPLATE TAG }}"

    path = parts[-1].strip().split(".")
    obj = _traverse(data, path)
    if obj is _MISSING or obj is None:
        return "" if ignore_undefined else "{{ INVALID TEMPLATE TAG - object undefined }}"

    if len(parts) == 1:
        return _as_text(obj)

    operator = parts[0].strip()
    if operator == "LIST":
        if not isinstance(obj, (list, tuple)):
            return "{{ INVALID TEMPLATE TAG - operator LIST is only applicable on an array }}"
        return "\n".join(f"- {_as_text(e)}" for e in obj)
    if operator == "ENUM":
        if not isinstance(obj, (list, tuple)):
            return "{{ INVALID TEMPLATE TAG - operator ENUM is only applicable on an array }}"
        return ", ".join(_as_text(e) for e in obj)
    return f"{{{{ INVALID TEMPLATE TAG - unknown operator {operator} }}}}"


def replace_tags(
    template: str,
    record: MediaRecord | Mapping[str, object],
    *,
    ignore_undefined: bool = False,
) -> str:
    data = record_to_dict(record) if isinstance(record, MediaRecord) else record
    return _TAG_RE.sub(lambda m: _replace_tag(m.group(0), data, ignore_undefined), template)


class NoteNaming:
    """Plantillas de nombre + carpetas por tipo; sin acceso a disco."""

    def __init__(
        self,
        file_name_templates: Mapping[MediaType, str] | None = None,
        folders: Mapping[MediaType, str] | None = None,
    ) -> None:
        self.file_name_templates = {**DEFAULT_FILE_NAME_TEMPLATES, **(file_name_templates or {})}
        self.folders = {**DEFAULT_FOLDERS, **(folders or {})}

    def file_name(self, record: MediaRecord) -> str:
        template = self.file_name_templates.get(record.type, DEFAULT_FILE_NAME_TEMPLATE)
        return replace_illegal_file_name_characters(replace_tags(template, record, ignore_undefined=True))

    def folder(self, record: MediaRecord) -> str:
        return self.folders.get(record.type) or "/"

    def note_path(self, record: MediaRecord) -> str:
        folder = self.folder(record).rstrip("/")
        name = f"{self.file_name(record)}.md"
        return f"{folder}/{name}" if folder else name
