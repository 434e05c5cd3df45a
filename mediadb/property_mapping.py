from __future__ import annotations

"""
mediadb/property_mapping.py

Capa de remapeo de campos: MediaRecord (mapa plano camelCase) <-> frontmatter de nota.

Dos formatos de reglas conviven:

1) Reglas legacy en texto ("a -> b", una por línea; destino "x" = descartar):
   ModelPropertyConversionRule + ModelPropertyMapper.

2) Modelo estructurado por tipo de media (PropertyMappingModel), con una entrada
   por propiedad: default (pasa tal cual), remap (renombra), remove (descarta),
   más el flag `wikilink` que envuelve strings en [[...]].

Invariantes
-----------
- `type` nunca se remapea.
- Claves sin regla pasan tal cual.
- convert_back(convert(m)) == m, salvo las claves descartadas.
- Nombres de propiedad: solo letras y guiones bajos.
"""

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from mediadb import logger
from mediadb.errors import PropertyMappingNameConflictError, PropertyMappingValidationError
from mediadb.media_type import MEDIA_TYPES, MediaType
from mediadb.models import PAYLOAD_CLASSES, MediaRecord, record_from_dict, record_to_dict

_PROPERTY_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z_]+$")
_WIKILINK_RE: Final[re.Pattern[str]] = re.compile(r"^\[\[(.*)\]\]$", re.DOTALL)

TYPE_KEY: Final[str] = "type"
DROP_TARGET: Final[str] = "x"
LOCKED_PROPERTIES: Final[tuple[str, ...]] = ("type", "id", "dataSource")


def contains_only_letters_and_underscores(text: str) -> bool:
    return bool(_PROPERTY_NAME_RE.match(text))


def _media_type_of(obj: Mapping[str, object]) -> MediaType | None:
    raw = obj.get(TYPE_KEY)
    if raw is None:
        return None
    try:
        return MediaType.parse(raw)
    except ValueError:
        return None


# ============================================================================
# Wikilinks
# ============================================================================


def to_wikilink(value: object) -> object:
    if isinstance(value, str):
        return f"[[{value}]]"
    if isinstance(value, (list, tuple)):
        return [f"[[{v}]]" if isinstance(v, str) else v for v in value]
    return value


def _strip_one(text: str) -> str:
    m = _WIKILINK_RE.match(text)
    return m.group(1) if m else text


def from_wikilink(value: object) -> object:
    """Inversa de to_wikilink: quita exactamente una capa [[...]]."""
    if isinstance(value, str):
        return _strip_one(value)
    if isinstance(value, (list, tuple)):
        return [_strip_one(v) if isinstance(v, str) else v for v in value]
    return value


# ============================================================================
# Reglas legacy "a -> b"
# ============================================================================


@dataclass(frozen=True)
class ModelPropertyConversionRule:
    property: str
    new_property: str

    @property
    def drops(self) -> bool:
        return self.new_property.lower() == DROP_TARGET

    @classmethod
    def parse(cls, rule: str) -> "ModelPropertyConversionRule":
        parts = rule.split("->")
        if len(parts) != 2:
            raise PropertyMappingValidationError(f'Conversion rule "{rule}" may only have exactly one "->"')

        prop = parts[0].strip()
        new_prop = parts[1].strip()
        if not prop or not contains_only_letters_and_underscores(prop):
            raise PropertyMappingValidationError(
                f'Error in conversion rule "{rule}": property may not be empty and only contain letters and underscores.'
            )
        if not new_prop or not contains_only_letters_and_underscores(new_prop):
            raise PropertyMappingValidationError(
                f'Error in conversion rule "{rule}": new property may not be empty and only contain letters and underscores.'
            )
        return cls(prop, new_prop)


def parse_conversion_rules(text: str) -> list[ModelPropertyConversionRule]:
    return [ModelPropertyConversionRule.parse(line) for line in text.splitlines() if line.strip()]


class ModelPropertyMapper:
    """Aplica reglas legacy por tipo. Sin reglas para el tipo -> copia sin cambios."""

    def __init__(self, rules_by_type: Mapping[MediaType, str] | None = None) -> None:
        self._rules: dict[MediaType, list[ModelPropertyConversionRule]] = {}
        self.update_conversion_rules(rules_by_type or {})

    def update_conversion_rules(self, rules_by_type: Mapping[MediaType, str]) -> None:
        parsed = {media_type: parse_conversion_rules(text) for media_type, text in rules_by_type.items()}
        self._rules = parsed

    def rules_for(self, media_type: MediaType) -> list[ModelPropertyConversionRule]:
        return list(self._rules.get(media_type, ()))

    def convert_object(self, obj: Mapping[str, object]) -> dict[str, object]:
        media_type = _media_type_of(obj)
        rules = self._rules.get(media_type) if media_type is not None else None
        if not rules:
            return dict(obj)

        out: dict[str, object] = {}
        for key, value in obj.items():
            if key == TYPE_KEY:
                out[key] = value
                continue
            matching = [r for r in rules if r.property == key]
            if not matching:
                out[key] = value
                continue
            for rule in matching:
                if not rule.drops:
                    out[rule.new_property] = value
        return out

    def convert_object_back(self, obj: Mapping[str, object]) -> dict[str, object]:
        media_type = _media_type_of(obj)
        rules = self._rules.get(media_type) if media_type is not None else None
        if not rules:
            return dict(obj)

        out: dict[str, object] = {}
        for key, value in obj.items():
            if key == TYPE_KEY:
                out[key] = value
                continue
            matching = [r for r in rules if r.new_property == key and not r.drops]
            if not matching:
                out[key] = value
                continue
            for rule in matching:
                out[rule.property] = value
        return out


# ============================================================================
# Modelo estructurado
# ============================================================================


class PropertyMappingOption(str, Enum):
    DEFAULT = "default"
    MAP = "remap"
    REMOVE = "remove"


PROPERTY_MAPPING_OPTIONS: Final[tuple[PropertyMappingOption, ...]] = tuple(PropertyMappingOption)


@dataclass
class PropertyMapping:
    property: str
    new_property: str = ""
    mapping: PropertyMappingOption = PropertyMappingOption.DEFAULT
    locked: bool = False
    wikilink: bool = False

    def __str__(self) -> str:
        if self.mapping == PropertyMappingOption.MAP:
            return f"{self.property} -> {self.new_property}"
        if self.mapping == PropertyMappingOption.REMOVE:
            return f"remove {self.property}"
        return self.property

    def validate(self) -> None:
        if self.locked and self.mapping == PropertyMappingOption.REMOVE:
            raise PropertyMappingValidationError(
                f'Error in property mapping "{self}": locked property may not be removed.'
            )
        if self.locked and self.mapping == PropertyMappingOption.MAP:
            raise PropertyMappingValidationError(
                f'Error in property mapping "{self}": locked property may not be remapped.'
            )
        if self.mapping != PropertyMappingOption.MAP:
            return

        if not self.property or not contains_only_letters_and_underscores(self.property):
            raise PropertyMappingValidationError(
                f'Error in property mapping "{self}": property may not be empty and may only contain letters and underscores.'
            )
        if not self.new_property or not contains_only_letters_and_underscores(self.new_property):
            raise PropertyMappingValidationError(
                f'Error in property mapping "{self}": new property may not be empty and may only contain letters and underscores.'
            )

    def to_json(self) -> dict[str, object]:
        return {
            "property": self.property,
            "newProperty": self.new_property,
            "mapping": self.mapping.value,
            "locked": self.locked,
            "wikilink": self.wikilink,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, object]) -> "PropertyMapping":
        try:
            mapping = PropertyMappingOption(str(data.get("mapping", PropertyMappingOption.DEFAULT.value)))
        except ValueError:
            raise PropertyMappingValidationError(f"Unknown mapping option: {data.get('mapping')!r}") from None
        return cls(
            property=str(data.get("property", "")),
            new_property=str(data.get("newProperty", "") or ""),
            mapping=mapping,
            locked=bool(data.get("locked", False)),
            wikilink=bool(data.get("wikilink", False)),
        )


@dataclass
class PropertyMappingModel:
    type: MediaType
    properties: list[PropertyMapping] = field(default_factory=list)

    def mapped_properties(self) -> list[PropertyMapping]:
        return [p for p in self.properties if p.mapping == PropertyMappingOption.MAP]

    def find(self, prop: str) -> PropertyMapping | None:
        for p in self.properties:
            if p.property == prop:
                return p
        return None

    def validate(self) -> None:
        """Lanza PropertyMappingValidationError / PropertyMappingNameConflictError."""
        logger.debug_ctx("MAPPING", f"validating property mappings for {self.type}")
        for p in self.properties:
            p.validate()

        mapped = self.mapped_properties()
        for p in mapped:
            same_target = [m for m in mapped if m.new_property == p.new_property]
            if len(same_target) > 1:
                names = ",".join(str(m) for m in same_target)
                raise PropertyMappingNameConflictError(
                    f"Multiple remapped properties ({names}) may not share the same name."
                )

        original_names = {p.property for p in self.properties}
        for p in mapped:
            if p.new_property in original_names:
                raise PropertyMappingNameConflictError(
                    f"Remapped property ({p}) may not share its new name with an existing property."
                )

    def copy(self) -> "PropertyMappingModel":
        return PropertyMappingModel(
            self.type,
            [PropertyMapping(p.property, p.new_property, p.mapping, p.locked, p.wikilink) for p in self.properties],
        )

    def to_json(self) -> dict[str, object]:
        return {"type": self.type.value, "properties": [p.to_json() for p in self.properties]}

    @classmethod
    def from_json(cls, data: Mapping[str, object]) -> "PropertyMappingModel":
        try:
            media_type = MediaType.parse(data.get("type"))
        except ValueError:
            raise PropertyMappingValidationError(f"Unknown media type in mapping model: {data.get('type')!r}") from None
        raw_props = data.get("properties") or []
        if not isinstance(raw_props, list):
            raise PropertyMappingValidationError("Mapping model 'properties' must be a list")
        return cls(media_type, [PropertyMapping.from_json(p) for p in raw_props if isinstance(p, Mapping)])

    @staticmethod
    def migrate_models(
        loaded: Sequence["PropertyMappingModel"],
        defaults: Sequence["PropertyMappingModel"],
    ) -> list["PropertyMappingModel"]:
        """
        Ajusta modelos guardados a la estructura actual:
        - propiedades nuevas -> valor por defecto
        - propiedades existentes -> se conserva la personalización del usuario
        - `locked` siempre viene de los defaults
        """
        by_type = {m.type: m for m in loaded}
        migrated: list[PropertyMappingModel] = []
        for default_model in defaults:
            loaded_model = by_type.get(default_model.type)
            if loaded_model is None:
                migrated.append(default_model.copy())
                continue
            props: list[PropertyMapping] = []
            for default_prop in default_model.properties:
                user_prop = loaded_model.find(default_prop.property)
                if user_prop is None:
                    props.append(PropertyMapping(default_prop.property, locked=default_prop.locked))
                else:
                    props.append(
                        PropertyMapping(
                            user_prop.property,
                            user_prop.new_property,
                            user_prop.mapping,
                            default_prop.locked,
                            user_prop.wikilink,
                        )
                    )
            migrated.append(PropertyMappingModel(default_model.type, props))
        return migrated


def _empty_record(media_type: MediaType) -> MediaRecord:
    return MediaRecord(title="", english_title="", year="", data_source="", id="", payload=PAYLOAD_CLASSES[media_type]())


def default_property_mapping_models() -> list[PropertyMappingModel]:
    """Un modelo por tipo con todas sus claves en `default` (type/id/dataSource bloqueadas)."""
    models: list[PropertyMappingModel] = []
    for media_type in MEDIA_TYPES:
        keys = record_to_dict(_empty_record(media_type)).keys()
        models.append(
            PropertyMappingModel(media_type, [PropertyMapping(k, locked=k in LOCKED_PROPERTIES) for k in keys])
        )
    return models


def dumps_models(models: Iterable[PropertyMappingModel]) -> str:
    return json.dumps([m.to_json() for m in models], indent=2, ensure_ascii=False)


def loads_models(text: str) -> list[PropertyMappingModel]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PropertyMappingValidationError(f"Invalid property mapping JSON: {exc}") from exc
    if not isinstance(data, list):
        raise PropertyMappingValidationError("Property mapping JSON must be a list of models")
    return [PropertyMappingModel.from_json(m) for m in data if isinstance(m, Mapping)]


# ============================================================================
# Mapper
# ============================================================================


class PropertyMapper:
    def __init__(self, models: Iterable[PropertyMappingModel] | None = None) -> None:
        self._models: dict[MediaType, PropertyMappingModel] = {}
        for model in models if models is not None else default_property_mapping_models():
            model.validate()
            self._models[model.type] = model

    def model_for(self, media_type: MediaType) -> PropertyMappingModel | None:
        return self._models.get(media_type)

    def convert(self, obj: MediaRecord | Mapping[str, object]) -> dict[str, object]:
        """Registro (o su mapa) -> mapa remapeado para la nota."""
        data = record_to_dict(obj) if isinstance(obj, MediaRecord) else dict(obj)
        media_type = _media_type_of(data)
        model = self._models.get(media_type) if media_type is not None else None
        if model is None:
            return data

        out: dict[str, object] = {}
        for key, value in data.items():
            if key == TYPE_KEY:
                out[key] = value
                continue
            mapping = model.find(key)
            if mapping is None:
                out[key] = value
                continue
            final = to_wikilink(value) if mapping.wikilink else value
            if mapping.mapping == PropertyMappingOption.MAP:
                out[mapping.new_property] = final
            elif mapping.mapping == PropertyMappingOption.DEFAULT:
                out[key] = final
        return out

    def convert_back(self, obj: Mapping[str, object]) -> dict[str, object]:
        """Mapa de nota -> claves originales (inversa de convert)."""
        data = dict(obj)
        if data.get(TYPE_KEY) == "manga":
            data[TYPE_KEY] = MediaType.COMIC_MANGA.value
            logger.debug_ctx("MAPPING", "updated legacy metadata type manga -> comicManga")

        media_type = _media_type_of(data)
        model = self._models.get(media_type) if media_type is not None else None
        if model is None:
            return data

        by_target = {m.new_property: m for m in model.mapped_properties()}
        out: dict[str, object] = {}
        for key, value in data.items():
            if key == TYPE_KEY:
                out[key] = value
                continue
            mapping = by_target.get(key)
            if mapping is None:
                mapping = model.find(key)
                if mapping is not None and mapping.mapping != PropertyMappingOption.DEFAULT:
                    mapping = None
                target = key
            else:
                target = mapping.property
            out[target] = from_wikilink(value) if mapping is not None and mapping.wikilink else value
        return out

    def convert_record_back(self, obj: Mapping[str, object]) -> MediaRecord:
        return record_from_dict(self.convert_back(obj))
