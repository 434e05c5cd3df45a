from __future__ import annotations

"""
mediadb/clients/base.py

Contrato común de los adaptadores (uno por API upstream).

Cada adaptador declara:
- API_NAME (único; es el `dataSource` de todos sus registros)
- API_DESCRIPTION / API_URL (informativos)
- TYPES: tipos de media que puede producir

Y expone dos operaciones async:
- search_by_title(title) -> list[MediaRecord] (stubs, máx. 20, orden upstream)
- get_by_id(id) -> MediaRecord (detalle completo)

Los helpers de aquí concentran lo que todos los clientes repiten: credenciales,
lectura validada, fechas, límite de resultados y construcción del registro.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import ClassVar, Final

from mediadb import logger
from mediadb.cancellation import CancellationToken
from mediadb.date_formatter import DateFormatter
from mediadb.errors import ConfigError
from mediadb.fields import FieldReader
from mediadb.http_transport import HttpTransport
from mediadb.media_type import MediaType
from mediadb.models import MediaPayload, MediaRecord
from mediadb.settings import MediaDbSettings

MAX_SEARCH_RESULTS: Final[int] = 20


class MediaApi(ABC):
    API_NAME: ClassVar[str]
    API_DESCRIPTION: ClassVar[str] = ""
    API_URL: ClassVar[str] = ""
    TYPES: ClassVar[tuple[MediaType, ...]] = ()

    def __init__(
        self,
        settings: MediaDbSettings,
        transport: HttpTransport,
        *,
        date_formatter: DateFormatter | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.date_formatter = date_formatter or DateFormatter(settings.date_format, settings.date_locale)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.API_NAME!r}>"

    # ------------------------------------------------------------------
    # Metadatos
    # ------------------------------------------------------------------

    @property
    def api_name(self) -> str:
        return self.API_NAME

    @property
    def api_description(self) -> str:
        return self.API_DESCRIPTION

    @property
    def api_url(self) -> str:
        return self.API_URL

    @property
    def types(self) -> tuple[MediaType, ...]:
        return self.TYPES

    def has_type(self, media_type: MediaType) -> bool:
        """Tipo declarado y no deshabilitado en settings para esta API."""
        return media_type in self.TYPES and self._allows(media_type)

    def has_type_overlap(self, media_types: Iterable[MediaType]) -> bool:
        return any(self.has_type(t) for t in media_types)

    def get_disabled_media_types(self) -> frozenset[MediaType]:
        return self.settings.disabled_types_for(self.API_NAME)

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    @abstractmethod
    async def search_by_title(
        self,
        title: str,
        *,
        token: CancellationToken | None = None,
    ) -> list[MediaRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(
        self,
        record_id: str,
        *,
        token: CancellationToken | None = None,
    ) -> MediaRecord:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers para subclases
    # ------------------------------------------------------------------

    def _dbg(self, msg: object) -> None:
        logger.debug_ctx(self.API_NAME, msg)

    def _require_key(self, value: str | None, label: str = "API key") -> str:
        """Credencial obligatoria: sin ella no se hace ninguna llamada."""
        if not value:
            raise ConfigError(f"{label} for {self.API_NAME} missing.", api_name=self.API_NAME)
        return value

    def _reader(self, data: object, path: str = "") -> FieldReader:
        return FieldReader(data, api_name=self.API_NAME, path=path)

    def _allows(self, media_type: MediaType) -> bool:
        return media_type not in self.get_disabled_media_types()

    @property
    def search_limit(self) -> int:
        return max(1, min(MAX_SEARCH_RESULTS, self.settings.search_limit))

    def _limit(self, records: Sequence[MediaRecord]) -> list[MediaRecord]:
        return list(records[: self.search_limit])

    def _date(self, text: str | None, source_format: str | None = None) -> str:
        return self.date_formatter.format(text, source_format) or ""

    def _record(
        self,
        *,
        title: str,
        english_title: str,
        year: str,
        record_id: str,
        payload: MediaPayload,
        url: str = "",
        sub_type: str = "",
    ) -> MediaRecord:
        return MediaRecord(
            title=title,
            english_title=english_title,
            year=year,
            data_source=self.api_name,
            id=record_id,
            payload=payload,
            url=url,
            sub_type=sub_type,
        )

    async def _get_json(
        self,
        url: str,
        *,
        token: CancellationToken | None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> object:
        return await self.transport.get_json(url, api_name=self.API_NAME, token=token, params=params, headers=headers)

    async def _post_json(
        self,
        url: str,
        *,
        token: CancellationToken | None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: object = None,
        data: str | bytes | None = None,
    ) -> object:
        return await self.transport.post_json(
            url,
            api_name=self.API_NAME,
            token=token,
            params=params,
            headers=headers,
            json_body=json_body,
            data=data,
        )
