from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Callable, Union

import pytest

from mediadb.clients.base import MediaApi
from mediadb.http_transport import HttpTransport
from mediadb.media_type import MediaType
from mediadb.models import MoviePayload
from mediadb.settings import MediaDbSettings


@dataclass
class FakeResponse:
    status_code: int = 200
    payload: object = None
    body: str | None = None

    @property
    def text(self) -> str:
        if self.body is not None:
            return self.body
        return json.dumps(self.payload) if self.payload is not None else ""

    def json(self) -> object:
        if self.body is not None:
            return json.loads(self.body)
        return self.payload


@dataclass
class RecordedCall:
    method: str
    url: str
    params: dict[str, object] | None = None
    headers: dict[str, str] | None = None
    json: object = None
    data: object = None
    timeout: float | None = None


Route = Union[FakeResponse, BaseException, list, Callable[[RecordedCall], FakeResponse]]


@dataclass
class FakeSession:
    """
    requests.Session mínimo con routing por fragmento de URL (sin red).

    Cada ruta puede ser:
    - FakeResponse
    - una excepción (se lanza)
    - una lista (se consume en orden, una respuesta por llamada)
    - un callable(RecordedCall) -> FakeResponse
    """

    routes: list[tuple[str, Route]] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)

    def add(self, fragment: str, response: Route) -> "FakeSession":
        self.routes.append((fragment, response))
        return self

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, object] | None = None,
        headers: dict[str, str] | None = None,
        json: object = None,
        data: object = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        call = RecordedCall(method, url, params, headers, json, data, timeout)
        self.calls.append(call)

        for fragment, route in self.routes:
            if fragment not in url:
                continue
            if isinstance(route, list):
                route = route.pop(0)
            if isinstance(route, BaseException):
                raise route
            if callable(route):
                return route(call)
            return route
        raise AssertionError(f"Unexpected request: {method} {url}")

    def close(self) -> None:
        return None


@pytest.fixture()
def settings() -> MediaDbSettings:
    return MediaDbSettings(
        omdb_api_key="omdb-key",
        tmdb_api_key="tmdb-token",
        mobygames_api_key="moby-key",
        giantbomb_api_key="gb-key",
        comicvine_api_key="cv-key",
        igdb_client_id="igdb-client",
        igdb_client_secret="igdb-secret",
        rawg_api_key="rawg-key",
    )


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def transport(fake_session: FakeSession) -> HttpTransport:
    return HttpTransport(session=fake_session)  # type: ignore[arg-type]


class StaticApi(MediaApi):
    """Adaptador en memoria: devuelve `results` tras `delay` segundos (o lanza `error`)."""

    API_NAME = "Static"
    TYPES = (MediaType.MOVIE, MediaType.SERIES)

    def __init__(self, settings, name, results=(), *, error=None, delay=0.0, types=None):
        super().__init__(settings, transport=None)  # type: ignore[arg-type]
        self._name = name
        self._results = list(results)
        self._error = error
        self._delay = delay
        self._types = tuple(types) if types else self.TYPES
        self.searched: list[str] = []

    @property
    def api_name(self):
        return self._name

    @property
    def types(self):
        return self._types

    def has_type(self, media_type):
        return media_type in self._types and media_type not in self.settings.disabled_types_for(self._name)

    def make(self, title, payload, record_id="1"):
        return self._record(title=title, english_title=title, year="2000", record_id=record_id, payload=payload)

    async def search_by_title(self, title, *, token=None):
        self.searched.append(title)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return list(self._results)

    async def get_by_id(self, record_id, *, token=None):
        return self.make(f"detail {record_id}", MoviePayload(plot="full"), record_id)
