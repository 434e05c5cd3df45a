from __future__ import annotations

"""
mediadb/http_transport.py

Transporte HTTP compartido por todos los clientes.

- requests.Session con pooling + Retry de urllib3 (5xx best-effort, idempotente).
  429 NO se reintenta aquí: llega al caller como RateLimitError para que decida él.
- Las llamadas bloqueantes de requests se ejecutan vía asyncio.to_thread, así el
  fan-out de query() solapa las esperas de red sin hilos propios.
- El CancellationToken se comprueba antes y después de cada llamada: una query
  reemplazada no procesa respuestas tardías.
- Clasificación de status centralizada (errors.classify_status).
"""

import asyncio
from collections.abc import Mapping
from typing import Final

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from mediadb import logger
from mediadb.cancellation import CancellationToken, ensure_token
from mediadb.errors import TransportError, UpstreamError, classify_status
from mediadb.settings import MediaDbSettings

_RETRY_STATUS: Final[tuple[int, ...]] = (500, 502, 503, 504)
_DEFAULT_ACCEPT: Final[str] = "application/json,text/xml,text/plain,*/*"


def _dbg(msg: object) -> None:
    logger.debug_ctx("HTTP", msg)


def build_session(
    *,
    retry_total: int,
    backoff_factor: float,
    pool_maxsize: int,
    user_agent: str,
) -> requests.Session:
    """requests.Session con Retry y pool dimensionado para el fan-out de query()."""
    session = requests.Session()

    retries = Retry(
        total=max(0, retry_total),
        backoff_factor=max(0.0, backoff_factor),
        status_forcelist=_RETRY_STATUS,
        allowed_methods=("GET", "POST"),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(
        max_retries=retries,
        pool_connections=max(1, pool_maxsize),
        pool_maxsize=max(1, pool_maxsize),
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": _DEFAULT_ACCEPT,
        }
    )
    return session


class HttpTransport:
    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
        retry_total: int = 2,
        backoff_factor: float = 0.5,
        pool_maxsize: int = 16,
        user_agent: str = "mediadb/0.5.0",
    ) -> None:
        self._session = (
            session
            if session is not None
            else build_session(
                retry_total=retry_total,
                backoff_factor=backoff_factor,
                pool_maxsize=pool_maxsize,
                user_agent=user_agent,
            )
        )
        self._timeout = max(0.5, float(timeout_seconds))

    @classmethod
    def from_settings(cls, settings: MediaDbSettings) -> "HttpTransport":
        return cls(
            timeout_seconds=settings.http_timeout_seconds,
            retry_total=settings.http_retry_total,
            backoff_factor=settings.http_retry_backoff_factor,
            pool_maxsize=settings.http_pool_maxsize,
            user_agent=settings.http_user_agent,
        )

    @property
    def session(self) -> requests.Session:
        return self._session

    def close(self) -> None:
        self._session.close()

    async def request(
        self,
        method: str,
        url: str,
        *,
        api_name: str,
        token: CancellationToken | None = None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: object = None,
        data: str | bytes | None = None,
    ) -> Response:
        """
        Ejecuta la request y clasifica el status.

        Lanza:
        - QueryCancelledError si el token se cancela antes/después de la llamada
        - TransportError ante fallos de red / timeout
        - AuthError / RateLimitError / UpstreamError para status no-2xx
        """
        tok = ensure_token(token)
        tok.raise_if_cancelled()

        _dbg(f"{api_name} -> {method} {url} params={dict(params or {})}")

        try:
            resp = await asyncio.to_thread(
                self._session.request,
                method,
                url,
                params=dict(params) if params is not None else None,
                headers=dict(headers) if headers is not None else None,
                json=json_body,
                data=data,
                timeout=self._timeout,
            )
        except RequestException as exc:
            raise TransportError(
                f"HTTP error calling {api_name}: {exc!r}",
                api_name=api_name,
            ) from exc

        tok.raise_if_cancelled()

        _dbg(f"{api_name} <- status={resp.status_code}")

        err = classify_status(api_name, int(resp.status_code), _safe_text(resp))
        if err is not None:
            raise err
        return resp

    async def get_json(
        self,
        url: str,
        *,
        api_name: str,
        token: CancellationToken | None = None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> object:
        resp = await self.request("GET", url, api_name=api_name, token=token, params=params, headers=headers)
        return decode_json(resp, api_name=api_name)

    async def post_json(
        self,
        url: str,
        *,
        api_name: str,
        token: CancellationToken | None = None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: object = None,
        data: str | bytes | None = None,
    ) -> object:
        resp = await self.request(
            "POST",
            url,
            api_name=api_name,
            token=token,
            params=params,
            headers=headers,
            json_body=json_body,
            data=data,
        )
        return decode_json(resp, api_name=api_name)

    async def get_text(
        self,
        url: str,
        *,
        api_name: str,
        token: CancellationToken | None = None,
        params: Mapping[str, object] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        resp = await self.request("GET", url, api_name=api_name, token=token, params=params, headers=headers)
        return resp.text


def _safe_text(resp: Response) -> str:
    try:
        return resp.text or ""
    except (UnicodeDecodeError, AttributeError):
        return ""


def decode_json(resp: Response, *, api_name: str) -> object:
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamError(
            f"Invalid JSON received from {api_name}: {logger.truncate_line(_safe_text(resp), 200)}",
            api_name=api_name,
            status_code=int(resp.status_code),
        ) from exc
