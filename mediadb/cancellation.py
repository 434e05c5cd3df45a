from __future__ import annotations

"""
mediadb/cancellation.py

CancellationToken: señal cooperativa que viaja por todas las llamadas de un query().

- cancel() marca el token y cancela las asyncio.Task adjuntas.
- raise_if_cancelled() se comprueba antes y después de cada llamada HTTP.
- Las llamadas bloqueantes ya lanzadas en un hilo (asyncio.to_thread) terminan solas;
  su resultado se descarta.
"""

import asyncio

from mediadb.errors import QueryCancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        for task in list(self._tasks):
            task.cancel()

    def attach(self, task: asyncio.Task[object]) -> None:
        """Asocia una task: se cancela junto con el token."""
        if self._cancelled:
            task.cancel()
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise QueryCancelledError(f"Query {self._reason}")


def ensure_token(token: CancellationToken | None) -> CancellationToken:
    """Llamadas sueltas (fuera de un query()) reciben un token propio."""
    return token if token is not None else CancellationToken()
