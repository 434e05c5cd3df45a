import asyncio

import pytest

from mediadb.cancellation import CancellationToken, ensure_token
from mediadb.errors import QueryCancelledError


def test_cancel_marks_token_and_keeps_first_reason():
    tok = CancellationToken()
    tok.raise_if_cancelled()

    tok.cancel("superseded")
    tok.cancel("cancelled")

    assert tok.cancelled
    assert tok.reason == "superseded"
    with pytest.raises(QueryCancelledError, match="Query superseded"):
        tok.raise_if_cancelled()


def test_cancel_cancels_attached_tasks():
    async def scenario():
        tok = CancellationToken()
        task = asyncio.create_task(asyncio.sleep(5))
        tok.attach(task)
        tok.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        late = asyncio.create_task(asyncio.sleep(5))
        tok.attach(late)
        with pytest.raises(asyncio.CancelledError):
            await late

    asyncio.run(scenario())


def test_finished_tasks_are_released():
    async def scenario():
        tok = CancellationToken()
        task = asyncio.create_task(asyncio.sleep(0))
        tok.attach(task)
        await task
        await asyncio.sleep(0)
        return tok

    assert asyncio.run(scenario())._tasks == set()


def test_ensure_token():
    tok = CancellationToken()
    assert ensure_token(tok) is tok
    assert isinstance(ensure_token(None), CancellationToken)
