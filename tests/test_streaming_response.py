"""Tests for RelayStreamingResponse driven directly through the ASGI interface."""

import asyncio

import pytest
from starlette.background import BackgroundTask

from openanakin.core import RelayStreamingResponse
from openanakin.core.exceptions import ClientDisconnected
from openanakin.core.session import StreamSession

SCOPE = {"type": "http", "method": "POST", "path": "/v1/chat/completions", "headers": []}


class Recorder:
    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def bodies(self) -> list[bytes]:
        return [m["body"] for m in self.messages if m["type"] == "http.response.body"]


def idle_receive(disconnect: asyncio.Event):
    async def receive() -> dict:
        await disconnect.wait()
        return {"type": "http.disconnect"}

    return receive


@pytest.mark.asyncio
async def test_response_stays_open_until_latch_fires():
    gate = asyncio.Event()

    async def runner(session: StreamSession) -> None:
        await session.on_event('{"content": "a"}')
        await gate.wait()
        await session.on_complete()

    send = Recorder()
    response = RelayStreamingResponse("m", runner)
    task = asyncio.create_task(response(SCOPE, idle_receive(asyncio.Event()), send))

    for _ in range(20):
        await asyncio.sleep(0)
    assert not task.done()
    assert send.messages[0]["type"] == "http.response.start"
    assert len(send.bodies) == 1

    gate.set()
    await asyncio.wait_for(task, timeout=1)

    assert send.bodies[-2] == b"data: [DONE]\n\n"
    assert send.messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}
    assert all(m.get("more_body") for m in send.messages[1:-1])


@pytest.mark.asyncio
async def test_start_message_carries_event_stream_headers():
    async def runner(session: StreamSession) -> None:
        await session.on_complete()

    send = Recorder()
    await RelayStreamingResponse("m", runner)(SCOPE, idle_receive(asyncio.Event()), send)

    start = send.messages[0]
    headers = dict(start["headers"])
    assert start["status"] == 200
    assert headers[b"content-type"].startswith(b"text/event-stream")
    assert headers[b"cache-control"] == b"no-cache"
    assert headers[b"connection"] == b"keep-alive"
    assert b"content-length" not in headers


@pytest.mark.asyncio
async def test_runner_crash_becomes_error_frame():
    async def runner(session: StreamSession) -> None:
        raise RuntimeError("kaput")

    send = Recorder()
    response = RelayStreamingResponse("m", runner)
    await asyncio.wait_for(response(SCOPE, idle_receive(asyncio.Event()), send), timeout=1)

    assert send.bodies[0] == b"error: kaput\n\n"
    assert isinstance(response.session.error, RuntimeError)


@pytest.mark.asyncio
async def test_runner_returning_without_signal_still_closes():
    async def runner(session: StreamSession) -> None:
        await session.on_event('{"content": "a"}')

    send = Recorder()
    response = RelayStreamingResponse("m", runner)
    await asyncio.wait_for(response(SCOPE, idle_receive(asyncio.Event()), send), timeout=1)

    assert send.bodies[-2] == b"data: [DONE]\n\n"
    assert response.session.finished


@pytest.mark.asyncio
async def test_client_disconnect_cancels_upstream():
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def runner(session: StreamSession) -> None:
        started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    disconnect = asyncio.Event()
    send = Recorder()
    response = RelayStreamingResponse("m", runner)
    task = asyncio.create_task(response(SCOPE, idle_receive(disconnect), send))

    await asyncio.wait_for(started.wait(), timeout=1)
    disconnect.set()
    await asyncio.wait_for(task, timeout=1)

    assert cancelled.is_set()
    assert response.client_disconnected
    assert isinstance(response.session.error, ClientDisconnected)
    # No closing body message once the client is gone.
    assert send.messages[-1].get("more_body", True) is True


@pytest.mark.asyncio
async def test_background_runs_after_stream_closes():
    order: list[str] = []

    async def runner(session: StreamSession) -> None:
        await session.on_complete()
        order.append("complete")

    async def after() -> None:
        order.append("background")

    send = Recorder()
    response = RelayStreamingResponse("m", runner, background=BackgroundTask(after))
    await asyncio.wait_for(response(SCOPE, idle_receive(asyncio.Event()), send), timeout=1)

    assert order == ["complete", "background"]
