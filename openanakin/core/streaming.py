"""ASGI streaming response that stays open until its stream session finishes.

Unlike ``StreamingResponse``, which pulls from an iterator, this response is
pushed to: an upstream task writes frames through the session while the
response coroutine suspends on the session's completion latch. The body is
closed only after the latch fires.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional

from starlette.background import BackgroundTask
from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from .exceptions import ClientDisconnected
from .session import ERROR_FORMAT_LEGACY, StreamSession

logger = logging.getLogger("openanakin")

SessionRunner = Callable[[StreamSession], Awaitable[None]]

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ASGISink:
    """Writes session frames as ASGI ``http.response.body`` messages."""

    def __init__(self, send: Send) -> None:
        self._send = send

    async def write(self, data: bytes) -> None:
        await self._send({"type": "http.response.body", "body": data, "more_body": True})

    async def flush(self) -> None:
        # Every body message is handed to the server as soon as it is sent.
        return None


class RelayStreamingResponse(Response):
    """Event-stream response driven by a background upstream task.

    Args:
        model: Model name echoed in every chunk.
        runner: Coroutine function that feeds the session and eventually
            calls ``on_complete`` or ``on_error`` on it.
        stable_stream_id: Reuse the session id for every chunk.
        error_format: ``legacy`` or ``openai`` error frames.
    """

    media_type = "text/event-stream"

    def __init__(
        self,
        model: str,
        runner: SessionRunner,
        *,
        stable_stream_id: bool = False,
        error_format: str = ERROR_FORMAT_LEGACY,
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        background: Optional[BackgroundTask] = None,
    ) -> None:
        self.model = model
        self.runner = runner
        self.stable_stream_id = stable_stream_id
        self.error_format = error_format
        self.status_code = status_code
        self.background = background
        self.session: Optional[StreamSession] = None
        self.client_disconnected = False
        merged = dict(EVENT_STREAM_HEADERS)
        merged.update(headers or {})
        self.init_headers(merged)

    async def _watch_disconnect(
        self, receive: Receive, upstream: asyncio.Task, session: StreamSession
    ) -> None:
        while True:
            message: Message = await receive()
            if message["type"] == "http.disconnect":
                break
        self.client_disconnected = True
        logger.info("Client disconnected from stream %s", session.request_id)
        upstream.cancel()
        await asyncio.gather(upstream, return_exceptions=True)
        # The task may have been cancelled before it ever ran.
        await session.on_error(ClientDisconnected())

    async def _run_upstream(self, session: StreamSession) -> None:
        try:
            await self.runner(session)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Upstream task for stream %s crashed", session.request_id)
            await session.on_error(exc)
        else:
            if not session.finished:
                logger.error("Upstream task for stream %s ended without a terminal signal", session.request_id)
                await session.on_complete()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )
        session = StreamSession(
            ASGISink(send),
            self.model,
            stable_stream_id=self.stable_stream_id,
            error_format=self.error_format,
        )
        self.session = session
        upstream = asyncio.create_task(self._run_upstream(session))
        watcher = asyncio.create_task(self._watch_disconnect(receive, upstream, session))

        try:
            await session.wait()
        except asyncio.CancelledError:
            upstream.cancel()
            watcher.cancel()
            raise
        watcher.cancel()
        await asyncio.gather(upstream, watcher, return_exceptions=True)

        if not self.client_disconnected:
            try:
                await send({"type": "http.response.body", "body": b"", "more_body": False})
            except OSError as exc:
                logger.debug("Could not close stream %s: %s", session.request_id, exc)

        if self.background is not None:
            await self.background()
