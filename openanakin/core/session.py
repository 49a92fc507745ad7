"""Stream session: bridges one upstream event sequence to one client sink."""

import asyncio
import logging
from typing import AsyncIterable, Optional, Protocol

from .latch import FireOnceLatch
from .sse import DONE_FRAME, RawEvent, data_frame, legacy_error_frame, openai_error_frame
from .translator import generate_completion_id, translate_payload

logger = logging.getLogger("openanakin")

ERROR_FORMAT_LEGACY = "legacy"
ERROR_FORMAT_OPENAI = "openai"
ERROR_FORMATS = {ERROR_FORMAT_LEGACY, ERROR_FORMAT_OPENAI}


class EventSink(Protocol):
    """Downstream writer owned by a session for its whole lifetime."""

    async def write(self, data: bytes) -> None: ...

    async def flush(self) -> None: ...


class StreamSession:
    """One streaming request's relay state.

    The upstream side calls :meth:`on_event` for every decoded payload, then
    exactly one of :meth:`on_complete` or :meth:`on_error`. Both terminal
    callbacks race for the same :class:`FireOnceLatch`; the loser does
    nothing. The response side suspends on :meth:`wait` until the winner has
    written its final frame.
    """

    def __init__(
        self,
        sink: EventSink,
        model: str,
        *,
        stable_stream_id: bool = False,
        error_format: str = ERROR_FORMAT_LEGACY,
    ) -> None:
        if error_format not in ERROR_FORMATS:
            raise ValueError(f"unknown stream error format: {error_format}")
        self.request_id = generate_completion_id()
        self.model = model
        self.stable_stream_id = stable_stream_id
        self.error_format = error_format
        self.chunks_written = 0
        self.error: Optional[BaseException] = None
        self._sink = sink
        self._sink_broken = False
        self._latch = FireOnceLatch()
        self._write_lock = asyncio.Lock()

    @property
    def finished(self) -> bool:
        return self._latch.released

    @property
    def failed(self) -> bool:
        return self.error is not None

    async def wait(self) -> None:
        await self._latch.wait()

    async def on_event(self, payload: str) -> None:
        chunk_id = self.request_id if self.stable_stream_id else None
        chunk = translate_payload(payload, self.model, chunk_id)
        if chunk is None:
            return
        async with self._write_lock:
            if self._latch.claimed:
                return
            if await self._emit(data_frame(chunk)):
                self.chunks_written += 1

    async def on_complete(self) -> bool:
        if not self._latch.try_claim():
            return False
        try:
            async with self._write_lock:
                await self._emit(DONE_FRAME)
        finally:
            self._latch.release()
        logger.info(
            "Stream %s completed after %d chunks", self.request_id, self.chunks_written
        )
        return True

    async def on_error(self, error: BaseException) -> bool:
        if not self._latch.try_claim():
            logger.debug("Ignoring error after stream %s finished: %s", self.request_id, error)
            return False
        self.error = error
        try:
            async with self._write_lock:
                await self._emit(self._error_frame(error))
        finally:
            self._latch.release()
        logger.warning("Stream %s failed: %s", self.request_id, error)
        return True

    def _error_frame(self, error: BaseException) -> bytes:
        message = str(error) or error.__class__.__name__
        if self.error_format == ERROR_FORMAT_OPENAI:
            return openai_error_frame(message)
        return legacy_error_frame(message)

    async def _emit(self, frame: bytes) -> bool:
        if self._sink_broken:
            return False
        try:
            await self._sink.write(frame)
            await self._sink.flush()
        except Exception as exc:
            # The client may already be gone; the terminal signal must still fire.
            self._sink_broken = True
            logger.warning("Write to client failed for stream %s: %s", self.request_id, exc)
            return False
        return True


async def drive_session(events: AsyncIterable[RawEvent], session: StreamSession) -> None:
    """Feed decoded events into a session in order until a terminal event."""
    async for event in events:
        if event.error is not None:
            await session.on_error(event.error)
            return
        if event.done:
            await session.on_complete()
            return
        if event.data is not None:
            await session.on_event(event.data)
    # Decoders always end with a terminal event; complete anyway if one didn't.
    await session.on_complete()
