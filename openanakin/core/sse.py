"""SSE (Server-Sent Events) decoding and frame encoding.

The Anakin backend streams ``data: {"content": ...}`` lines terminated by
``data: [DONE]``. :func:`iter_raw_events` turns the line iterator of an
upstream response into :class:`RawEvent` values; the ``*_frame`` helpers
build the frames written to the client.
"""

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

logger = logging.getLogger("openanakin")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
DONE_FRAME = b"data: [DONE]\n\n"


@dataclass(frozen=True)
class RawEvent:
    """One decoded upstream event.

    Exactly one of the three shapes is used:
    - ``data`` set: a payload taken from a ``data:`` line
    - ``done`` set: the stream ended normally
    - ``error`` set: reading the stream failed
    """

    data: Optional[str] = None
    done: bool = False
    error: Optional[BaseException] = None

    @classmethod
    def end(cls) -> "RawEvent":
        return cls(done=True)

    @classmethod
    def failure(cls, exc: BaseException) -> "RawEvent":
        return cls(error=exc)

    @property
    def is_terminal(self) -> bool:
        return self.done or self.error is not None


def parse_data_line(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for any other line."""
    stripped = line.strip()
    if not stripped.startswith(DATA_PREFIX):
        return None
    return stripped[len(DATA_PREFIX):]


async def iter_raw_events(lines: AsyncIterator[str]) -> AsyncIterator[RawEvent]:
    """Decode an async iterator of text lines into raw events.

    The sequence always finishes with a terminal event: ``RawEvent.end()`` on
    ``[DONE]`` or on a clean end of the underlying stream, and
    ``RawEvent.failure(exc)`` when reading raises. Nothing is yielded after
    the terminal event.
    """
    try:
        async for line in lines:
            payload = parse_data_line(line)
            if payload is None:
                continue
            if payload == DONE_SENTINEL:
                yield RawEvent.end()
                return
            yield RawEvent(data=payload)
    except Exception as exc:
        logger.warning("Upstream stream read failed: %s", exc)
        yield RawEvent.failure(exc)
        return
    logger.debug("Upstream stream ended without a [DONE] sentinel")
    yield RawEvent.end()


def data_frame(payload: str) -> bytes:
    """Frame a serialized chunk as a client SSE event."""
    return f"{DATA_PREFIX}{payload}\n\n".encode("utf-8")


def legacy_error_frame(message: str) -> bytes:
    """Error frame in the relay's historical ``error: <message>`` shape."""
    return f"error: {message}\n\n".encode("utf-8")


def openai_error_frame(message: str, error_type: str = "upstream_error") -> bytes:
    """Error frame shaped like an OpenAI streamed error object."""
    body = {"error": {"message": message, "type": error_type, "code": None}}
    return data_frame(json.dumps(body, ensure_ascii=False))
