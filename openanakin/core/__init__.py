"""Core module initialization."""

from .catalog import ModelCatalog
from .exceptions import (
    ClientDisconnected,
    ConfigurationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProxyError,
    UpstreamError,
)
from .latch import FireOnceLatch
from .session import EventSink, StreamSession, drive_session
from .sse import DONE_FRAME, RawEvent, iter_raw_events, parse_data_line
from .streaming import RelayStreamingResponse
from .translator import (
    build_anakin_request,
    build_completion_response,
    flatten_messages,
    translate_payload,
)

__all__ = [
    "ClientDisconnected",
    "ConfigurationError",
    "DONE_FRAME",
    "EventSink",
    "FireOnceLatch",
    "InvalidRequestError",
    "ModelCatalog",
    "ModelNotFoundError",
    "ProxyError",
    "RawEvent",
    "RelayStreamingResponse",
    "StreamSession",
    "UpstreamError",
    "build_anakin_request",
    "build_completion_response",
    "drive_session",
    "flatten_messages",
    "iter_raw_events",
    "parse_data_line",
    "translate_payload",
]
