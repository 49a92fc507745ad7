"""In-process test doubles for the relay."""

from .fake_backend import (
    FAKE_BASE_URL,
    BackendReply,
    FakeAnakin,
    broken_stream_transport,
    encode_frame,
    failing_transport,
)
from .sinks import MemorySink

__all__ = [
    "FAKE_BASE_URL",
    "BackendReply",
    "FakeAnakin",
    "MemorySink",
    "broken_stream_transport",
    "encode_frame",
    "failing_transport",
]
