"""In-memory request counters for realtime usage reporting.

These count relay exchanges, not tokens: the backend reports no token usage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any


class RequestTracker:
    """Track a single request lifecycle for in-memory counters."""

    def __init__(self, counters: "UsageCounters") -> None:
        self._counters = counters
        self._finished = False
        self._streaming = False

    def mark_streaming(self) -> None:
        if self._streaming or self._finished:
            return
        self._streaming = True
        self._counters.start_stream()

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._counters.finish_request(streaming=self._streaming)


@dataclass
class UsageCounters:
    """Thread-safe counters for request lifecycle tracking."""

    _lock: Lock = field(default_factory=Lock, repr=False)
    _started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    _received: int = 0
    _served: int = 0
    _ongoing: int = 0
    _streams_open: int = 0
    _streams_total: int = 0

    def start_request(self) -> RequestTracker:
        with self._lock:
            self._received += 1
            self._ongoing += 1
        return RequestTracker(self)

    def start_stream(self) -> None:
        with self._lock:
            self._streams_open += 1
            self._streams_total += 1

    def finish_request(self, streaming: bool = False) -> None:
        with self._lock:
            self._served += 1
            self._ongoing = max(self._ongoing - 1, 0)
            if streaming:
                self._streams_open = max(self._streams_open - 1, 0)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "started_at": self._started_at,
                "received": self._received,
                "served": self._served,
                "ongoing": self._ongoing,
                "streams_open": self._streams_open,
                "streams_total": self._streams_total,
            }

    def reset(self) -> None:
        with self._lock:
            self._received = 0
            self._served = 0
            self._ongoing = 0
            self._streams_open = 0
            self._streams_total = 0


USAGE_COUNTERS = UsageCounters()


def build_usage_snapshot() -> dict[str, Any]:
    """Build the usage payload with realtime counters."""
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "realtime": USAGE_COUNTERS.snapshot(),
    }
