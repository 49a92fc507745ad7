"""Fire-once completion latch shared by a stream session and its response."""

import asyncio
import threading


class FireOnceLatch:
    """A latch whose release can be claimed by exactly one caller.

    ``try_claim`` is an atomic test-and-set: the underlying lock is acquired
    without blocking and never released, so only the first caller, from any
    task or thread, gets True. The claimer then does its terminal work and
    calls ``release`` to wake waiters.
    """

    def __init__(self) -> None:
        self._gate = threading.Lock()
        self._released = asyncio.Event()

    def try_claim(self) -> bool:
        return self._gate.acquire(blocking=False)

    @property
    def claimed(self) -> bool:
        return self._gate.locked()

    def release(self) -> None:
        self._released.set()

    def fire(self) -> bool:
        """Claim and release in one step. Returns False if already claimed."""
        if not self.try_claim():
            return False
        self.release()
        return True

    @property
    def released(self) -> bool:
        return self._released.is_set()

    async def wait(self) -> None:
        await self._released.wait()
