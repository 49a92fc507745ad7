"""Tests for the fire-once completion latch."""

import asyncio
import threading

import pytest

from openanakin.core.latch import FireOnceLatch


def test_only_first_claim_wins():
    latch = FireOnceLatch()
    assert latch.try_claim() is True
    assert latch.try_claim() is False
    assert latch.claimed is True
    assert latch.released is False


def test_fire_is_claim_plus_release():
    latch = FireOnceLatch()
    assert latch.fire() is True
    assert latch.fire() is False
    assert latch.released is True


def test_claim_is_exclusive_across_threads():
    latch = FireOnceLatch()
    barrier = threading.Barrier(16)
    wins: list[bool] = []
    lock = threading.Lock()

    def contend():
        barrier.wait()
        won = latch.try_claim()
        with lock:
            wins.append(won)

    threads = [threading.Thread(target=contend) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert wins.count(True) == 1
    assert len(wins) == 16


@pytest.mark.asyncio
async def test_wait_suspends_until_release():
    latch = FireOnceLatch()
    waiter = asyncio.create_task(latch.wait())
    await asyncio.sleep(0)
    assert not waiter.done()

    assert latch.try_claim()
    await asyncio.sleep(0)
    assert not waiter.done()

    latch.release()
    await asyncio.wait_for(waiter, timeout=1)
