"""
Tests for the in-process per-key lock manager.
"""

import asyncio
import time

import pytest

from coworking.services.interfaces.lock import LockNotAcquired
from coworking.services.interfaces.memory_lock import InProcessLockManager


@pytest.mark.asyncio
async def test_acquire_and_release():
    locks = InProcessLockManager()
    handle = await locks.acquire("office_1", ttl=10, wait=0)
    assert handle is not None
    assert locks.is_locked("office_1")

    await locks.release(handle)
    assert not locks.is_locked("office_1")


@pytest.mark.asyncio
async def test_held_key_times_out_after_wait_budget():
    locks = InProcessLockManager()
    await locks.acquire("office_1", ttl=10, wait=0)

    started = time.monotonic()
    second = await locks.acquire("office_1", ttl=10, wait=0.1)
    elapsed = time.monotonic() - started

    assert second is None
    assert elapsed >= 0.1


@pytest.mark.asyncio
async def test_not_reentrant():
    """The same caller asking twice still has to wait for its own release."""
    locks = InProcessLockManager()
    first = await locks.acquire("office_1", ttl=10, wait=0)
    assert first is not None
    assert await locks.acquire("office_1", ttl=10, wait=0) is None


@pytest.mark.asyncio
async def test_waiter_gets_lock_after_release():
    locks = InProcessLockManager()
    handle = await locks.acquire("office_1", ttl=10, wait=0)

    async def release_soon():
        await asyncio.sleep(0.05)
        await locks.release(handle)

    release_task = asyncio.create_task(release_soon())
    second = await locks.acquire("office_1", ttl=10, wait=1)
    await release_task

    assert second is not None
    assert second.token != handle.token


@pytest.mark.asyncio
async def test_lock_expires_after_ttl():
    locks = InProcessLockManager()
    await locks.acquire("office_1", ttl=0.05, wait=0)

    second = await locks.acquire("office_1", ttl=10, wait=0.5)
    assert second is not None


@pytest.mark.asyncio
async def test_stale_holder_cannot_release_new_holder():
    locks = InProcessLockManager()
    stale = await locks.acquire("office_1", ttl=0.01, wait=0)
    await asyncio.sleep(0.02)
    fresh = await locks.acquire("office_1", ttl=10, wait=0)
    assert fresh is not None

    await locks.release(stale)
    assert locks.is_locked("office_1")


@pytest.mark.asyncio
async def test_keys_are_independent():
    locks = InProcessLockManager()
    await locks.acquire("office_1", ttl=10, wait=0)
    assert await locks.acquire("office_2", ttl=10, wait=0) is not None


@pytest.mark.asyncio
async def test_hold_releases_on_exception():
    locks = InProcessLockManager()

    with pytest.raises(RuntimeError):
        async with locks.hold("office_1", ttl=10, wait=0):
            raise RuntimeError("boom")

    assert not locks.is_locked("office_1")


@pytest.mark.asyncio
async def test_hold_raises_when_busy():
    locks = InProcessLockManager()
    await locks.acquire("office_1", ttl=10, wait=0)

    with pytest.raises(LockNotAcquired) as exc_info:
        async with locks.hold("office_1", ttl=10, wait=0.02):
            pytest.fail("lock should not have been acquired")

    assert exc_info.value.key == "office_1"


@pytest.mark.asyncio
async def test_hold_serializes_critical_sections():
    locks = InProcessLockManager()
    inside = 0
    max_inside = 0

    async def worker():
        nonlocal inside, max_inside
        async with locks.hold("office_1", ttl=10, wait=5):
            inside += 1
            max_inside = max(max_inside, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(*(worker() for _ in range(5)))
    assert max_inside == 1
