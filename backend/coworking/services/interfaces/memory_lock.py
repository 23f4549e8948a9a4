"""
In-process lock manager.
Correct for a single worker process; use the Redis backend with several workers.
"""

import asyncio
import time
import uuid
from typing import Callable, Optional

from coworking.core.logging import get_logger
from coworking.core.metrics import record_lock_wait
from coworking.services.interfaces.lock import LockHandle, LockManager

logger = get_logger(__name__)


class InProcessLockManager(LockManager):
    """
    Process-wide map of key -> (token, expiry).

    Taking a free or expired key never awaits, so the check-and-set runs
    atomically on the event loop. Waiters poll until the deadline, the same
    way redis-py's Lock does.
    """

    backend = "memory"
    poll_interval = 0.01

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._holders: dict[str, tuple[str, float]] = {}

    def _try_take(self, key: str, ttl: float) -> Optional[str]:
        now = self._clock()
        holder = self._holders.get(key)
        if holder is not None:
            if holder[1] > now:
                return None
            logger.warning("lock_expired", key=key, backend=self.backend)

        token = uuid.uuid4().hex
        self._holders[key] = (token, now + ttl)
        return token

    async def acquire(self, key: str, ttl: float, wait: float) -> Optional[LockHandle]:
        started = self._clock()
        deadline = started + wait

        while True:
            token = self._try_take(key, ttl)
            if token is not None:
                record_lock_wait(self.backend, self._clock() - started, acquired=True)
                return LockHandle(key=key, token=token)

            remaining = deadline - self._clock()
            if remaining <= 0:
                record_lock_wait(self.backend, self._clock() - started, acquired=False)
                return None
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def release(self, handle: LockHandle) -> None:
        holder = self._holders.get(handle.key)
        if holder is None or holder[0] != handle.token:
            logger.warning("lock_release_not_owned", key=handle.key, backend=self.backend)
            return
        del self._holders[handle.key]

    def is_locked(self, key: str) -> bool:
        holder = self._holders.get(key)
        return holder is not None and holder[1] > self._clock()
