"""
Per-key lock manager interface.
Allows swapping between an in-process lock and a Redis lock shared by workers.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional


class LockNotAcquired(Exception):
    """The wait budget ran out while another holder kept the key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Could not acquire lock {key!r}")


@dataclass
class LockHandle:
    key: str
    token: str
    backend_lock: Any = field(default=None, repr=False)


class LockManager(ABC):
    """
    Interface for key-scoped mutual exclusion.

    Locks are non-reentrant and owned by the token handed out on acquire.
    Every lock expires after its TTL so a crashed holder cannot block the
    key forever.

    Implementations:
    - InProcessLockManager: single process, asyncio tasks
    - RedisLockManager: shared across worker processes
    """

    backend = "abstract"

    @abstractmethod
    async def acquire(self, key: str, ttl: float, wait: float) -> Optional[LockHandle]:
        """
        Try to take the lock, waiting at most `wait` seconds.

        Args:
            key: Lock name
            ttl: Seconds before an unreleased lock expires
            wait: Seconds to keep retrying while the key is held

        Returns:
            A handle when acquired, None when the wait budget ran out
        """
        pass

    @abstractmethod
    async def release(self, handle: LockHandle) -> None:
        """
        Release a held lock. Releasing an expired or taken-over lock is a no-op.
        """
        pass

    @asynccontextmanager
    async def hold(self, key: str, ttl: float, wait: float) -> AsyncIterator[LockHandle]:
        """Hold `key` for the duration of the block; raises LockNotAcquired on timeout."""
        handle = await self.acquire(key, ttl, wait)
        if handle is None:
            raise LockNotAcquired(key)
        try:
            yield handle
        finally:
            await self.release(handle)
