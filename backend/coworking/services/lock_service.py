"""
Redis-backed lock manager for deployments with several worker processes.
Implements the LockManager interface on top of redis-py's asyncio Lock.

Failure mode:
  Unlike a cache, a lock cannot "fail open": admitting every request during
  a Redis outage would allow double bookings. When Redis is unreachable the
  lock is reported as not acquired and the caller sees a retryable busy error.
"""

import time
from typing import Optional

from redis.exceptions import LockError, RedisError

from coworking.core.logging import get_logger
from coworking.core.metrics import record_lock_wait, redis_connection_errors
from coworking.infrastructure.redis_client import get_redis
from coworking.services.interfaces.lock import LockHandle, LockManager

logger = get_logger(__name__)


class RedisLockManager(LockManager):
    backend = "redis"
    key_prefix = "lock:"

    async def acquire(self, key: str, ttl: float, wait: float) -> Optional[LockHandle]:
        started = time.perf_counter()
        client = await get_redis()
        if client is None:
            logger.error("lock_backend_unavailable", key=key)
            record_lock_wait(self.backend, time.perf_counter() - started, acquired=False)
            return None

        lock = client.lock(
            self.key_prefix + key,
            timeout=ttl,
            blocking=True,
            blocking_timeout=wait,
            thread_local=False,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            redis_connection_errors.inc()
            logger.error("lock_acquire_error", key=key, error=str(e))
            acquired = False

        record_lock_wait(self.backend, time.perf_counter() - started, acquired=acquired)
        if not acquired:
            return None

        token = lock.local.token
        if isinstance(token, bytes):
            token = token.decode()
        return LockHandle(key=key, token=token, backend_lock=lock)

    async def release(self, handle: LockHandle) -> None:
        try:
            await handle.backend_lock.release()
        except LockError:
            # Held past the TTL; another holder may own the key now
            logger.warning("lock_release_not_owned", key=handle.key, backend=self.backend)
        except RedisError as e:
            redis_connection_errors.inc()
            logger.error("lock_release_error", key=handle.key, error=str(e))
