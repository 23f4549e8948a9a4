"""
Backend factory for the per-office lock and the notification dispatcher.
Configured through LOCK_BACKEND and NOTIFIER_BACKEND.
"""

from typing import Optional

from coworking.core.config import get_settings
from coworking.services.interfaces.lock import LockManager
from coworking.services.interfaces.memory_lock import InProcessLockManager
from coworking.services.interfaces.notifier import LoggingNotifier, Notifier
from coworking.services.lock_service import RedisLockManager
from coworking.services.notification_service import RedisNotifier

settings = get_settings()


def build_lock_manager(backend: str) -> LockManager:
    """
    - memory: InProcessLockManager (single worker process)
    - redis: RedisLockManager (several workers or hosts)
    """
    if backend == "redis":
        return RedisLockManager()
    if backend == "memory":
        return InProcessLockManager()
    raise ValueError(f"Unknown LOCK_BACKEND: {backend!r}")


def build_notifier(backend: str) -> Notifier:
    if backend == "redis":
        return RedisNotifier()
    if backend == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown NOTIFIER_BACKEND: {backend!r}")


# Singleton instances: the in-process lock only works if every request shares it.
# Async so FastAPI resolves them on the event loop, never in the threadpool.
_lock_manager: Optional[LockManager] = None
_notifier: Optional[Notifier] = None


async def get_lock_manager() -> LockManager:
    global _lock_manager
    if _lock_manager is None:
        _lock_manager = build_lock_manager(settings.LOCK_BACKEND)
    return _lock_manager


async def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = build_notifier(settings.NOTIFIER_BACKEND)
    return _notifier
