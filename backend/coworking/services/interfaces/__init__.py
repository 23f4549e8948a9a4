"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .lock import LockHandle, LockManager, LockNotAcquired
from .memory_lock import InProcessLockManager
from .notifier import LoggingNotifier, Notifier

__all__ = [
    'LockHandle', 'LockManager', 'LockNotAcquired', 'InProcessLockManager',
    'LoggingNotifier', 'Notifier',
]
