"""
Concurrency infrastructure for the revenue ledger.

Usage:
    from scaling import get_lock_manager

    lock_manager = get_lock_manager()
    with lock_manager.lock("period:1:202301"):
        distribute()
"""

from scaling.locking import LocalLockManager, LockInfo, LockManager, period_lock_name

__all__ = [
    "LockInfo",
    "LockManager",
    "LocalLockManager",
    "get_lock_manager",
    "period_lock_name",
]

# Singleton instance
_lock_manager: LockManager | None = None


def get_lock_manager() -> LockManager:
    """Get the process-wide lock manager."""
    global _lock_manager
    if _lock_manager is None:
        _lock_manager = LocalLockManager()
    return _lock_manager
