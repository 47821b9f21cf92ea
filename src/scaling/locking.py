"""
Named locking for the revenue ledger.

Every mutating ledger call runs under the lock of the key it touches, so two
calls on the same (project_id, period) never interleave while calls on
different periods proceed in parallel.

Usage:
    from scaling import get_lock_manager

    lock_manager = get_lock_manager()

    # Context manager (recommended)
    with lock_manager.lock(period_lock_name(1, 202301)):
        distribute()

    # Manual acquire/release
    if lock_manager.acquire("investment_contract"):
        try:
            do_work()
        finally:
            lock_manager.release("investment_contract")
"""

import threading
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass


def period_lock_name(project_id: int, period: int) -> str:
    """Lock name guarding one revenue period and its claims."""
    return f"period:{project_id}:{period}"


@dataclass
class LockInfo:
    """Information about a held lock."""

    name: str
    holder_id: str
    acquired_at: float
    depth: int = 1


class LockManager(ABC):
    """
    Abstract base class for lock managers.

    A timeout of None waits forever.
    """

    @abstractmethod
    def acquire(self, name: str, timeout: float | None = None) -> bool:
        """
        Acquire a named lock.

        Args:
            name: Lock identifier
            timeout: Maximum time to wait for lock (seconds), None to block

        Returns:
            True if lock acquired, False if timeout
        """
        pass

    @abstractmethod
    def release(self, name: str) -> bool:
        """
        Release a named lock.

        Args:
            name: Lock identifier

        Returns:
            True if lock was held and released, False otherwise
        """
        pass

    @abstractmethod
    def is_locked(self, name: str) -> bool:
        """Check if a lock is currently held."""
        pass

    @contextmanager
    def lock(self, name: str, timeout: float | None = None):
        """
        Context manager for acquiring a lock.

        Args:
            name: Lock identifier
            timeout: Maximum time to wait for lock, None to block

        Raises:
            TimeoutError: If lock cannot be acquired within timeout
        """
        if not self.acquire(name, timeout=timeout):
            raise TimeoutError(f"Could not acquire lock '{name}' within {timeout}s")
        try:
            yield
        finally:
            self.release(name)

    def get_info(self, name: str) -> LockInfo | None:
        """Get information about a lock (if held)."""
        return None


class LocalLockManager(LockManager):
    """
    Thread-based lock manager for a single process.

    Uses threading.RLock so a thread already holding a key can re-enter it.
    A lock object lives only while some thread holds or waits on its name,
    so the table stays bounded however many distinct names are used.
    """

    def __init__(self):
        self._locks: dict[str, threading.RLock] = {}
        self._refs: dict[str, int] = {}  # holds + waiters per name
        self._lock_info: dict[str, LockInfo] = {}
        self._meta_lock = threading.Lock()
        self._instance_id = str(uuid.uuid4())[:8]

    def _ref_lock(self, name: str) -> threading.RLock:
        """Get or create a lock by name and count the caller against it."""
        with self._meta_lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            self._refs[name] = self._refs.get(name, 0) + 1
            return lock

    def _unref(self, name: str) -> None:
        """Drop one reference; evict the lock when none remain. Needs _meta_lock."""
        self._refs[name] -= 1
        if self._refs[name] == 0:
            del self._refs[name]
            del self._locks[name]

    def acquire(self, name: str, timeout: float | None = None) -> bool:
        """Acquire a named lock."""
        lock = self._ref_lock(name)
        acquired = lock.acquire(timeout=-1 if timeout is None else timeout)

        with self._meta_lock:
            if not acquired:
                self._unref(name)
                return False

            info = self._lock_info.get(name)
            if info is not None:
                info.depth += 1
            else:
                self._lock_info[name] = LockInfo(
                    name=name,
                    holder_id=f"{self._instance_id}:{threading.current_thread().name}",
                    acquired_at=time.time(),
                )

        return True

    def release(self, name: str) -> bool:
        """Release a named lock."""
        with self._meta_lock:
            lock = self._locks.get(name)
            if lock is None:
                return False
            try:
                lock.release()
            except RuntimeError:
                # Lock not held by this thread
                return False
            info = self._lock_info.get(name)
            if info is not None:
                info.depth -= 1
                if info.depth <= 0:
                    del self._lock_info[name]
            self._unref(name)
            return True

    def lock_count(self) -> int:
        """Number of lock objects currently held or waited on."""
        with self._meta_lock:
            return len(self._locks)

    def is_locked(self, name: str) -> bool:
        """Check if a lock is currently held."""
        with self._meta_lock:
            return name in self._lock_info

    def get_info(self, name: str) -> LockInfo | None:
        """Get information about a lock."""
        with self._meta_lock:
            return self._lock_info.get(name)

    def get_all_locks(self) -> list[LockInfo]:
        """Get information about all held locks."""
        with self._meta_lock:
            return list(self._lock_info.values())
