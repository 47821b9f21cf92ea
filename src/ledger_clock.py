"""
Revenue Ledger - Logical Clocks

The ledger never reads the wall clock directly. Distribution timestamps come
from an injected clock so the same sequence of calls always produces the same
ledger state.

Clocks:
- BlockHeightClock: manually advanced block height (tests, replays, chain adapters)
- SystemClock: Unix seconds from the host clock
"""

import threading
import time
from abc import ABC, abstractmethod


class LogicalClock(ABC):
    """
    Source of logical time for the ledger.

    Implementations must be monotonic non-decreasing: ``now()`` never
    returns a value lower than a previous call.
    """

    @abstractmethod
    def now(self) -> int:
        """Get the current logical time."""
        pass


class BlockHeightClock(LogicalClock):
    """
    Clock driven by an externally supplied block height.

    The height only moves when ``advance()`` or ``set_height()`` is called.
    """

    def __init__(self, start_height: int = 1):
        if start_height < 0:
            raise ValueError("start_height must be non-negative")
        self._height = start_height
        self._lock = threading.Lock()

    def now(self) -> int:
        """Get the current block height."""
        with self._lock:
            return self._height

    def advance(self, blocks: int = 1) -> int:
        """
        Advance the height by a number of blocks.

        Args:
            blocks: Number of blocks to advance (must be >= 0)

        Returns:
            The new height
        """
        if blocks < 0:
            raise ValueError("Cannot advance by a negative number of blocks")
        with self._lock:
            self._height += blocks
            return self._height

    def set_height(self, height: int) -> None:
        """Jump to a specific height. Moving backwards is rejected."""
        with self._lock:
            if height < self._height:
                raise ValueError(
                    f"Block height cannot decrease (current {self._height}, requested {height})"
                )
            self._height = height


class SystemClock(LogicalClock):
    """Wall-clock seconds, clamped so that it never goes backwards."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


def get_clock(mode: str = "block") -> LogicalClock:
    """
    Build a clock by name.

    Args:
        mode: "block" for a BlockHeightClock, "system" for a SystemClock

    Returns:
        LogicalClock instance
    """
    mode = (mode or "block").lower()
    if mode == "block":
        return BlockHeightClock()
    if mode == "system":
        return SystemClock()
    raise ValueError(f"Unknown clock mode: {mode}")
