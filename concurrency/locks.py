"""
Reader AI - Lock Management
Named reentrant locks that keep wait/hold statistics
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Optional, Any, Iterator

from core.logger import log_section, log_info


class TrackedLock:
    """An RLock that records how long callers wait for it and hold it."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.RLock()
        self._stats_lock = threading.Lock()
        self._holder: Optional[int] = None
        self.acquisitions = 0
        self.contentions = 0
        self.total_wait = 0.0
        self.max_wait = 0.0
        self.total_hold = 0.0
        self.max_hold = 0.0

    @contextmanager
    def hold(self, timeout: Optional[float] = None) -> Iterator[None]:
        me = threading.get_ident()
        with self._stats_lock:
            if self._holder not in (None, me):
                self.contentions += 1

        requested = time.monotonic()
        if not self._lock.acquire(timeout=-1 if timeout is None else timeout):
            raise TimeoutError(f"Timeout waiting for lock: {self.name}")
        acquired = time.monotonic()

        with self._stats_lock:
            self.acquisitions += 1
            self.total_wait += acquired - requested
            self.max_wait = max(self.max_wait, acquired - requested)
            outer = self._holder is None
            self._holder = me

        try:
            yield
        finally:
            held = time.monotonic() - acquired
            with self._stats_lock:
                self.total_hold += held
                self.max_hold = max(self.max_hold, held)
                if outer:
                    self._holder = None
            self._lock.release()

    def snapshot(self) -> Dict[str, Any]:
        with self._stats_lock:
            count = max(self.acquisitions, 1)
            return {
                "acquisitions": self.acquisitions,
                "contentions": self.contentions,
                "avg_wait_time": self.total_wait / count,
                "max_wait_time": self.max_wait,
                "avg_hold_time": self.total_hold / count,
                "max_hold_time": self.max_hold,
                "currently_held": self._holder is not None,
            }


class LockManager:
    """
    Registry of named locks.

    The chat transcript is the only in-memory shared state; the summary
    cache leans on SQLite's per-statement atomicity and takes no lock here.
    """

    DEFAULT_LOCKS = ("chat_session",)

    def __init__(self):
        self._locks: Dict[str, TrackedLock] = {}
        self._registry_lock = threading.Lock()
        for name in self.DEFAULT_LOCKS:
            self.create_lock(name)

    def create_lock(self, name: str) -> None:
        """Register a lock; existing names are left alone."""
        with self._registry_lock:
            self._locks.setdefault(name, TrackedLock(name))

    @contextmanager
    def acquire(self, lock_name: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold a named lock for the duration of the with-block.

        Raises:
            KeyError: Unknown lock name
            TimeoutError: timeout elapsed before the lock was free
        """
        with self._registry_lock:
            if lock_name not in self._locks:
                raise KeyError(f"Unknown lock: {lock_name}")
            lock = self._locks[lock_name]

        with lock.hold(timeout):
            yield

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        with self._registry_lock:
            locks = list(self._locks.values())
        return {lock.name: lock.snapshot() for lock in locks}

    def log_stats(self) -> None:
        """Log usage of every lock that was taken at least once."""
        log_section("Lock Statistics", "🔒")

        for name, data in self.get_stats().items():
            if not data["acquisitions"]:
                continue
            log_info(
                f"   {name}: {data['acquisitions']} acq, "
                f"{data['contentions']} contentions, "
                f"avg wait {data['avg_wait_time'] * 1000:.1f}ms, "
                f"avg hold {data['avg_hold_time'] * 1000:.1f}ms"
            )


# Global lock manager instance
_lock_manager: Optional[LockManager] = None


def get_lock_manager() -> LockManager:
    """Get the global lock manager instance."""
    global _lock_manager
    if _lock_manager is None:
        _lock_manager = LockManager()
    return _lock_manager


def init_lock_manager() -> LockManager:
    """Initialize the global lock manager."""
    global _lock_manager
    _lock_manager = LockManager()
    return _lock_manager
