"""
Per-entity write serialization.

Two layers guard every mutation:
1. KeyedLock - at most one in-flight mutation per key within this process
2. Versioned saves - stores reject stale writes with WriteConflict, and
   retry_on_conflict re-runs the read/compute/write cycle a bounded number
   of times before giving up with ConcurrencyExhausted
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from loguru import logger

from .errors import ConcurrencyExhausted, WriteConflict

T = TypeVar("T")


class KeyedLock:
    """Lazily created mutexes, one per key, dropped once nobody holds them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._waiters[key] = self._waiters.get(key, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def retry_on_conflict(operation: Callable[[], T], key: Hashable, attempts: int) -> T:
    """
    Run a read-compute-write operation, retrying on WriteConflict.

    Args:
        operation: Callable performing one full attempt (must re-read state)
        key: Entity key, used for logging and the final error
        attempts: Maximum number of attempts

    Returns:
        Whatever the first successful attempt returns
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except WriteConflict as e:
            logger.warning(f"Write conflict on {key!r} (attempt {attempt}/{attempts}): {e}")

    raise ConcurrencyExhausted(key, attempts)
