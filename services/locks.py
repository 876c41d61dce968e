"""Per-(candidate, job) mutual exclusion for inbound turns."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

Key = Tuple[str, str]


class SessionLocks:
    """Reference-counted lock registry.

    Turns for the same candidate and job run one at a time; unrelated pairs never
    block each other. Entries are dropped once no turn holds or waits on them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Key, threading.Lock] = {}
        self._refs: Dict[Key, int] = {}

    def _acquire_entry(self, key: Key) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            self._refs[key] = self._refs.get(key, 0) + 1
        return lock

    def _release_entry(self, key: Key) -> None:
        with self._guard:
            remaining = self._refs.get(key, 1) - 1
            if remaining <= 0:
                self._refs.pop(key, None)
                self._locks.pop(key, None)
            else:
                self._refs[key] = remaining

    @contextmanager
    def hold(self, key: Key) -> Iterator[None]:
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["SessionLocks"]
