"""Per-key mutual exclusion for read-check-commit sequences."""

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager


class KeyedLock:
    """One lock per key, created on demand and dropped once nobody holds it."""

    def __init__(self) -> None:
        self._guard: threading.Lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock: threading.Lock | None = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            remaining: int = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def _hold_one(self, key: str) -> Iterator[None]:
        lock: threading.Lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._checkin(key)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold every key; acquired in sorted order so callers cannot deadlock."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._hold_one(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
