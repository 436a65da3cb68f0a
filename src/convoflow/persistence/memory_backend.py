"""In-memory session backend for tests and single-process deployments."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class MemorySessionBackend:
    """Dict-backed ISessionBackend.

    Every key expires ``ttl`` seconds after its last write. Expired keys read as
    absent and are purged on each write, so abandoned conversations do not pile
    up.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._store[key]
            return None
        return value

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, (_, expires_at) in self._store.items() if expires_at <= now]:
            del self._store[key]

    def _put(self, key: str, ttl: int, value: str) -> None:
        self._purge()
        self._store[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        with self._lock:
            self._put(key, ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def compare_and_set(self, key: str, expected: str | None, value: str, ttl: int) -> bool:
        with self._lock:
            if self._live(key) != expected:
                return False
            self._put(key, ttl, value)
            return True

    def compare_and_delete(self, key: str, expected: str) -> bool:
        with self._lock:
            if self._live(key) != expected:
                return False
            del self._store[key]
            return True

    def ping(self) -> bool:
        return True

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            self._purge()
            return [k for k in self._store if k.startswith(prefix)]
