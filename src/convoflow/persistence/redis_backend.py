"""Redis session backend implementing ISessionBackend."""

from __future__ import annotations

import redis

from convoflow.core.exceptions import SessionStoreError


class RedisSessionBackend:
    """Production ISessionBackend backed by Redis.

    Every key is namespaced under ``key_prefix``. compare_and_set uses
    WATCH/MULTI so concurrent writers to the same key cannot both succeed.
    """

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 key_prefix: str = "convoflow") -> None:
        self._host = host
        self._port = port
        self._db = db
        self._key_prefix = key_prefix
        self._client = redis.Redis(
            host=host, port=port, db=db, decode_responses=True,
        )

    def _k(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(self._k(key))
        except Exception as exc:
            raise SessionStoreError(f"Redis GET failed for key={key!r}: {exc}") from exc

    def setex(self, key: str, ttl: int, value: str) -> None:
        try:
            self._client.setex(self._k(key), ttl, value)
        except Exception as exc:
            raise SessionStoreError(f"Redis SETEX failed for key={key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._k(key))
        except Exception as exc:
            raise SessionStoreError(f"Redis DELETE failed for key={key!r}: {exc}") from exc

    def compare_and_set(self, key: str, expected: str | None, value: str, ttl: int) -> bool:
        name = self._k(key)
        try:
            with self._client.pipeline() as pipe:
                try:
                    pipe.watch(name)
                    if pipe.get(name) != expected:
                        return False
                    pipe.multi()
                    pipe.setex(name, ttl, value)
                    pipe.execute()
                    return True
                except redis.WatchError:
                    return False
        except Exception as exc:
            raise SessionStoreError(f"Redis compare-and-set failed for key={key!r}: {exc}") from exc

    def compare_and_delete(self, key: str, expected: str) -> bool:
        name = self._k(key)
        try:
            with self._client.pipeline() as pipe:
                try:
                    pipe.watch(name)
                    if pipe.get(name) != expected:
                        return False
                    pipe.multi()
                    pipe.delete(name)
                    pipe.execute()
                    return True
                except redis.WatchError:
                    return False
        except Exception as exc:
            raise SessionStoreError(f"Redis compare-and-delete failed for key={key!r}: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except Exception:
            return False
