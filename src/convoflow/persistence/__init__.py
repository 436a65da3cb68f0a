"""Pluggable session backends behind the ISessionBackend Protocol."""

from __future__ import annotations

from convoflow.core.config import AppSettings
from convoflow.core.protocols import ISessionBackend
from convoflow.persistence.memory_backend import MemorySessionBackend
from convoflow.persistence.redis_backend import RedisSessionBackend


def create_session_backend(settings: AppSettings | None = None) -> ISessionBackend:
    """Create the session backend selected by ``settings.session_backend``."""
    if settings is None:
        settings = AppSettings()

    if settings.session_backend == "redis":
        return RedisSessionBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            key_prefix=settings.redis.key_prefix,
        )
    return MemorySessionBackend()
