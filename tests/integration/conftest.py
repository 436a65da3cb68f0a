"""Integration test fixtures: a live Redis server."""

from __future__ import annotations

import os
import uuid

import pytest
import redis

REDIS_HOST = os.environ.get("CONVOFLOW_REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("CONVOFLOW_REDIS_PORT", "6379"))


def _redis_available() -> bool:
    """Check if Redis is reachable."""
    try:
        return bool(redis.Redis(host=REDIS_HOST, port=REDIS_PORT, socket_connect_timeout=0.5).ping())
    except Exception:
        return False


skip_no_redis = pytest.mark.skipif(
    not _redis_available(),
    reason="Redis not available",
)


@pytest.fixture
def key_prefix():
    """Unique key namespace per test, cleaned up afterwards."""
    prefix = f"convoflow-inttest-{uuid.uuid4().hex}"
    yield prefix
    client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT)
    for key in client.scan_iter(f"{prefix}:*"):
        client.delete(key)
