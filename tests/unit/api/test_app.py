"""HTTP-level tests: the review wizard behind FastAPI + SessionMiddleware."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from convoflow.api.app import create_app
from convoflow.api.dispatch import CONVERSATION_HEADER, ConversationalRouter
from convoflow.core.config import AppSettings
from tests.fakes import CountingRandomSource, MemorySessionBackend, ReviewHandler


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class BrokenHandler:
    """Routed to a flow but never registered with handler metadata."""

    def begin(self, context):
        return {}


class LoopCountingBackend(MemorySessionBackend):
    """Memory backend that counts calls made from the event loop thread."""

    def __init__(self) -> None:
        super().__init__()
        self.calls_on_loop = 0

    def _record(self) -> None:
        if _on_event_loop():
            self.calls_on_loop += 1

    def get(self, key):
        self._record()
        return super().get(key)

    def compare_and_set(self, key, expected, value, ttl):
        self._record()
        return super().compare_and_set(key, expected, value, ttl)

    def compare_and_delete(self, key, expected):
        self._record()
        return super().compare_and_delete(key, expected)


class WhereHandler:
    """Reports whether each action body ran on the event loop."""

    def sync_step(self, context):
        return {"on_loop": _on_event_loop(), "state": context.conversation.current_state}

    async def async_step(self, context):
        return {"on_loop": _on_event_loop(), "state": context.conversation.current_state}


@pytest.fixture
def app_backend() -> LoopCountingBackend:
    return LoopCountingBackend()


@pytest.fixture
def client(flows, handlers, app_backend):
    handlers.register(WhereHandler, guards={"sync_step": ["start"], "async_step": ["start"]})

    router = ConversationalRouter("review", prefix="/review")
    router.action("/begin", ReviewHandler, "begin", methods=["GET"])
    router.action("/submit", ReviewHandler, "submit")
    router.action("/confirm", ReviewHandler, "confirm")
    router.action("/show", ReviewHandler, "show", methods=["GET"])
    router.action("/broken", BrokenHandler, "begin", methods=["GET"])
    router.action("/sync", WhereHandler, "sync_step", methods=["GET"])
    router.action("/async", WhereHandler, "async_step", methods=["GET"])

    app = create_app(
        AppSettings(),
        flows=flows,
        handlers=handlers,
        routers=[router],
        backend=app_backend,
        random_source=CountingRandomSource(),
    )
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_full_wizard_over_http(client, app_backend):
    resp = client.get("/review/begin")
    assert resp.status_code == 200
    cid = resp.json()["conversation_id"]
    assert resp.headers[CONVERSATION_HEADER] == cid
    assert resp.json()["state"] == "start"

    resp = client.post("/review/submit", data={"conversation_id": cid})
    assert resp.status_code == 200
    assert resp.json() == {"state": "review", "count": 1}

    resp = client.get("/review/show", params={"conversation_id": cid})
    assert resp.json() == {"state": "review", "count": 1, "notes": "draft"}

    resp = client.post("/review/confirm", json={"conversation_id": cid})
    assert resp.status_code == 200
    assert resp.json()["state"] == "done"
    assert CONVERSATION_HEADER not in resp.headers
    assert app_backend.keys() == []


def test_guard_violation_is_forbidden(client):
    cid = client.get("/review/begin").json()["conversation_id"]
    resp = client.post("/review/confirm", data={"conversation_id": cid})
    assert resp.status_code == 403
    body = resp.json()
    assert body["allowed_states"] == ["review"]
    assert body["actual_state"] == "start"


def test_conversations_are_bound_to_the_session_cookie(client):
    cid = client.get("/review/begin").json()["conversation_id"]
    client.cookies.clear()
    resp = client.get("/review/show", params={"conversation_id": cid})
    assert resp.status_code == 200
    assert resp.headers[CONVERSATION_HEADER] != cid


def test_missing_metadata_is_internal_error(client):
    resp = client.get("/review/broken")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal conversation error"}


def test_blocking_work_runs_off_the_event_loop(client, app_backend):
    resp = client.get("/review/sync")
    assert resp.status_code == 200
    assert resp.json() == {"on_loop": False, "state": "start"}

    cid = client.get("/review/begin").json()["conversation_id"]
    client.post("/review/submit", data={"conversation_id": cid})
    client.post("/review/confirm", data={"conversation_id": cid})
    assert app_backend.calls_on_loop == 0


def test_async_actions_are_awaited_on_the_event_loop(client):
    resp = client.get("/review/async")
    assert resp.status_code == 200
    assert resp.json() == {"on_loop": True, "state": "start"}
