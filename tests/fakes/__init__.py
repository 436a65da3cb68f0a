"""Shared test doubles: memory backend, deterministic randomness, a review wizard."""

from __future__ import annotations

from typing import Any

from convoflow.binding.binder import ConversationBinder
from convoflow.binding.context import ConversationContext, Exchange
from convoflow.binding.routing import DispatchTarget
from convoflow.handlers.metadata import StatefulField
from convoflow.persistence.memory_backend import MemorySessionBackend

REVIEW_FLOW = {
    "states": ["start", "review", "done"],
    "initial_state": "start",
    "final_states": ["done"],
    "transitions": {
        "start": {"submit": "review"},
        "review": {"confirm": "done", "back": "start"},
    },
}

REVIEW_GUARDS = {
    "begin": ["start"],
    "submit": ["start"],
    "confirm": ["review"],
    "show": ["start", "review"],
}

REVIEW_STATEFUL = ["count", StatefulField(name="notes", attribute="_notes")]


class CountingRandomSource:
    """IRandomSource yielding a different, predictable byte string per call."""

    def __init__(self) -> None:
        self.calls = 0

    def next_bytes(self, n: int) -> bytes:
        self.calls += 1
        return self.calls.to_bytes(n, "big")


class ReviewHandler:
    """Three-step handler: begin, submit (start -> review), confirm (review -> done)."""

    def __init__(self) -> None:
        self.count = 0
        self._notes: str | None = None
        self.setup_calls = 0

    def setup(self) -> None:
        self.setup_calls += 1
        self._notes = "draft"

    def begin(self, context: ConversationContext) -> dict[str, Any]:
        return {"conversation_id": context.conversation.conversation_id, "state": context.conversation.current_state}

    def submit(self, context: ConversationContext) -> dict[str, Any]:
        self.count += 1
        context.conversation.transition_to("submit")
        return {"state": context.conversation.current_state, "count": self.count}

    def confirm(self, context: ConversationContext) -> dict[str, Any]:
        context.conversation.transition_to("confirm")
        return {"state": context.conversation.current_state, "count": self.count}

    def show(self, context: ConversationContext) -> dict[str, Any]:
        return {"state": context.conversation.current_state, "count": self.count, "notes": self._notes}


def run_step(
    binder: ConversationBinder,
    action: str,
    conversation_id: str | None = None,
    session_id: str = "session-1",
    handler: Any = None,
) -> tuple[Any, ConversationContext | None]:
    """Run one request through both binder hooks, like a host pipeline would."""
    handler = handler if handler is not None else ReviewHandler()
    params = {"conversation_id": conversation_id} if conversation_id else {}
    exchange = Exchange(session_id=session_id, query_params=params)
    target = DispatchTarget(handler=handler, action=action)
    with binder.bind(exchange, target) as context:
        getattr(handler, action)(context)
    return handler, context


__all__ = [
    "CountingRandomSource",
    "MemorySessionBackend",
    "REVIEW_FLOW",
    "REVIEW_GUARDS",
    "REVIEW_STATEFUL",
    "ReviewHandler",
    "run_step",
]
