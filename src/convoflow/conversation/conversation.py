"""Conversation: one running instance of a flow."""

from __future__ import annotations

from typing import Any

from convoflow.flow.engine import FlowEngine
from convoflow.flow.graph import FINAL_EVENT
from convoflow.models.conversation import ConversationRecord


class Conversation:
    """A flow engine plus the attributes that survive across requests.

    The engine is owned exclusively; callers must pass a clone, never a
    catalog template.
    """

    def __init__(
        self,
        conversation_id: str,
        flow_id: str,
        engine: FlowEngine,
        attributes: dict[str, Any] | None = None,
        version: int = 0,
    ) -> None:
        self._conversation_id = conversation_id
        self._flow_id = flow_id
        self._engine = engine
        self._attributes: dict[str, Any] = dict(attributes or {})
        self.version = version

    @property
    def conversation_id(self) -> str:
        return self._conversation_id

    @property
    def flow_id(self) -> str:
        return self._flow_id

    @property
    def engine(self) -> FlowEngine:
        return self._engine

    @property
    def current_state(self) -> str | None:
        return self._engine.current_state

    @property
    def previous_state(self) -> str | None:
        return self._engine.previous_state

    def is_end_state(self) -> bool:
        return self._engine.is_end_state()

    def start(self) -> None:
        self._engine.start()

    def transition_to(self, event_id: str) -> None:
        self._engine.trigger_event(event_id)

    def end(self) -> None:
        self._engine.trigger_event(FINAL_EVENT)

    # ---- attribute store ----

    def has(self, name: str) -> bool:
        return name in self._attributes

    def get(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def remove(self, name: str) -> None:
        self._attributes.pop(name, None)

    # ---- persistence ----

    def to_record(self) -> ConversationRecord:
        return ConversationRecord(
            conversation_id=self._conversation_id,
            flow_id=self._flow_id,
            current_state=self._engine.current_state,
            previous_state=self._engine.previous_state,
            attributes=dict(self._attributes),
            version=self.version,
        )

    def __repr__(self) -> str:
        return (
            f"Conversation(id={self._conversation_id!r}, flow={self._flow_id!r}, "
            f"state={self.current_state!r})"
        )
