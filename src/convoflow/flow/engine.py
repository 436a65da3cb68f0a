"""FlowEngine: a runnable cursor over an immutable FlowGraph."""

from __future__ import annotations

import structlog

from convoflow.core.exceptions import AlreadyStartedError, NoSuchTransitionError, UnknownStateError
from convoflow.flow.graph import FINAL_EVENT, FINAL_STATE, FlowGraph

logger = structlog.get_logger(__name__)


class FlowEngine:
    """Finite-state machine over one FlowGraph.

    The graph is shared; the cursor (current and previous state) is owned by
    this instance. Use clone() to hand an independent engine to a new
    conversation.
    """

    def __init__(self, graph: FlowGraph) -> None:
        self._graph = graph
        self._current_state: str | None = None
        self._previous_state: str | None = None

    @classmethod
    def resume(cls, graph: FlowGraph, current_state: str, previous_state: str | None = None) -> FlowEngine:
        """Rebuild a started engine from a persisted cursor."""
        for state_id in (current_state, previous_state):
            if state_id is not None and not graph.has_state(state_id):
                raise UnknownStateError(f"State {state_id!r} is not declared in the flow graph")
        engine = cls(graph)
        engine._current_state = current_state
        engine._previous_state = previous_state
        return engine

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    @property
    def current_state(self) -> str | None:
        return self._current_state

    @property
    def previous_state(self) -> str | None:
        return self._previous_state

    def is_started(self) -> bool:
        return self._current_state is not None

    def start(self) -> None:
        if self._current_state is not None:
            raise AlreadyStartedError(self._current_state)
        self._current_state = self._graph.initial_state

    def trigger_event(self, event_id: str) -> None:
        """Move the cursor along the (current state, event) transition.

        FINAL_EVENT jumps to FINAL_STATE from anywhere. An undefined event from a
        final state is ignored.
        """
        if event_id == FINAL_EVENT:
            self._move(FINAL_STATE)
            return

        target = None
        if self._current_state is not None:
            target = self._graph.target(self._current_state, event_id)
        if target is None:
            if self.is_end_state():
                logger.debug("flow.event_ignored", state=self._current_state, event_id=event_id)
                return
            raise NoSuchTransitionError(self._current_state, event_id)
        self._move(target)

    def is_end_state(self) -> bool:
        return self._current_state is not None and self._graph.is_final(self._current_state)

    def clone(self) -> FlowEngine:
        """Return an engine over the same graph with an independent cursor."""
        engine = FlowEngine(self._graph)
        engine._current_state = self._current_state
        engine._previous_state = self._previous_state
        return engine

    def _move(self, target: str) -> None:
        self._previous_state = self._current_state
        self._current_state = target
