"""Immutable flow graph: states, transitions, initial and final markers."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, Field, field_validator, model_validator

from convoflow.core.exceptions import InvalidFlowGraphError

# Reserved event that force-terminates a flow from any state.
FINAL_EVENT = "__end__"
# Synthetic terminal state reached through FINAL_EVENT.
FINAL_STATE = "__final__"


class FlowGraph(BaseModel):
    """States and transitions of one workflow type.

    ``transitions`` maps a source state to ``{event: target}``. Graphs are frozen
    and shared read-only by every conversation of the flow.
    """

    model_config = {"frozen": True}

    states: frozenset[str]
    initial_state: str
    final_states: frozenset[str] = frozenset()
    transitions: Mapping[str, Mapping[str, str]] = Field(default_factory=dict)

    @field_validator("transitions", mode="after")
    @classmethod
    def _freeze_transitions(cls, value: Mapping[str, Mapping[str, str]]) -> Mapping[str, Mapping[str, str]]:
        return MappingProxyType({source: MappingProxyType(dict(edges)) for source, edges in value.items()})

    @model_validator(mode="after")
    def _check_consistency(self) -> FlowGraph:
        if FINAL_STATE in self.states:
            raise InvalidFlowGraphError(f"State id {FINAL_STATE!r} is reserved")
        if self.initial_state not in self.states:
            raise InvalidFlowGraphError(f"Initial state {self.initial_state!r} is not declared")
        undeclared = self.final_states - self.states
        if undeclared:
            raise InvalidFlowGraphError(f"Final states {sorted(undeclared)} are not declared")
        for source, edges in self.transitions.items():
            if source not in self.states:
                raise InvalidFlowGraphError(f"Transition source {source!r} is not declared")
            for event, target in edges.items():
                if event == FINAL_EVENT:
                    raise InvalidFlowGraphError(f"Event id {FINAL_EVENT!r} is reserved")
                if target not in self.states:
                    raise InvalidFlowGraphError(
                        f"Transition {source!r} --{event}--> {target!r} targets an undeclared state"
                    )
        return self

    def target(self, source: str, event: str) -> str | None:
        """Return the target state for (source, event), or None if undefined."""
        return self.transitions.get(source, {}).get(event)

    def has_state(self, state_id: str) -> bool:
        return state_id in self.states or state_id == FINAL_STATE

    def is_final(self, state_id: str | None) -> bool:
        return state_id == FINAL_STATE or state_id in self.final_states
