"""Tests for FlowGraph validation and lookups."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from convoflow.core.exceptions import InvalidFlowGraphError
from convoflow.flow.graph import FINAL_EVENT, FINAL_STATE, FlowGraph


def _graph(**overrides):
    data = {
        "states": ["a", "b"],
        "initial_state": "a",
        "final_states": ["b"],
        "transitions": {"a": {"go": "b"}},
    }
    data.update(overrides)
    return FlowGraph.model_validate(data)


class TestValidation:
    def test_accepts_consistent_graph(self):
        graph = _graph()
        assert graph.states == frozenset({"a", "b"})
        assert graph.initial_state == "a"

    def test_rejects_undeclared_initial_state(self):
        with pytest.raises(InvalidFlowGraphError):
            _graph(initial_state="x")

    def test_rejects_undeclared_final_state(self):
        with pytest.raises(InvalidFlowGraphError):
            _graph(final_states=["x"])

    def test_rejects_undeclared_transition_target(self):
        with pytest.raises(InvalidFlowGraphError):
            _graph(transitions={"a": {"go": "nowhere"}})

    def test_rejects_undeclared_transition_source(self):
        with pytest.raises(InvalidFlowGraphError):
            _graph(transitions={"x": {"go": "b"}})

    def test_rejects_reserved_state_and_event(self):
        with pytest.raises(InvalidFlowGraphError):
            _graph(states=["a", "b", FINAL_STATE])
        with pytest.raises(InvalidFlowGraphError):
            _graph(transitions={"a": {FINAL_EVENT: "b"}})


class TestLookups:
    def test_target_for_defined_and_undefined_pairs(self):
        graph = _graph()
        assert graph.target("a", "go") == "b"
        assert graph.target("a", "back") is None
        assert graph.target("b", "go") is None

    def test_is_final_includes_synthetic_marker(self):
        graph = _graph()
        assert graph.is_final("b")
        assert graph.is_final(FINAL_STATE)
        assert not graph.is_final("a")
        assert not graph.is_final(None)

    def test_graph_is_frozen(self):
        graph = _graph()
        with pytest.raises(ValidationError):
            graph.initial_state = "b"

    def test_transitions_are_read_only(self):
        graph = _graph()
        with pytest.raises(TypeError):
            graph.transitions["b"] = {"go": "a"}
        with pytest.raises(TypeError):
            graph.transitions["a"]["go"] = "a"
        assert graph.target("a", "go") == "b"

    def test_source_mapping_is_copied(self):
        transitions = {"a": {"go": "b"}}
        graph = _graph(transitions=transitions)
        transitions["a"]["go"] = "a"
        transitions["b"] = {"back": "a"}
        assert graph.target("a", "go") == "b"
        assert graph.target("b", "back") is None
