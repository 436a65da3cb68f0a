"""FlowCatalog: flow id -> engine template, populated at startup."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from convoflow.core.exceptions import FlowNotFoundError, InvalidFlowGraphError
from convoflow.flow.engine import FlowEngine
from convoflow.flow.graph import FlowGraph


class FlowCatalog:
    """Read-only lookup of flow templates once the application is wired."""

    def __init__(self) -> None:
        self._templates: dict[str, FlowEngine] = {}

    @classmethod
    def from_definitions(cls, definitions: Mapping[str, FlowGraph | Mapping[str, Any]]) -> FlowCatalog:
        catalog = cls()
        for flow_id, graph in definitions.items():
            catalog.register(flow_id, graph)
        return catalog

    def register(self, flow_id: str, graph: FlowGraph | Mapping[str, Any]) -> FlowGraph:
        """Add a flow. Plain mappings are validated into a FlowGraph."""
        if flow_id in self._templates:
            raise InvalidFlowGraphError(f"Flow {flow_id!r} is already registered")
        if not isinstance(graph, FlowGraph):
            graph = FlowGraph.model_validate(graph)
        self._templates[flow_id] = FlowEngine(graph)
        return graph

    def find(self, flow_id: str) -> FlowGraph | None:
        template = self._templates.get(flow_id)
        return template.graph if template is not None else None

    def create_engine(self, flow_id: str) -> FlowEngine:
        """Clone the template for ``flow_id`` into a fresh, unshared engine."""
        try:
            template = self._templates[flow_id]
        except KeyError:
            raise FlowNotFoundError(f"Flow {flow_id!r} is not registered") from None
        return template.clone()

    def flow_ids(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._templates
