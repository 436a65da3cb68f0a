"""Shared fixtures: flow catalog, handler metadata, binder over a memory backend."""

from __future__ import annotations

import pytest

from convoflow.binding.binder import ConversationBinder
from convoflow.binding.routing import RouteTable
from convoflow.core.config import ConversationConfig
from convoflow.flow.catalog import FlowCatalog
from convoflow.flow.graph import FlowGraph
from convoflow.handlers.metadata import HandlerMetadataCatalog
from tests.fakes import (
    REVIEW_FLOW,
    REVIEW_GUARDS,
    REVIEW_STATEFUL,
    CountingRandomSource,
    MemorySessionBackend,
    ReviewHandler,
)


@pytest.fixture
def review_graph() -> FlowGraph:
    return FlowGraph.model_validate(REVIEW_FLOW)


@pytest.fixture
def flows(review_graph) -> FlowCatalog:
    catalog = FlowCatalog()
    catalog.register("review", review_graph)
    return catalog


@pytest.fixture
def handlers() -> HandlerMetadataCatalog:
    catalog = HandlerMetadataCatalog()
    catalog.register(ReviewHandler, guards=REVIEW_GUARDS, stateful=REVIEW_STATEFUL, init=["setup"])
    return catalog


@pytest.fixture
def routes() -> RouteTable:
    table = RouteTable()
    table.bind(ReviewHandler, "review")
    return table


@pytest.fixture
def backend() -> MemorySessionBackend:
    return MemorySessionBackend()


@pytest.fixture
def random_source() -> CountingRandomSource:
    return CountingRandomSource()


@pytest.fixture
def binder(flows, handlers, routes, backend, random_source) -> ConversationBinder:
    return ConversationBinder(
        flows=flows,
        handlers=handlers,
        routes=routes,
        backend=backend,
        random_source=random_source,
        config=ConversationConfig(),
    )
