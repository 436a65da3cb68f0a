"""Dispatch targets and the handler-type -> flow routing table."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from convoflow.core.exceptions import HandlerRegistrationError


class DispatchTarget(BaseModel):
    """The handler instance and action a request is about to run."""

    model_config = {"arbitrary_types_allowed": True}

    handler: Any
    action: str

    @property
    def handler_type(self) -> type:
        return type(self.handler)


class RouteInfo(BaseModel):
    """Routing metadata the binder needs: which flow, which action."""

    model_config = {"frozen": True}

    flow_id: str
    action: str


class RouteTable:
    """IRouteResolver mapping handler types to flow ids."""

    def __init__(self) -> None:
        self._flows: dict[type, str] = {}

    def bind(self, handler_type: type, flow_id: str) -> None:
        existing = self._flows.get(handler_type)
        if existing is not None and existing != flow_id:
            raise HandlerRegistrationError(
                f"Handler {handler_type.__qualname__} is already bound to flow {existing!r}"
            )
        self._flows[handler_type] = flow_id

    def resolve(self, target: DispatchTarget) -> RouteInfo | None:
        flow_id = self._flows.get(target.handler_type)
        if flow_id is None:
            return None
        return RouteInfo(flow_id=flow_id, action=target.action)
