"""FastAPI glue: endpoints that run handler actions inside a conversation."""

from __future__ import annotations

import asyncio
import inspect
import secrets
from collections.abc import Callable, Iterable
from typing import Any

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from convoflow.binding.binder import ConversationBinder
from convoflow.binding.context import Exchange
from convoflow.binding.routing import DispatchTarget

SESSION_KEY = "convoflow.sid"
CONVERSATION_HEADER = "X-Conversation-Id"


def session_id(request: Request) -> str:
    """Return the caller's session id, issuing one on first contact."""
    sid = request.session.get(SESSION_KEY)
    if not sid:
        sid = secrets.token_urlsafe(32)
        request.session[SESSION_KEY] = sid
    return sid


async def build_exchange(request: Request) -> Exchange:
    body: dict[str, Any] = {}
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        payload = await request.json()
        if isinstance(payload, dict):
            body = payload
    elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        body = {k: v for k, v in form.items() if isinstance(v, str)}

    return Exchange(
        session_id=session_id(request),
        body_params=body,
        query_params=dict(request.query_params),
    )


def _endpoint(handler_type: type, action: str) -> Callable[[Request], Any]:
    async def endpoint(request: Request) -> Response:
        binder: ConversationBinder = request.app.state.binder
        exchange = await build_exchange(request)
        handler = handler_type()
        target = DispatchTarget(handler=handler, action=action)

        # Backend calls block; only coroutine handlers run on the event loop.
        await asyncio.to_thread(binder.before_dispatch, exchange, target)
        context = exchange.conversation_context
        method = getattr(handler, action)
        if inspect.iscoroutinefunction(method):
            result = await method(context)
        else:
            result = await asyncio.to_thread(method, context)
        await asyncio.to_thread(binder.after_dispatch, exchange, target)

        response = result if isinstance(result, Response) else JSONResponse(jsonable_encoder(result))
        if context is not None and not context.conversation.is_end_state():
            response.headers[CONVERSATION_HEADER] = context.conversation.conversation_id
        return response

    endpoint.__name__ = f"{handler_type.__name__}_{action}"
    return endpoint


class ConversationalRouter:
    """APIRouter whose actions all belong to one flow.

    Handler methods receive the ConversationContext (or None for handlers not
    bound to a flow) and return a Response or any JSON-encodable value.
    """

    def __init__(self, flow_id: str, **router_kwargs: Any) -> None:
        self.flow_id = flow_id
        self.api_router = APIRouter(**router_kwargs)
        self.handler_types: set[type] = set()

    def action(self, path: str, handler_type: type, action: str,
               methods: Iterable[str] = ("POST",)) -> None:
        self.handler_types.add(handler_type)
        self.api_router.add_api_route(path, _endpoint(handler_type, action), methods=list(methods))
