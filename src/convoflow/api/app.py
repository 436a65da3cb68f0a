"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from convoflow.api.dispatch import ConversationalRouter
from convoflow.api.errors import register_exception_handlers
from convoflow.api.routes import health
from convoflow.binding.binder import ConversationBinder
from convoflow.binding.routing import RouteTable
from convoflow.core.config import AppSettings
from convoflow.core.logging import configure_logging
from convoflow.core.protocols import IRandomSource, ISessionBackend
from convoflow.flow.catalog import FlowCatalog
from convoflow.handlers.metadata import HandlerMetadataCatalog
from convoflow.persistence import create_session_backend


def create_app(
    settings: AppSettings | None = None,
    *,
    flows: FlowCatalog,
    handlers: HandlerMetadataCatalog,
    routers: Iterable[ConversationalRouter] = (),
    backend: ISessionBackend | None = None,
    random_source: IRandomSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = AppSettings()
    routers = list(routers)

    route_table = RouteTable()
    for conversational in routers:
        for handler_type in conversational.handler_types:
            route_table.bind(handler_type, conversational.flow_id)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        configure_logging(settings)
        app.state.settings = settings
        app.state.backend = backend or create_session_backend(settings)
        app.state.binder = ConversationBinder(
            flows=flows,
            handlers=handlers,
            routes=route_table,
            backend=app.state.backend,
            random_source=random_source,
            config=settings.conversation,
        )
        yield

    app = FastAPI(
        title="convoflow",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session.secret_key,
        session_cookie=settings.session.cookie_name,
        max_age=settings.session.max_age,
    )
    register_exception_handlers(app)
    app.include_router(health.router)
    for conversational in routers:
        app.include_router(conversational.api_router)
    return app
