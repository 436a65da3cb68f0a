"""ConversationBinder: attaches requests to conversations around a handler call.

before_dispatch() resolves or creates the conversation, enforces the state
guard and restores stateful fields onto the handler. after_dispatch() captures
those fields back, or discards the conversation once its flow has ended.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from convoflow.binding.context import ConversationContext, Exchange
from convoflow.binding.routing import DispatchTarget
from convoflow.conversation.conversation import Conversation
from convoflow.conversation.identity import SystemRandomSource, generate_conversation_id
from convoflow.conversation.registry import ConversationRegistry
from convoflow.core.config import ConversationConfig
from convoflow.core.exceptions import AccessDeniedError, ConversationNotFoundError
from convoflow.core.protocols import IRandomSource, IRouteResolver, ISessionBackend
from convoflow.flow.catalog import FlowCatalog
from convoflow.handlers.metadata import HandlerMetadata, HandlerMetadataCatalog

logger = structlog.get_logger(__name__)


class ConversationBinder:
    """Pre-/post-dispatch hooks for conversational handlers."""

    def __init__(
        self,
        *,
        flows: FlowCatalog,
        handlers: HandlerMetadataCatalog,
        routes: IRouteResolver,
        backend: ISessionBackend,
        random_source: IRandomSource | None = None,
        config: ConversationConfig | None = None,
    ) -> None:
        self._flows = flows
        self._handlers = handlers
        self._routes = routes
        self._backend = backend
        self._random = random_source or SystemRandomSource()
        self._config = config or ConversationConfig()

    def open_registry(self, session_id: str) -> ConversationRegistry:
        return ConversationRegistry(self._backend, self._flows, session_id, ttl=self._config.ttl_seconds)

    def before_dispatch(self, exchange: Exchange, target: DispatchTarget) -> None:
        route = self._routes.resolve(target)
        if route is None:
            return

        metadata = self._handlers.require(target.handler_type)
        registry = self.open_registry(exchange.session_id)
        log = logger.bind(flow_id=route.flow_id, action=route.action)

        conversation = None
        conversation_id = exchange.param(self._config.parameter_name)
        if conversation_id is not None:
            conversation = registry.find_by_id(conversation_id)
            if conversation is None:
                if self._config.reject_unknown_ids:
                    raise ConversationNotFoundError(conversation_id)
                log.info("conversation.stale_id", conversation_id=conversation_id)

        created = conversation is None
        if conversation is None:
            conversation = self._start_conversation(route.flow_id, target.handler, metadata, registry)
            log.info("conversation.created", conversation_id=conversation.conversation_id)
        else:
            log.debug("conversation.resumed", conversation_id=conversation.conversation_id,
                      state=conversation.current_state)

        allowed = metadata.acceptable_states(route.action)
        if conversation.current_state not in allowed:
            log.warning(
                "conversation.access_denied",
                conversation_id=conversation.conversation_id,
                allowed_states=sorted(allowed),
                actual_state=conversation.current_state,
            )
            raise AccessDeniedError(
                f"{target.handler_type.__qualname__}.{route.action}", allowed, conversation.current_state
            )

        stored = {name: conversation.get(name) for name in metadata.field_names() if conversation.has(name)}
        metadata.import_state(target.handler, stored)

        exchange.conversation_context = ConversationContext(
            conversation=conversation,
            handler=target.handler,
            metadata=metadata,
            registry=registry,
            created=created,
        )

    def after_dispatch(self, exchange: Exchange, target: DispatchTarget) -> None:
        context = exchange.conversation_context
        if context is None:
            return

        conversation = context.conversation
        if conversation.is_end_state():
            conversation.end()
            context.registry.remove(conversation)
            for name in context.metadata.field_names():
                conversation.remove(name)
            logger.info("conversation.finalized", conversation_id=conversation.conversation_id,
                        action=target.action)
            return

        for name, value in context.metadata.export_state(context.handler).items():
            conversation.set(name, value)
        context.registry.save(conversation)

    @contextmanager
    def bind(self, exchange: Exchange, target: DispatchTarget) -> Iterator[ConversationContext | None]:
        """Run the handler body between the two hooks.

        Post-dispatch is skipped when the body raises, so a failed step leaves
        the stored conversation as it was.
        """
        self.before_dispatch(exchange, target)
        yield exchange.conversation_context
        self.after_dispatch(exchange, target)

    def _start_conversation(
        self,
        flow_id: str,
        handler: object,
        metadata: HandlerMetadata,
        registry: ConversationRegistry,
    ) -> Conversation:
        conversation = Conversation(
            generate_conversation_id(self._random, self._config.id_entropy_bytes),
            flow_id,
            self._flows.create_engine(flow_id),
        )
        conversation.start()
        for routine in metadata.init_callables(handler):
            routine()
        registry.add(conversation)
        return conversation
