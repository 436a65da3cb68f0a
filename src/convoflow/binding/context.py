"""Request-scoped state passed between the binder hooks and the handler."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from convoflow.conversation.conversation import Conversation
from convoflow.conversation.registry import ConversationRegistry
from convoflow.handlers.metadata import HandlerMetadata


class ConversationContext(BaseModel):
    """What pre-dispatch resolved for one request."""

    model_config = {"arbitrary_types_allowed": True}

    conversation: Conversation
    handler: Any
    metadata: HandlerMetadata
    registry: ConversationRegistry
    created: bool = False


class Exchange(BaseModel):
    """One in-flight unit of work as seen by the binder.

    The host fills in the session id and request parameters; pre-dispatch
    publishes ``conversation_context``.
    """

    model_config = {"arbitrary_types_allowed": True}

    session_id: str
    body_params: dict[str, Any] = Field(default_factory=dict)
    query_params: dict[str, Any] = Field(default_factory=dict)
    conversation_context: Optional[ConversationContext] = None

    def param(self, name: str) -> str | None:
        """Read ``name`` from the body if it carries the key, else from the query string.

        A body key that is present but empty means "no value"; the query string
        is not consulted then.
        """
        source = self.body_params if name in self.body_params else self.query_params
        value = source.get(name)
        if isinstance(value, str) and value:
            return value
        return None
